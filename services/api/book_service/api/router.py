from __future__ import annotations

import importlib
import logging

from fastapi import APIRouter

logger = logging.getLogger(__name__)

api_router = APIRouter()


def _include(module_path: str) -> None:
    try:
        mod = importlib.import_module(module_path)
    except ImportError:
        logger.warning("Route module %s could not be imported; skipping", module_path, exc_info=True)
        return

    router = getattr(mod, "router", None)
    if router is not None:
        api_router.include_router(router)


# Registration order is the order routes appear in the OpenAPI schema.
for _mod in (
    "book_service.api.routes.health",
    "book_service.api.routes.profiles",
    "book_service.api.routes.recommendations",
    "book_service.api.routes.availability",
    "book_service.api.routes.cache",
    "book_service.api.routes.config",
):
    _include(_mod)
