from __future__ import annotations

from book_service.api.deps import get_registry, get_settings
from book_service.core.config import Settings
from book_service.schemas.health import HealthOut
from book_service.services.availability.registry import AdapterRegistry
from fastapi import APIRouter, Depends

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthOut)
def health(
    registry: AdapterRegistry = Depends(get_registry),
    cfg: Settings = Depends(get_settings),
):
    return HealthOut(status="ok", service=cfg.api_name, adapters=registry.names())
