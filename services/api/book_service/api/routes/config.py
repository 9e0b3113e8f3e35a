from __future__ import annotations

from typing import Any

from book_service.api.deps import get_settings
from book_service.core.config import Settings
from fastapi import APIRouter, Depends

router = APIRouter(prefix="/api", tags=["config"])


@router.get("/config")
def get_config(cfg: Settings = Depends(get_settings)) -> dict[str, Any]:
    return cfg.public_view()
