from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from book_service.domain.types import AvailabilityRecord


class CacheStatsOut(BaseModel):
    size: int
    valid: int
    expired: int

    class Config:
        from_attributes = True


class CacheEntryOut(BaseModel):
    key: str
    data: AvailabilityRecord | None
    expires_at: datetime
    is_expired: bool

    class Config:
        from_attributes = True


class ClearedOut(BaseModel):
    cleared: int


class PrunedOut(BaseModel):
    pruned: int


class InvalidatedOut(BaseModel):
    invalidated: int
