from __future__ import annotations

from book_service.api.deps import get_cache
from book_service.domain.isbn import validate_isbn
from book_service.schemas.cache import (
    CacheEntryOut,
    CacheStatsOut,
    ClearedOut,
    InvalidatedOut,
    PrunedOut,
)
from book_service.services.availability_cache import AvailabilityCache
from fastapi import APIRouter, Depends

router = APIRouter(prefix="/api/cache", tags=["cache"])


@router.get("/stats", response_model=CacheStatsOut)
def cache_stats(cache: AvailabilityCache = Depends(get_cache)):
    return cache.stats()


@router.get("/entries", response_model=list[CacheEntryOut])
def cache_entries(cache: AvailabilityCache = Depends(get_cache)):
    return cache.entries()


@router.delete("", response_model=ClearedOut)
def clear_cache(cache: AvailabilityCache = Depends(get_cache)):
    return ClearedOut(cleared=cache.clear())


@router.post("/prune", response_model=PrunedOut)
def prune_cache(cache: AvailabilityCache = Depends(get_cache)):
    return PrunedOut(pruned=cache.prune_expired())


@router.delete("/isbn/{isbn}", response_model=InvalidatedOut)
def invalidate_isbn(isbn: str, cache: AvailabilityCache = Depends(get_cache)):
    # entries are keyed by ISBN-13; accept either form
    validation = validate_isbn(isbn)
    key = validation.isbn_13 if validation.valid and validation.isbn_13 else isbn
    return InvalidatedOut(invalidated=cache.invalidate_by_identifier(key))


@router.delete("/source/{source}", response_model=InvalidatedOut)
def invalidate_source(source: str, cache: AvailabilityCache = Depends(get_cache)):
    return InvalidatedOut(invalidated=cache.invalidate_by_source(source))
