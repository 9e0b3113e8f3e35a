from __future__ import annotations

from fastapi import Depends, HTTPException

from book_service.core.config import Settings, settings
from book_service.domain.types import Format
from book_service.services.availability.registry import AdapterRegistry
from book_service.services.availability.registry import get_registry as _get_registry
from book_service.services.availability_cache import AvailabilityCache, get_availability_cache
from book_service.services.orchestrator import Orchestrator
from book_service.services.profile_store import ProfileStore
from book_service.services.profile_store import get_profile_store as _get_profile_store
from book_service.services.recommendation.generator import CandidateGenerator, build_generator


def get_settings() -> Settings:
    return settings


def get_cache() -> AvailabilityCache:
    return get_availability_cache()


def get_registry() -> AdapterRegistry:
    return _get_registry()


def get_profile_store() -> ProfileStore:
    return _get_profile_store()


def get_generator(cfg: Settings = Depends(get_settings)) -> CandidateGenerator:
    # Built per request so a missing key surfaces as a 502, not a startup crash.
    return build_generator(cfg)


def get_orchestrator(
    registry: AdapterRegistry = Depends(get_registry),
    cache: AvailabilityCache = Depends(get_cache),
    generator: CandidateGenerator = Depends(get_generator),
    profiles: ProfileStore = Depends(get_profile_store),
    cfg: Settings = Depends(get_settings),
) -> Orchestrator:
    return Orchestrator(registry, cache, generator, profiles, cfg)


def get_lookup_orchestrator(
    registry: AdapterRegistry = Depends(get_registry),
    cache: AvailabilityCache = Depends(get_cache),
    profiles: ProfileStore = Depends(get_profile_store),
    cfg: Settings = Depends(get_settings),
) -> Orchestrator:
    """Orchestrator for availability lookups only; needs no candidate generator."""
    return Orchestrator(registry, cache, None, profiles, cfg)


def parse_csv_param(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    return [p.strip() for p in raw.split(",") if p.strip()]


def parse_formats_param(raw: str | None) -> list[Format] | None:
    parts = parse_csv_param(raw)
    if parts is None:
        return None
    try:
        return [Format(p.lower()) for p in parts]
    except ValueError:
        allowed = ", ".join(f.value for f in Format)
        raise HTTPException(status_code=400, detail=f"Invalid formats: {raw} (allowed: {allowed})")
