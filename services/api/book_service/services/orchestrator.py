from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

from book_service.core.config import Settings
from book_service.domain.errors import CandidateGenerationError, ProfileNotFoundError
from book_service.domain.types import (
    AvailabilityRecord,
    BookCandidate,
    BookResult,
    Format,
    RecommendationResponse,
    UserProfile,
)
from book_service.services.availability.base import SourceAdapter
from book_service.services.availability.registry import AdapterRegistry
from book_service.services.availability_cache import UNSET, AvailabilityCache
from book_service.services.profile_store import ProfileStore
from book_service.services.ranking import build_result, rank_results
from book_service.services.recommendation.filters import (
    filter_disliked_authors,
    filter_previously_read,
)
from book_service.services.recommendation.generator import CandidateGenerator

logger = logging.getLogger(__name__)

ANONYMOUS_PROFILE_ID = "anonymous"


@dataclass(frozen=True)
class OrchestrationOptions:
    override_interests: list[str] | None = None
    override_price_ceiling: float | None = None
    override_formats: list[Format] | None = None
    skip_cache: bool = False


def anonymous_profile(cfg: Settings, **fields: Any) -> UserProfile:
    """Profile for one-off requests, with unset fields taken from config."""
    data = {k: v for k, v in fields.items() if v is not None}
    data.setdefault("price_ceiling", cfg.price_ceiling_default)
    data.setdefault("formats_accepted", list(cfg.formats_default))
    data["id"] = ANONYMOUS_PROFILE_ID
    return UserProfile(**data)


def _effective_profile(profile: UserProfile, options: OrchestrationOptions) -> UserProfile:
    changes: dict[str, Any] = {}
    if options.override_interests is not None:
        changes["interests"] = list(options.override_interests)
    if options.override_price_ceiling is not None:
        changes["price_ceiling"] = options.override_price_ceiling
    if options.override_formats is not None:
        changes["formats_accepted"] = list(options.override_formats)
    return profile.model_copy(update=changes) if changes else profile


def _describe(record: AvailabilityRecord | None) -> str:
    if record is None:
        return "-"
    price = "free" if record.price is None else f"{record.price:.2f} {record.currency}"
    return f"{record.source} {record.format.value} {price}"


class Orchestrator:
    """Runs the recommend -> filter -> check availability -> rank pipeline."""

    def __init__(
        self,
        registry: AdapterRegistry,
        cache: AvailabilityCache,
        generator: CandidateGenerator | None,
        profiles: ProfileStore,
        settings: Settings,
    ):
        self.registry = registry
        self.cache = cache
        self.generator = generator
        self.profiles = profiles
        self.settings = settings

    async def get_recommendations(
        self,
        profile_id: str,
        options: OrchestrationOptions | None = None,
    ) -> RecommendationResponse:
        profile = self.profiles.get(profile_id)
        if profile is None:
            raise ProfileNotFoundError(profile_id)
        return await self.get_recommendations_for_profile(profile, options)

    async def get_recommendations_for_profile(
        self,
        profile: UserProfile,
        options: OrchestrationOptions | None = None,
    ) -> RecommendationResponse:
        if self.generator is None:
            raise CandidateGenerationError("No candidate generator configured")
        options = options or OrchestrationOptions()
        effective = _effective_profile(profile, options)

        logger.info(
            "Generating recommendations for profile %s: interests=%s price_ceiling=%.2f formats=%s",
            effective.id,
            ", ".join(effective.interests),
            effective.price_ceiling,
            ", ".join(f.value for f in effective.formats_accepted),
        )

        candidates = await self.generator.generate(effective, self.settings.candidate_count)
        total_candidates = len(candidates)
        logger.info("Generator returned %d candidates", total_candidates)

        candidates = filter_previously_read(candidates, effective.previously_read)
        logger.info("%d candidates after filtering previously read", len(candidates))
        candidates = filter_disliked_authors(candidates, effective.disliked_authors)
        logger.info("%d candidates after filtering disliked authors", len(candidates))

        results: list[BookResult] = []
        for candidate in candidates:
            result = await self._evaluate(candidate, effective, options.skip_cache)
            results.append(result)
            if result.meets_criteria:
                logger.info("Match %r: %s", candidate.title, _describe(result.best_option))
            else:
                logger.info("No matching availability for %r", candidate.title)

        matching = rank_results(results)
        final = matching[: self.settings.max_results]
        logger.info("Returning %d recommendations", len(final))

        return RecommendationResponse(
            recommendations=final,
            filtered_count=len(results) - len(matching),
            total_candidates=total_candidates,
        )

    async def check_isbn_availability(
        self,
        isbn: str,
        formats: Sequence[Format] | None = None,
        skip_cache: bool = False,
    ) -> list[AvailabilityRecord]:
        """Availability of one ISBN across enabled sources, independent of any profile."""
        availability: list[AvailabilityRecord] = []
        for adapter in self._enabled_adapters(formats):
            record = await self._resolve(isbn, adapter, skip_cache)
            if record is not None:
                availability.append(record)
        return availability

    async def _evaluate(
        self, candidate: BookCandidate, profile: UserProfile, skip_cache: bool
    ) -> BookResult:
        availability = await self.check_isbn_availability(
            candidate.isbn_13, profile.formats_accepted, skip_cache
        )
        return build_result(
            candidate, availability, profile.formats_accepted, profile.price_ceiling
        )

    def _enabled_adapters(self, formats: Sequence[Format] | None) -> list[SourceAdapter]:
        adapters: list[SourceAdapter] = []
        for name in self.settings.enabled_sources:
            adapter = self.registry.get(name)
            if adapter is None:
                continue
            if formats is not None and not any(adapter.supports_format(f) for f in formats):
                continue
            adapters.append(adapter)
        return adapters

    async def _resolve(
        self, isbn: str, adapter: SourceAdapter, skip_cache: bool
    ) -> AvailabilityRecord | None:
        if not skip_cache:
            cached = self.cache.get(isbn, adapter.name)
            if cached is not UNSET:
                return cached

        try:
            logger.debug("Checking %s for ISBN %s", adapter.name, isbn)
            record = await adapter.check(isbn)
        except Exception:
            logger.warning("Error checking %s for ISBN %s", adapter.name, isbn, exc_info=True)
            return None

        self.cache.set(isbn, adapter.name, record)
        return record
