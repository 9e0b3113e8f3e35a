from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable

from book_service.core.config import settings
from book_service.domain.types import AvailabilityRecord

logger = logging.getLogger(__name__)


class _Unset:
    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNSET"


# Returned by AvailabilityCache.get for keys that were never stored or have expired.
# Distinct from None, which is a cached "source checked, nothing available".
UNSET = _Unset()


@dataclass(frozen=True)
class CacheEntry:
    data: AvailabilityRecord | None
    expires_at: float


@dataclass(frozen=True)
class CacheStats:
    size: int
    valid: int
    expired: int


@dataclass(frozen=True)
class CacheEntryView:
    key: str
    data: AvailabilityRecord | None
    expires_at: datetime
    is_expired: bool


def _cache_key(identifier: str, source: str) -> str:
    return f"{identifier}:{source}"


def _split_key(key: str) -> tuple[str, str]:
    identifier, _, source = key.rpartition(":")
    return identifier, source


class AvailabilityCache:
    """In-process TTL store of per-(identifier, source) lookup results.

    Behavior:
    - Negative results (None) are cached like positive ones.
    - Expiry is lazy: an expired entry is removed when it is read or pruned.
    - Writes overwrite unconditionally (last write wins).
    """

    def __init__(
        self,
        default_ttl_hours: float,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self.default_ttl_hours = default_ttl_hours
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def _is_expired(self, entry: CacheEntry, now: float) -> bool:
        return now >= entry.expires_at

    def get(self, identifier: str, source: str) -> AvailabilityRecord | None | _Unset:
        key = _cache_key(identifier, source)
        entry = self._entries.get(key)
        if entry is None:
            return UNSET

        if self._is_expired(entry, self._clock()):
            del self._entries[key]
            return UNSET

        return entry.data

    def set(
        self,
        identifier: str,
        source: str,
        value: AvailabilityRecord | None,
        ttl_hours: float | None = None,
    ) -> None:
        ttl = self.default_ttl_hours if ttl_hours is None else ttl_hours
        self._entries[_cache_key(identifier, source)] = CacheEntry(
            data=value,
            expires_at=self._clock() + ttl * 3600,
        )

    def has_entry(self, identifier: str, source: str) -> bool:
        return _cache_key(identifier, source) in self._entries

    def invalidate(self, identifier: str, source: str) -> bool:
        return self._entries.pop(_cache_key(identifier, source), None) is not None

    def invalidate_by_identifier(self, identifier: str) -> int:
        doomed = [k for k in self._entries if _split_key(k)[0] == identifier]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def invalidate_by_source(self, source: str) -> int:
        doomed = [k for k in self._entries if _split_key(k)[1] == source]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def prune_expired(self) -> int:
        now = self._clock()
        doomed = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for k in doomed:
            del self._entries[k]
        if doomed:
            logger.debug("Pruned %d expired availability entries", len(doomed))
        return len(doomed)

    def clear(self) -> int:
        count = len(self._entries)
        self._entries.clear()
        return count

    def stats(self) -> CacheStats:
        now = self._clock()
        expired = sum(1 for e in self._entries.values() if self._is_expired(e, now))
        return CacheStats(
            size=len(self._entries),
            valid=len(self._entries) - expired,
            expired=expired,
        )

    def entries(self) -> list[CacheEntryView]:
        now = self._clock()
        return [
            CacheEntryView(
                key=key,
                data=entry.data,
                expires_at=datetime.fromtimestamp(entry.expires_at, tz=timezone.utc),
                is_expired=self._is_expired(entry, now),
            )
            for key, entry in self._entries.items()
        ]


@lru_cache
def get_availability_cache() -> AvailabilityCache:
    return AvailabilityCache(default_ttl_hours=settings.cache_ttl_hours)
