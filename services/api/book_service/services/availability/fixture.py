from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from book_service.domain.isbn import clean_isbn
from book_service.domain.types import AvailabilityRecord, Format, RateLimit
from book_service.services.availability.rate_limit import RateLimiter
from book_service.services.ranking import price_sort_key

DEFAULT_REQUESTS_PER_MINUTE = 600


class FixtureAdapter:
    """Availability served from a local JSON file.

    File shape::

        {"source": "fixture", "requests_per_minute": 600,
         "items": [{"isbn13": "...", "isbn10": "...", "format": "paperback",
                    "price": 7.5, "url": "...", "estimated_delivery": "...",
                    "in_stock": true}]}
    """

    def __init__(self, fixture_path: str, *, limiter: RateLimiter | None = None):
        self.fixture_path = fixture_path
        self._data = self._load()
        self.name: str = self._data.get("source") or "fixture"
        self.rate_limit = RateLimit(
            requests_per_minute=int(
                self._data.get("requests_per_minute", DEFAULT_REQUESTS_PER_MINUTE)
            )
        )
        self.limiter = limiter or RateLimiter(
            self.rate_limit.requests_per_minute, name=self.name
        )
        self._formats = {Format(it["format"]) for it in self._items()}

    def _load(self) -> dict:
        p = Path(self.fixture_path)
        if not p.exists():
            raise FileNotFoundError(f"Fixture file not found: {p}")
        raw = p.read_text(encoding="utf-8")
        return json.loads(raw)

    def _items(self) -> list[dict[str, Any]]:
        return self._data.get("items", [])

    def supports_format(self, format: Format) -> bool:
        return format in self._formats

    async def check(self, isbn: str) -> AvailabilityRecord | None:
        await self.limiter.acquire()

        wanted = clean_isbn(isbn).upper()
        records = [
            self._to_record(it)
            for it in self._items()
            if wanted
            and wanted
            in (
                clean_isbn(it.get("isbn13") or "").upper(),
                clean_isbn(it.get("isbn10") or "").upper(),
            )
        ]
        if not records:
            return None

        in_stock = [r for r in records if r.in_stock]
        if in_stock:
            return min(in_stock, key=price_sort_key)
        return records[0]

    def _to_record(self, it: dict[str, Any]) -> AvailabilityRecord:
        return AvailabilityRecord(
            source=self.name,
            format=Format(it["format"]),
            price=it.get("price"),
            currency=it.get("currency") or "USD",
            url=it.get("url") or "",
            estimated_delivery=it.get("estimated_delivery") or "unknown",
            in_stock=bool(it.get("in_stock", True)),
        )
