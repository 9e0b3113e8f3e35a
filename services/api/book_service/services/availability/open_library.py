from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from book_service.domain.errors import SourceError
from book_service.domain.types import AvailabilityRecord, Format, RateLimit
from book_service.services.availability.base import RateLimitedAdapter
from book_service.services.availability.rate_limit import RateLimiter
from book_service.services.availability.retry import RetryPolicy

logger = logging.getLogger(__name__)

_READABLE_EBOOK_STATES = {"open", "borrow_available"}
_READABLE_PREVIEWS = {"full", "borrow"}


@dataclass(frozen=True)
class SearchHit:
    found: bool
    isbn_13: str | None = None
    isbn_10: str | None = None


def _json(resp: httpx.Response, source: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise SourceError(source, f"invalid JSON from {resp.request.url}") from exc


class OpenLibraryAdapter(RateLimitedAdapter):
    """Free ebooks (read or borrow) from the Open Library / Internet Archive APIs."""

    name = "open_library"
    rate_limit = RateLimit(requests_per_minute=100)

    BASE_URL = "https://openlibrary.org"

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        base_url: str | None = None,
        limiter: RateLimiter | None = None,
        retry: RetryPolicy | None = None,
    ):
        super().__init__(client, limiter=limiter, retry=retry)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    def supports_format(self, format: Format) -> bool:
        return format == Format.ebook

    async def check(self, isbn: str) -> AvailabilityRecord | None:
        await self.limiter.acquire()

        bib_key = f"ISBN:{isbn}"
        resp = await self._get(
            f"{self.base_url}/api/books",
            params={"bibkeys": bib_key, "format": "json", "jscmd": "details"},
        )
        data = _json(resp, self.name)
        book_info = data.get(bib_key) if isinstance(data, dict) else None
        if not book_info:
            return None

        details = book_info.get("details") or {}
        if not details.get("key"):
            return None

        preview = book_info.get("preview")
        url = book_info.get("preview_url") or book_info.get("info_url") or ""

        try:
            readable = await self._has_readable_ebook(isbn)
        except SourceError as exc:
            # The brief volumes API is flaky; a "full" preview is still a free read.
            logger.warning("[%s] volumes lookup failed for %s: %s", self.name, isbn, exc)
            readable = preview == "full"
        else:
            readable = readable or preview in _READABLE_PREVIEWS

        if not readable:
            return None

        return AvailabilityRecord(
            source=self.name,
            format=Format.ebook,
            price=None,
            currency="USD",
            url=url,
            estimated_delivery="instant",
            in_stock=True,
        )

    async def _has_readable_ebook(self, isbn: str) -> bool:
        resp = await self._get(f"{self.base_url}/api/volumes/brief/isbn/{isbn}.json")
        data = _json(resp, self.name)
        records = data.get("records") if isinstance(data, dict) else None

        for record in (records or {}).values():
            ebooks = ((record or {}).get("data") or {}).get("ebooks") or []
            for ebook in ebooks:
                if ebook.get("availability") in _READABLE_EBOOK_STATES:
                    return True
        return False

    async def search_book(self, title: str, author: str | None = None) -> SearchHit:
        """Look a title up by name; used to sanity-check generated candidates."""
        await self.limiter.acquire()

        query = f"title:{title}"
        if author:
            query += f" author:{author}"

        resp = await self._get(
            f"{self.base_url}/search.json", params={"q": query, "limit": 5}
        )
        docs = _json(resp, self.name).get("docs") or []
        if not docs:
            return SearchHit(found=False)

        isbns: list[str] = docs[0].get("isbn") or []
        isbn_13 = next((i for i in isbns if len(i) == 13), None)
        isbn_10 = next((i for i in isbns if len(i) == 10), None)
        return SearchHit(found=True, isbn_13=isbn_13, isbn_10=isbn_10)

    async def verify_isbn(self, isbn: str) -> bool:
        await self.limiter.acquire()

        bib_key = f"ISBN:{isbn}"
        resp = await self._get(
            f"{self.base_url}/api/books", params={"bibkeys": bib_key, "format": "json"}
        )
        data = _json(resp, self.name)
        return bool(data)
