from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx

from book_service.core.config import settings
from book_service.domain.errors import SourceError
from book_service.domain.types import AvailabilityRecord, Format, RateLimit
from book_service.services.availability.rate_limit import RateLimiter
from book_service.services.availability.retry import RetryPolicy


@runtime_checkable
class SourceAdapter(Protocol):
    name: str
    rate_limit: RateLimit

    def supports_format(self, format: Format) -> bool: ...

    async def check(self, isbn: str) -> AvailabilityRecord | None:
        """Return the source's offer for `isbn`, or None when it has nothing.

        Raises SourceError for transport or parse failures.
        """
        ...


def default_retry_policy() -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.retry_max_attempts,
        base_delay_ms=settings.retry_base_delay_ms,
        retry_on=(httpx.HTTPError,),
    )


async def http_get(
    client: httpx.AsyncClient,
    url: str,
    *,
    source: str,
    retry: RetryPolicy,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """GET with retries; any failure that survives them becomes a SourceError."""

    async def _attempt() -> httpx.Response:
        resp = await client.get(url, params=params, headers=headers)
        resp.raise_for_status()
        return resp

    try:
        return await retry.run(_attempt, label=source)
    except httpx.HTTPError as exc:
        raise SourceError(source, f"request to {url} failed: {exc}") from exc


class RateLimitedAdapter:
    """Holds the limiter/retry pair every concrete adapter composes."""

    name: str
    rate_limit: RateLimit

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        limiter: RateLimiter | None = None,
        retry: RetryPolicy | None = None,
    ):
        self._client = client
        self.limiter = limiter or RateLimiter(
            self.rate_limit.requests_per_minute, name=self.name
        )
        self.retry = retry or default_retry_policy()

    async def _get(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        return await http_get(
            self._client,
            url,
            source=self.name,
            retry=self.retry,
            params=params,
            headers=headers,
        )
