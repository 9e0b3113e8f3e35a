from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Exponential backoff around a fallible coroutine.

    Makes up to ``max_retries + 1`` attempts. After failed attempt ``n``
    (0-based) it waits ``base_delay_ms * 2**n`` milliseconds. The last
    failure is re-raised unchanged.
    """

    def __init__(
        self,
        max_retries: int = 3,
        base_delay_ms: float = 1000,
        *,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_retries < 0:
            raise ValueError("max_retries cannot be negative")
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.retry_on = retry_on
        self._sleep = sleep

    def delay_for(self, attempt: int) -> float:
        """Backoff in seconds after the given 0-based attempt."""
        return (self.base_delay_ms * (2**attempt)) / 1000.0

    async def run(self, fn: Callable[[], Awaitable[T]], *, label: str = "request") -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except self.retry_on as exc:
                if attempt >= self.max_retries:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "[%s] request failed (%s); retrying in %.2fs (attempt %s/%s)",
                    label,
                    type(exc).__name__,
                    delay,
                    attempt + 1,
                    self.max_retries,
                )
                await self._sleep(delay)
                attempt += 1
