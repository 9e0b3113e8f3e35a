from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class RateLimiter:
    """Fixed-window request counter for one adapter.

    The window resets wholesale once `window_seconds` have passed since it
    started. When the budget for the current window is spent, `acquire()`
    suspends until the window would have reset, then opens a fresh one.
    Calls are delayed, never dropped.
    """

    def __init__(
        self,
        requests_per_minute: int,
        *,
        name: str = "adapter",
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if requests_per_minute < 1:
            raise ValueError("requests_per_minute must be at least 1")
        self.requests_per_minute = requests_per_minute
        self.name = name
        self.window_seconds = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._window_start = clock()
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    async def acquire(self) -> None:
        now = self._clock()

        if now - self._window_start >= self.window_seconds:
            self._window_start = now
            self._count = 0

        if self._count >= self.requests_per_minute:
            wait = self.window_seconds - (now - self._window_start)
            if wait > 0:
                logger.debug(
                    "[%s] rate limit of %d/min reached; waiting %.2fs",
                    self.name,
                    self.requests_per_minute,
                    wait,
                )
                await self._sleep(wait)
            self._window_start = self._clock()
            self._count = 0

        self._count += 1
