"""Pacing gate shared by every generative-AI call of one process instance."""

from __future__ import annotations

import asyncio
import logging
import time
from functools import lru_cache
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Accepted calls start no closer than ``min_interval_s`` apart.

    The read-elapsed, sleep, stamp sequence runs under one lock, so concurrent
    callers are admitted one at a time even when their tasks run in parallel.
    ``clock`` and ``sleep`` are injectable for tests.
    """

    def __init__(
        self,
        min_interval_s: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._min_interval = max(0.0, float(min_interval_s))
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_accepted: float | None = None

    @property
    def min_interval_s(self) -> float:
        return self._min_interval

    @property
    def last_accepted(self) -> float | None:
        return self._last_accepted

    async def acquire(self) -> float:
        """Wait for this caller's turn; returns the seconds spent waiting."""
        async with self._lock:
            waited = 0.0
            if self._last_accepted is not None:
                elapsed = self._clock() - self._last_accepted
                if elapsed < self._min_interval:
                    waited = self._min_interval - elapsed
                    logger.info("Rate limiting: waiting %.1fs before next Gemini request", waited)
                    await self._sleep(waited)
            self._last_accepted = self._clock()
            return waited

    async def stamp(self) -> None:
        """Record "now" as the last accepted call (after an out-of-band wait)."""
        async with self._lock:
            self._last_accepted = self._clock()


@lru_cache(maxsize=None)
def shared_rate_limiter(min_interval_s: float) -> RateLimiter:
    """Process-wide limiter for a given spacing; every default-built client paces through it."""
    return RateLimiter(min_interval_s)
