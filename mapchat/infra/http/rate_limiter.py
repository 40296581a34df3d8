"""Outbound throttle for rate-capped upstream services (Nominatim)."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable


class IntervalRateLimiter:
    """Serialize callers so that consecutive permits are at least `interval_seconds` apart.

    One instance is shared by every resolver that talks to the same upstream.
    The read-compare-sleep-write sequence runs under a lock, so concurrent
    callers queue up instead of racing on the last-call timestamp.
    """

    def __init__(
        self,
        interval_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._interval = max(0.0, interval_seconds)
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_call: float | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    async def wait(self) -> None:
        """Suspend until the next call is permitted, then record it."""
        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self._interval:
                    await self._sleep(self._interval - elapsed)
            self._last_call = self._clock()

    def reset(self) -> None:
        self._last_call = None
