"""Token-bucket rate limiting for outbound provider calls.

``RateLimiter`` bounds three things at once:

- concurrency: at most ``max_concurrent`` operations in flight,
- burst rate: a reservoir of N permits that refills to N at every
  ``refresh_interval_s`` boundary,
- spacing: at least ``min_time_s`` between two operation starts.

Operations that would exceed any bound wait their turn; they never fail.
Limiters are plain instances owned by whoever constructs them, so each
provider gets its own and tests can inject ``NullRateLimiter``.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

from chromaprofiles.core.config.models import RateLimitConfig

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


class RateLimiter:
    """Reservoir + concurrency + min-spacing limiter for async operations.

    Args:
        reservoir: Permits available per refresh interval
        refresh_interval_s: Seconds after which the reservoir refills to ``reservoir``
        max_concurrent: Maximum operations in flight at once
        min_time_s: Minimum seconds between two operation starts
        clock: Monotonic time source (injectable for tests)
        sleep: Async sleep function (injectable for tests)

    Example:
        >>> limiter = RateLimiter(reservoir=50, refresh_interval_s=10.0)
        >>> async with limiter.slot():
        ...     await fetch()
        >>> result = await limiter.schedule(fetch, "ABC123")
    """

    def __init__(
        self,
        reservoir: int = 50,
        refresh_interval_s: float = 10.0,
        max_concurrent: int = 1,
        min_time_s: float = 0.25,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if reservoir < 1:
            raise ValueError("reservoir must be >= 1")
        if refresh_interval_s <= 0:
            raise ValueError("refresh_interval_s must be > 0")
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        if min_time_s < 0:
            raise ValueError("min_time_s must be >= 0")

        self.reservoir = reservoir
        self.refresh_interval_s = refresh_interval_s
        self.max_concurrent = max_concurrent
        self.min_time_s = min_time_s
        self._clock = clock
        self._sleep = sleep

        self._semaphore = asyncio.Semaphore(max_concurrent)
        self._lock = asyncio.Lock()
        self._remaining = reservoir
        self._window_start: float | None = None
        self._last_start: float | None = None

    @classmethod
    def from_config(cls, config: RateLimitConfig, **kwargs: Any) -> RateLimiter:
        """Build a limiter from ``RateLimitConfig``."""
        return cls(
            reservoir=config.reservoir,
            refresh_interval_s=config.refresh_interval_s,
            max_concurrent=config.max_concurrent,
            min_time_s=config.min_time_s,
            **kwargs,
        )

    @property
    def remaining(self) -> int:
        """Permits left in the current interval (as of the last acquisition)."""
        return self._remaining

    def _refill(self, now: float) -> float:
        """Roll the window forward to ``now`` and return its start."""
        if self._window_start is None:
            self._window_start = now
            return now
        elapsed = now - self._window_start
        if elapsed >= self.refresh_interval_s:
            intervals = int(elapsed // self.refresh_interval_s)
            self._window_start += intervals * self.refresh_interval_s
            self._remaining = self.reservoir
        return self._window_start

    async def _acquire_permit(self) -> None:
        # Lock waiters are served FIFO, so permits are granted in arrival order.
        async with self._lock:
            while True:
                now = self._clock()
                window_start = self._refill(now)

                wait = 0.0
                if self._remaining <= 0:
                    wait = window_start + self.refresh_interval_s - now
                elif self._last_start is not None:
                    wait = self._last_start + self.min_time_s - now

                if wait <= 0:
                    self._remaining -= 1
                    self._last_start = now
                    return

                logger.debug(
                    f"Rate limiter waiting {wait:.3f}s (remaining permits: {self._remaining})"
                )
                await self._sleep(wait)

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        """Hold one concurrency slot and one reservoir permit."""
        async with self._semaphore:
            await self._acquire_permit()
            yield

    async def schedule(
        self, fn: Callable[P, Awaitable[T]], *args: P.args, **kwargs: P.kwargs
    ) -> T:
        """Run ``fn(*args, **kwargs)`` inside a limiter slot."""
        async with self.slot():
            return await fn(*args, **kwargs)

    def wrap(self, fn: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        """Return a rate-limited version of a coroutine function."""

        @functools.wraps(fn)
        async def limited(*args: P.args, **kwargs: P.kwargs) -> T:
            return await self.schedule(fn, *args, **kwargs)

        return limited


class NullRateLimiter:
    """Limiter with the ``RateLimiter`` surface that never waits."""

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        yield

    async def schedule(
        self, fn: Callable[P, Awaitable[T]], *args: P.args, **kwargs: P.kwargs
    ) -> T:
        return await fn(*args, **kwargs)

    def wrap(self, fn: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(fn)
        async def limited(*args: P.args, **kwargs: P.kwargs) -> T:
            return await fn(*args, **kwargs)

        return limited
