"""
Process-wide outbound rate limiter for upstream calls.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Optional, TYPE_CHECKING, TypeVar

from shared.errors import RateLimitError
from shared.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector

T = TypeVar("T")


class OutboundRateLimiter:
    """Delays jobs until both the spacing and the reservoir constraints allow them.

    - Consecutive admitted jobs start at least ``min_interval`` seconds apart.
    - At most ``reservoir`` jobs are admitted per ``refresh_interval`` window.
      The budget is refilled to full capacity at each window boundary.

    Waiting callers are admitted in arrival order. Jobs run outside the
    admission lock, so only their start times are spaced. The limiter never
    rejects work unless ``max_queue_depth`` is set.
    """

    def __init__(
        self,
        min_interval: float,
        reservoir: Optional[int] = None,
        refresh_interval: float = 60.0,
        *,
        max_queue_depth: Optional[int] = None,
        metrics: Optional["MetricsCollector"] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        if reservoir is not None and reservoir <= 0:
            raise ValueError("reservoir must be positive")
        if refresh_interval <= 0:
            raise ValueError("refresh_interval must be positive")

        self.min_interval = min_interval
        self.capacity = reservoir
        self.refresh_interval = refresh_interval
        self.max_queue_depth = max_queue_depth
        self.metrics = metrics
        self.logger = get_logger("scraper.limiter")

        self._clock = clock
        self._sleep = sleep
        # Created on first admission so it belongs to the serving event loop
        self._lock: Optional[asyncio.Lock] = None

        self._remaining = reservoir
        self._window_started = clock()
        self._last_dispatch: Optional[float] = None
        self._pending = 0
        self._admitted = 0

    def _refill(self, now: float):
        if self.capacity is None:
            return
        windows = int((now - self._window_started) // self.refresh_interval)
        if windows > 0:
            self._window_started += windows * self.refresh_interval
            self._remaining = self.capacity
            self.logger.debug("Reservoir refilled", capacity=self.capacity)

    def _wait_time(self, now: float) -> float:
        """Seconds until the next job may start; 0 when it may start now."""
        if self.capacity is not None and self._remaining <= 0:
            return max(self._window_started + self.refresh_interval - now, 0.0)
        if self._last_dispatch is not None:
            return max(self._last_dispatch + self.min_interval - now, 0.0)
        return 0.0

    async def _acquire(self):
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            while True:
                now = self._clock()
                self._refill(now)
                wait = self._wait_time(now)
                if wait <= 0:
                    break
                await self._sleep(wait)

            if self.capacity is not None:
                self._remaining -= 1
            self._last_dispatch = self._clock()
            self._admitted += 1

    def _set_queue_gauge(self):
        if self.metrics is not None:
            self.metrics.set_gauge("limiter_queue_depth", self._pending)

    async def admit(self, job: Callable[[], Awaitable[T]]) -> T:
        """Wait for admission, then run ``job`` exactly once and return its result."""
        if self.max_queue_depth is not None and self._pending >= self.max_queue_depth:
            self.logger.warning("Outbound queue full", pending=self._pending, max_queue_depth=self.max_queue_depth)
            raise RateLimitError(
                "Outbound queue full",
                details={"pending": self._pending, "max_queue_depth": self.max_queue_depth}
            )

        self._pending += 1
        self._set_queue_gauge()
        try:
            await self._acquire()
        finally:
            self._pending -= 1
            self._set_queue_gauge()

        return await job()

    def stats(self) -> Dict[str, Any]:
        """Get limiter statistics."""
        return {
            "min_interval": self.min_interval,
            "capacity": self.capacity,
            "remaining": self._remaining,
            "pending": self._pending,
            "admitted": self._admitted,
        }
