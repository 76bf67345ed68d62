"""
Cache-aside fetch orchestration.
"""

import asyncio
import random
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, TYPE_CHECKING

from shared.errors import UpstreamFetchError
from shared.logging import get_logger
from shared.tracing import trace_operation
from ..caching.cache_key import canonicalize
from ..ratelimit.outbound import OutboundRateLimiter

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


# Returned by the cache store for absent keys; a cached None is a hit
_MISS = object()


class CacheStore(Protocol):
    async def get(self, key: str, default: Any = None) -> Any: ...

    async def set(self, key: str, value: Any, ttl: int) -> bool: ...


class Fetcher(Protocol):
    async def fetch(self, target: str) -> Any: ...


class FetchOrchestrator:
    """Serves target URLs from cache, fetching through the limiter on a miss.

    Cache hits never touch the limiter or the upstream. A miss sleeps a small
    random jitter, waits for outbound admission, fetches with retry, and
    writes the payload back to the cache. Cache write failures are logged and
    ignored; every other failure surfaces as ``UpstreamFetchError``.

    With ``coalesce_inflight`` enabled, concurrent misses for the same key
    share a single fetch.
    """

    def __init__(
        self,
        cache: CacheStore,
        limiter: OutboundRateLimiter,
        fetcher: Fetcher,
        *,
        region: str,
        ttl: int,
        prefetch_jitter: float = 0.12,
        coalesce_inflight: bool = False,
        metrics: Optional["MetricsCollector"] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.cache = cache
        self.limiter = limiter
        self.fetcher = fetcher
        self.region = region
        self.ttl = ttl
        self.prefetch_jitter = prefetch_jitter
        self.coalesce_inflight = coalesce_inflight
        self.metrics = metrics
        self.logger = get_logger("scraper.orchestrator")
        self._sleep = sleep
        self._inflight: Dict[str, "asyncio.Future[Any]"] = {}

    def _count_lookup(self, result: str):
        if self.metrics is not None:
            self.metrics.increment_counter("cache_lookups_total", result=result)

    async def get_with_cache(self, target: str) -> Any:
        """Return the payload for ``target``, from cache when possible."""
        key = canonicalize(target, self.region)

        cached = await self.cache.get(key, _MISS)
        if cached is not _MISS:
            self._count_lookup("hit")
            self.logger.debug("Cache hit", target=target, cache_key=key)
            return cached
        self._count_lookup("miss")

        if not self.coalesce_inflight:
            return await self._fetch_and_store(key, target)

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(key, target))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            self.logger.debug("Joining in-flight fetch", target=target, cache_key=key)
        return await asyncio.shield(task)

    async def _fetch_and_store(self, key: str, target: str) -> Any:
        try:
            with trace_operation("scraper.fetch", **{"scraper.target": target, "scraper.cache_key": key}):
                await self._sleep(random.uniform(0, self.prefetch_jitter))
                data = await self.limiter.admit(lambda: self.fetcher.fetch(target))
        except Exception as exc:
            self.logger.error(
                "Upstream fetch failed",
                target=target,
                error=str(exc),
                error_type=exc.__class__.__name__
            )
            raise UpstreamFetchError(details={"target": target}) from exc

        await self._store(key, data)
        return data

    async def _store(self, key: str, data: Any):
        """Best-effort write-through; never changes the request outcome."""
        try:
            stored = await self.cache.set(key, data, self.ttl)
        except Exception as exc:
            self.logger.error("Cache write failed", cache_key=key, error=str(exc))
            return
        if not stored:
            self.logger.warning("Cache write skipped", cache_key=key)
