"""
Redis-backed cache store for upstream payloads.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis

from shared.logging import get_logger


class RedisCacheStore:
    """Cache-aside store with per-entry TTL.

    Values are stored as text: strings verbatim, anything else as JSON. Store
    failures never propagate; a failed read is a miss and a failed write
    returns ``False``.
    """

    def __init__(self, redis_url: str, socket_timeout: float = 5.0):
        self.redis_url = redis_url
        self.socket_timeout = socket_timeout
        self.logger = get_logger("scraper.cache")
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=self.socket_timeout,
                socket_timeout=self.socket_timeout,
                health_check_interval=30
            )
        return self._redis

    @staticmethod
    def serialize(value: Any) -> str:
        return value if isinstance(value, str) else json.dumps(value)

    @staticmethod
    def deserialize(raw: str) -> Any:
        # Upstream may legitimately return plain text
        try:
            return json.loads(raw)
        except ValueError:
            return raw

    async def get(self, key: str, default: Any = None) -> Any:
        """Get a cached value, or ``default`` on miss or store failure.

        A stored JSON ``null`` is a hit and decodes to ``None``; pass a sentinel
        ``default`` to tell it apart from a miss.
        """
        try:
            redis_client = await self._get_redis()
            cached = await redis_client.get(key)
        except Exception as e:
            self.logger.error("Cache get error", key=key, error=str(e))
            return default

        if not cached:
            return default
        if isinstance(cached, bytes):
            cached = cached.decode("utf-8")
        return self.deserialize(cached)

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Store a value with TTL in seconds; returns False on store failure."""
        try:
            redis_client = await self._get_redis()
            await redis_client.set(key, self.serialize(value), ex=ttl)
            self.logger.debug("Cached value", key=key, ttl=ttl)
            return True
        except Exception as e:
            self.logger.error("Cache set error", key=key, error=str(e))
            return False

    async def ping(self) -> bool:
        """Check Redis health."""
        try:
            redis_client = await self._get_redis()
            return bool(await redis_client.ping())
        except Exception as e:
            self.logger.warning("Cache health check failed", error=str(e))
            return False

    async def close(self):
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
