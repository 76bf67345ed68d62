"""
Unit tests for the Redis cache store.
"""

import json

import pytest
from unittest.mock import AsyncMock, patch

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_scraper.app.caching.cache_store import RedisCacheStore


class TestRedisCacheStore:
    """Test cases for RedisCacheStore."""

    @pytest.fixture
    def cache_store(self):
        """Create RedisCacheStore instance."""
        return RedisCacheStore("redis://localhost:6379/0")

    @pytest.fixture
    def mock_redis(self):
        """Mock Redis client."""
        return AsyncMock()

    @pytest.mark.asyncio
    async def test_get_structured_payload(self, cache_store, mock_redis):
        """JSON text is deserialized on read."""
        mock_redis.get.return_value = json.dumps({"items": [1, 2]})

        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            result = await cache_store.get("sc:cache:abc")

        assert result == {"items": [1, 2]}
        mock_redis.get.assert_called_once_with("sc:cache:abc")

    @pytest.mark.asyncio
    async def test_get_plain_text_payload(self, cache_store, mock_redis):
        """Non-JSON text is returned as-is."""
        mock_redis.get.return_value = "<html>hello</html>"

        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            result = await cache_store.get("sc:cache:abc")

        assert result == "<html>hello</html>"

    @pytest.mark.asyncio
    async def test_get_bytes_payload(self, cache_store, mock_redis):
        """Byte responses are decoded before deserializing."""
        mock_redis.get.return_value = b'{"a": 1}'

        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            result = await cache_store.get("sc:cache:abc")

        assert result == {"a": 1}

    @pytest.mark.asyncio
    async def test_get_miss(self, cache_store, mock_redis):
        """Missing keys return None."""
        mock_redis.get.return_value = None

        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            assert await cache_store.get("sc:cache:abc") is None

    @pytest.mark.asyncio
    async def test_get_miss_returns_default(self, cache_store, mock_redis):
        """Missing keys return the caller's default."""
        marker = object()
        mock_redis.get.return_value = None

        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            assert await cache_store.get("sc:cache:abc", marker) is marker

    @pytest.mark.asyncio
    async def test_get_cached_null_is_hit(self, cache_store, mock_redis):
        """A stored JSON null decodes to None instead of the miss default."""
        marker = object()
        mock_redis.get.return_value = "null"

        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            assert await cache_store.get("sc:cache:abc", marker) is None

    @pytest.mark.asyncio
    async def test_get_store_error_is_miss(self, cache_store, mock_redis):
        """Store failures on read degrade to a miss."""
        mock_redis.get.side_effect = ConnectionError("Connection refused")

        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            assert await cache_store.get("sc:cache:abc") is None

    @pytest.mark.asyncio
    async def test_set_structured_payload(self, cache_store, mock_redis):
        """Structured payloads are stored as JSON with expiry."""
        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            result = await cache_store.set("sc:cache:abc", {"a": 1}, 120)

        assert result is True
        mock_redis.set.assert_called_once_with("sc:cache:abc", '{"a": 1}', ex=120)

    @pytest.mark.asyncio
    async def test_set_text_payload_verbatim(self, cache_store, mock_redis):
        """Text payloads are stored without re-encoding."""
        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            await cache_store.set("sc:cache:abc", "plain body", 60)

        mock_redis.set.assert_called_once_with("sc:cache:abc", "plain body", ex=60)

    @pytest.mark.asyncio
    async def test_set_store_error_returns_false(self, cache_store, mock_redis):
        """Store failures on write are absorbed."""
        mock_redis.set.side_effect = ConnectionError("Connection refused")

        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            assert await cache_store.set("sc:cache:abc", {"a": 1}, 60) is False

    @pytest.mark.asyncio
    async def test_ping(self, cache_store, mock_redis):
        """Health probe reflects Redis availability."""
        mock_redis.ping.return_value = True
        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            assert await cache_store.ping() is True

        mock_redis.ping.side_effect = ConnectionError("down")
        with patch.object(cache_store, '_get_redis', new_callable=AsyncMock, return_value=mock_redis):
            assert await cache_store.ping() is False

    @pytest.mark.asyncio
    async def test_close(self, cache_store, mock_redis):
        """Closing releases the connection."""
        cache_store._redis = mock_redis
        await cache_store.close()
        mock_redis.aclose.assert_awaited_once()
        assert cache_store._redis is None
