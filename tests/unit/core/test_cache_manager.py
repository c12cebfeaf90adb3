"""
Unit tests for the cache backends
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from petwell.core.cache import CacheEntry, CacheFullError, MemoryCacheBackend, RedisCacheBackend


@pytest.fixture
def memory_cache(monotonic):
    return MemoryCacheBackend(max_size=3, clock=monotonic)


@pytest.mark.unit
class TestMemoryCacheBackend:
    """Test the LRU + TTL memory cache"""

    @pytest.mark.asyncio
    async def test_set_get_delete(self, memory_cache):
        await memory_cache.set("a", "1")

        assert await memory_cache.get("a") == "1"
        assert await memory_cache.exists("a")
        assert await memory_cache.delete("a")
        assert await memory_cache.get("a") is None
        assert not await memory_cache.delete("a")

    @pytest.mark.asyncio
    async def test_ttl_expiry_boundary(self, memory_cache, monotonic):
        await memory_cache.set("a", "1", ttl=10)

        monotonic.advance(9)
        assert await memory_cache.get("a") == "1"

        monotonic.advance(1)
        assert await memory_cache.get("a") is None
        assert not await memory_cache.exists("a")

    @pytest.mark.asyncio
    async def test_default_ttl(self, monotonic):
        cache = MemoryCacheBackend(default_ttl=5, clock=monotonic)
        await cache.set("a", "1")

        monotonic.advance(5)
        assert await cache.get("a") is None

    @pytest.mark.asyncio
    async def test_evicts_least_recently_used(self, memory_cache):
        await memory_cache.set("a", "1")
        await memory_cache.set("b", "2")
        await memory_cache.set("c", "3")
        await memory_cache.get("a")

        await memory_cache.set("d", "4")

        assert await memory_cache.get("b") is None
        assert await memory_cache.get("a") == "1"
        assert len(memory_cache) == 3

    @pytest.mark.asyncio
    async def test_evicts_expired_before_live_entries(self, memory_cache, monotonic):
        await memory_cache.set("a", "1")
        await memory_cache.set("b", "2", ttl=1)
        await memory_cache.set("c", "3")
        monotonic.advance(2)

        await memory_cache.set("d", "4")

        assert await memory_cache.get("a") == "1"
        assert await memory_cache.get("c") == "3"

    @pytest.mark.asyncio
    async def test_without_live_eviction_full_cache_refuses_new_keys(self, monotonic):
        cache = MemoryCacheBackend(max_size=2, clock=monotonic, evict_live=False)
        await cache.set("a", "1", ttl=10)
        await cache.set("b", "2", ttl=20)

        with pytest.raises(CacheFullError):
            await cache.set("c", "3")
        assert await cache.get("a") == "1"

        monotonic.advance(10)
        await cache.set("c", "3")

        assert await cache.get("b") == "2"
        assert await cache.get("c") == "3"

    @pytest.mark.asyncio
    async def test_overwrite_does_not_evict(self, memory_cache):
        for key in ("a", "b", "c"):
            await memory_cache.set(key, key)

        await memory_cache.set("a", "again")

        assert len(memory_cache) == 3
        assert await memory_cache.get("a") == "again"

    @pytest.mark.asyncio
    async def test_stats(self, memory_cache):
        await memory_cache.set("a", "1")
        await memory_cache.get("a")
        await memory_cache.get("missing")

        stats = memory_cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_ratio"] == 0.5

    @pytest.mark.asyncio
    async def test_clear(self, memory_cache):
        await memory_cache.set("a", "1")
        await memory_cache.clear()

        assert len(memory_cache) == 0


def test_cache_entry_without_expiry_never_expires():
    assert not CacheEntry(value="x").is_expired(now=1e12)


@pytest.mark.unit
class TestRedisCacheBackend:
    """Test the Redis backend against a mocked client"""

    @pytest.mark.asyncio
    async def test_set_uses_prefix_and_ttl(self):
        redis = AsyncMock()
        cache = RedisCacheBackend(redis, key_prefix="petwell:")

        await cache.set("user_1", "token", ttl=60)

        redis.set.assert_awaited_once_with("petwell:user_1", "token", ex=60)

    @pytest.mark.asyncio
    async def test_get_decodes_bytes(self):
        redis = AsyncMock()
        redis.get.return_value = b"token"
        cache = RedisCacheBackend(redis)

        assert await cache.get("user_1") == "token"
        redis.get.assert_awaited_once_with("petwell:user_1")

    @pytest.mark.asyncio
    async def test_errors_are_raised_not_swallowed(self):
        redis = AsyncMock()
        redis.get.side_effect = RedisConnectionError("connection refused")
        cache = RedisCacheBackend(redis)

        with pytest.raises(RedisConnectionError):
            await cache.get("user_1")

    @pytest.mark.asyncio
    async def test_close(self):
        redis = AsyncMock()
        await RedisCacheBackend(redis).close()

        redis.aclose.assert_awaited_once()
