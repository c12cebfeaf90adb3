"""
Unit tests for the token revocation cache
"""

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from petwell.auth.revocation import RevocationCache
from petwell.core.cache import MemoryCacheBackend


@pytest.fixture
def backend(monotonic):
    return MemoryCacheBackend(max_size=100, clock=monotonic)


@pytest.fixture
def cache(backend):
    return RevocationCache(backend, ttl_seconds=60)


@pytest.mark.unit
class TestRevocationCache:
    """Test revocation semantics"""

    @pytest.mark.asyncio
    async def test_put_and_get(self, cache):
        await cache.put("42", "token-a")

        assert await cache.get("42") == "token-a"
        assert await cache.is_revoked("42", "token-a")

    @pytest.mark.asyncio
    async def test_exact_string_match_only(self, cache):
        await cache.put("42", "token-a")

        assert not await cache.is_revoked("42", "token-b")
        assert not await cache.is_revoked("42", "token-a ")
        assert not await cache.is_revoked("43", "token-a")

    @pytest.mark.asyncio
    async def test_latest_revocation_replaces_previous(self, cache):
        await cache.put("42", "token-a")
        await cache.put("42", "token-b")

        assert await cache.is_revoked("42", "token-b")
        assert not await cache.is_revoked("42", "token-a")

    @pytest.mark.asyncio
    async def test_entry_expires_with_ttl(self, cache, monotonic):
        await cache.put("42", "token-a")

        monotonic.advance(59)
        assert await cache.is_revoked("42", "token-a")

        monotonic.advance(1)
        assert await cache.get("42") is None

    @pytest.mark.asyncio
    async def test_explicit_ttl(self, cache, monotonic):
        await cache.put("42", "token-a", ttl=5)

        monotonic.advance(5)
        assert not await cache.is_revoked("42", "token-a")

    @pytest.mark.asyncio
    async def test_key_prefix(self, backend):
        cache = RevocationCache(backend, ttl_seconds=60)
        await cache.put("42", "token-a")

        assert await backend.get("user_42") == "token-a"

    def test_ttl_must_be_positive(self, backend):
        with pytest.raises(ValueError):
            RevocationCache(backend, ttl_seconds=0)

    @pytest.mark.asyncio
    async def test_backend_errors_propagate(self):
        backend = AsyncMock()
        backend.get.side_effect = RedisConnectionError("down")
        cache = RevocationCache(backend, ttl_seconds=60)

        with pytest.raises(RedisConnectionError):
            await cache.is_revoked("42", "token-a")
