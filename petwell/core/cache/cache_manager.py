"""
Cache backends for short-lived, TTL-bound values.

Features:
- In-process memory cache with LRU eviction and per-entry TTL
- Distributed Redis cache for multi-instance deployments
- Thread-safe operations
"""

import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from ..logging import get_logger

logger = get_logger(__name__)


class CacheFullError(Exception):
    """Raised when a cache that may not drop live entries is full."""

    def __init__(self, max_size: int):
        super().__init__(f"Cache is full ({max_size} live entries)")
        self.max_size = max_size


@dataclass
class CacheEntry:
    """Cache entry with expiry metadata."""
    value: Any
    expires_at: Optional[float] = None
    created_at: float = field(default_factory=time.monotonic)

    def is_expired(self, now: float) -> bool:
        """Check if entry is expired at the given monotonic time."""
        if self.expires_at is None:
            return False
        return now >= self.expires_at


class CacheBackend(ABC):
    """Abstract cache backend interface."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get value by key."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value with optional TTL in seconds."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists."""

    @abstractmethod
    async def clear(self) -> bool:
        """Clear all cache entries."""

    async def close(self) -> None:
        """Release backend resources."""


class MemoryCacheBackend(CacheBackend):
    """
    In-memory cache backend with LRU eviction.

    With evict_live=False only expired entries are ever dropped, and a set
    on a full cache raises CacheFullError instead.
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None,
        evict_live: bool = True
    ):
        self.max_size = max_size
        self.evict_live = evict_live
        self.default_ttl = default_ttl
        self._clock = clock or time.monotonic
        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = threading.RLock()
        self._hits = 0
        self._misses = 0

    async def get(self, key: str) -> Optional[Any]:
        """Get value from memory cache."""
        with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self._clock()):
                del self._cache[key]
                self._misses += 1
                return None

            # Most recently used goes to the end
            self._cache.move_to_end(key)
            self._hits += 1
            return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in memory cache."""
        with self._lock:
            now = self._clock()
            if key not in self._cache and len(self._cache) >= self.max_size:
                self._evict(now)

            ttl = ttl or self.default_ttl
            self._cache[key] = CacheEntry(
                value=value,
                expires_at=now + ttl if ttl else None,
                created_at=now
            )
            self._cache.move_to_end(key)
            return True

    async def delete(self, key: str) -> bool:
        """Delete key from memory cache."""
        with self._lock:
            return self._cache.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        """Check if key exists in memory cache."""
        with self._lock:
            entry = self._cache.get(key)
            return entry is not None and not entry.is_expired(self._clock())

    async def clear(self) -> bool:
        """Clear all memory cache entries."""
        with self._lock:
            self._cache.clear()
            return True

    def _evict(self, now: float) -> None:
        """Drop expired entries first, then the least recently used one if allowed."""
        expired = [k for k, entry in self._cache.items() if entry.is_expired(now)]
        for k in expired:
            del self._cache[k]

        if len(self._cache) < self.max_size:
            return

        if not self.evict_live:
            logger.error("Cache full, refusing to drop a live entry", max_size=self.max_size)
            raise CacheFullError(self.max_size)

        lru_key, _ = self._cache.popitem(last=False)
        logger.debug("Evicted least recently used cache entry", key=lru_key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            total = self._hits + self._misses
            return {
                "entries": len(self._cache),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_ratio": self._hits / total if total else 0.0,
            }


class RedisCacheBackend(CacheBackend):
    """
    Redis cache backend.

    Errors from Redis are logged and re-raised; callers decide whether
    a cache outage is fatal for the request.
    """

    def __init__(self, redis: Union[str, aioredis.Redis], key_prefix: str = "petwell:"):
        if isinstance(redis, str):
            self._redis = aioredis.from_url(redis, decode_responses=True)
        else:
            self._redis = redis
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        """Add prefix to key."""
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[Any]:
        """Get value from Redis."""
        try:
            data = await self._redis.get(self._make_key(key))
        except RedisError as e:
            logger.error("Redis get failed", key=key, error=str(e))
            raise

        if isinstance(data, bytes):
            return data.decode("utf-8")
        return data

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in Redis."""
        try:
            if ttl:
                await self._redis.set(self._make_key(key), value, ex=ttl)
            else:
                await self._redis.set(self._make_key(key), value)
        except RedisError as e:
            logger.error("Redis set failed", key=key, error=str(e))
            raise
        return True

    async def delete(self, key: str) -> bool:
        """Delete key from Redis."""
        result = await self._redis.delete(self._make_key(key))
        return result > 0

    async def exists(self, key: str) -> bool:
        """Check if key exists in Redis."""
        result = await self._redis.exists(self._make_key(key))
        return result > 0

    async def clear(self) -> bool:
        """Clear all cache entries with prefix."""
        keys = [key async for key in self._redis.scan_iter(match=f"{self.key_prefix}*")]
        if keys:
            await self._redis.delete(*keys)
        return True

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._redis.aclose()
