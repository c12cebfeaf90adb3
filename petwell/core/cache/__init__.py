"""
Cache backends used for token revocation.

- MemoryCacheBackend: in-process LRU cache with per-entry TTL
- RedisCacheBackend: shared cache for multi-instance deployments
"""

from .cache_manager import (
    CacheBackend,
    CacheEntry,
    CacheFullError,
    MemoryCacheBackend,
    RedisCacheBackend,
)

__all__ = [
    "CacheBackend",
    "CacheEntry",
    "CacheFullError",
    "MemoryCacheBackend",
    "RedisCacheBackend",
]
