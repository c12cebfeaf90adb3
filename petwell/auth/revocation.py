"""
Token Revocation Cache

Remembers the most recently revoked token per principal until that token
would have expired anyway.
"""

from typing import Optional

from ..core.cache import CacheBackend
from ..core.logging import get_logger

logger = get_logger(__name__)


class RevocationCache:
    """
    Principal key -> last revoked token, with TTL.

    One entry per principal: revoking a second token replaces the first.
    Backend errors are not caught here so an outage never reads as
    "not revoked".
    """

    def __init__(self, backend: CacheBackend, ttl_seconds: int, key_prefix: str = "user_"):
        if ttl_seconds <= 0:
            raise ValueError("Revocation TTL must be positive")

        self.backend = backend
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def _key(self, principal_key: str) -> str:
        return f"{self.key_prefix}{principal_key}"

    async def put(self, principal_key: str, token: str, ttl: Optional[int] = None) -> None:
        """Store token as the principal's revoked token"""
        await self.backend.set(self._key(principal_key), token, ttl=ttl or self.ttl_seconds)
        logger.info("Token revoked", principal=principal_key)

    async def get(self, principal_key: str) -> Optional[str]:
        """Get the principal's revoked token, if any"""
        return await self.backend.get(self._key(principal_key))

    async def is_revoked(self, principal_key: str, token: str) -> bool:
        """Exact-string match against the stored entry"""
        revoked = await self.get(principal_key)
        return revoked is not None and revoked == token
