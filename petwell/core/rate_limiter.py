"""
Rate Limiter

Token bucket rate limiting keyed by client identity.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitConfig:
    """Rate limiter configuration"""
    capacity: int = 10                 # Bucket size (burst)
    refill_amount: float = 10.0        # Tokens added per refill period
    refill_period: float = 60.0        # Refill period in seconds
    cleanup_interval: float = 300.0    # Seconds between idle bucket sweeps

    @property
    def refill_rate(self) -> float:
        """Tokens per second"""
        return self.refill_amount / self.refill_period


@dataclass
class RateLimit:
    """Rate limit state for a key"""
    key: str
    remaining: int
    limit: int
    reset_time: float
    retry_after: Optional[float] = None


class RateLimitResult:
    """Result of a rate limit check"""

    def __init__(self, allowed: bool, rate_limit: RateLimit,
                 retry_after: Optional[float] = None):
        self.allowed = allowed
        self.rate_limit = rate_limit
        self.retry_after = retry_after


class RateLimiter:
    """Token bucket rate limiter, one bucket per key"""

    def __init__(self, name: str, config: Optional[RateLimitConfig] = None,
                 clock: Optional[Callable[[], float]] = None):
        self.name = name
        self.config = config or RateLimitConfig()
        self._clock = clock or time.monotonic

        self._tokens: Dict[str, float] = {}
        self._last_refill: Dict[str, float] = {}

        self._total_requests = 0
        self._denied_requests = 0

        self._lock = threading.RLock()
        self._last_cleanup = self._clock()

    async def check_rate_limit(self, key: str, requests: int = 1) -> RateLimitResult:
        """Consume tokens for a key if the bucket holds enough"""
        current_time = self._clock()
        max_tokens = self.config.capacity
        refill_rate = self.config.refill_rate

        with self._lock:
            self._total_requests += 1

            if current_time - self._last_cleanup >= self.config.cleanup_interval:
                self._prune_full_buckets(current_time)

            if key not in self._tokens:
                self._tokens[key] = max_tokens
                self._last_refill[key] = current_time

            time_passed = current_time - self._last_refill[key]
            self._tokens[key] = min(max_tokens, self._tokens[key] + time_passed * refill_rate)
            self._last_refill[key] = current_time

            if self._tokens[key] >= requests:
                self._tokens[key] -= requests
                rate_limit = RateLimit(
                    key=key,
                    remaining=int(self._tokens[key]),
                    limit=max_tokens,
                    reset_time=current_time + (max_tokens - self._tokens[key]) / refill_rate
                )
                return RateLimitResult(allowed=True, rate_limit=rate_limit)

            self._denied_requests += 1
            retry_after = (requests - self._tokens[key]) / refill_rate
            logger.warning(
                "Rate limit exceeded",
                limiter=self.name,
                key=key,
                tokens_left=round(self._tokens[key], 2)
            )

            rate_limit = RateLimit(
                key=key,
                remaining=0,
                limit=max_tokens,
                reset_time=current_time + retry_after,
                retry_after=retry_after
            )
            return RateLimitResult(allowed=False, rate_limit=rate_limit, retry_after=retry_after)

    def cleanup_idle_buckets(self) -> int:
        """Drop buckets that have refilled to capacity, returning how many"""
        with self._lock:
            return self._prune_full_buckets(self._clock())

    def _prune_full_buckets(self, now: float) -> int:
        # A full bucket behaves exactly like a missing one
        capacity = self.config.capacity
        refill_rate = self.config.refill_rate
        idle = [
            key for key, tokens in self._tokens.items()
            if tokens + (now - self._last_refill[key]) * refill_rate >= capacity
        ]
        for key in idle:
            del self._tokens[key]
            del self._last_refill[key]

        self._last_cleanup = now
        if idle:
            logger.debug("Pruned idle rate limit buckets", limiter=self.name, removed=len(idle))
        return len(idle)

    async def reset(self, key: Optional[str] = None):
        """Reset the bucket for a key, or all buckets"""
        with self._lock:
            if key:
                self._tokens.pop(key, None)
                self._last_refill.pop(key, None)
            else:
                self._tokens.clear()
                self._last_refill.clear()

    def get_metrics(self) -> Dict[str, Any]:
        """Get rate limiter counters"""
        with self._lock:
            return {
                "name": self.name,
                "total_requests": self._total_requests,
                "denied_requests": self._denied_requests,
                "active_keys": len(self._tokens),
            }
