"""
Unit tests for the token bucket rate limiter
"""

import asyncio

import pytest

from petwell.core.rate_limiter import RateLimitConfig, RateLimiter


@pytest.fixture
def limiter(monotonic):
    return RateLimiter("test", RateLimitConfig(capacity=10, refill_amount=10, refill_period=60), clock=monotonic)


@pytest.mark.unit
class TestTokenBucket:
    """Test bucket consumption and refill"""

    @pytest.mark.asyncio
    async def test_allows_burst_up_to_capacity(self, limiter):
        results = [await limiter.check_rate_limit("ip:1") for _ in range(10)]

        assert all(r.allowed for r in results)
        assert results[-1].rate_limit.remaining == 0

    @pytest.mark.asyncio
    async def test_denies_when_exhausted(self, limiter):
        for _ in range(10):
            await limiter.check_rate_limit("ip:1")

        result = await limiter.check_rate_limit("ip:1")

        assert not result.allowed
        assert result.retry_after == pytest.approx(6.0)

    @pytest.mark.asyncio
    async def test_refills_over_time(self, limiter, monotonic):
        for _ in range(10):
            await limiter.check_rate_limit("ip:1")

        monotonic.advance(7)
        assert (await limiter.check_rate_limit("ip:1")).allowed
        assert not (await limiter.check_rate_limit("ip:1")).allowed

    @pytest.mark.asyncio
    async def test_refill_capped_at_capacity(self, limiter, monotonic):
        await limiter.check_rate_limit("ip:1")
        monotonic.advance(3600)

        result = await limiter.check_rate_limit("ip:1")
        assert result.rate_limit.remaining == 9

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, limiter):
        for _ in range(10):
            await limiter.check_rate_limit("ip:1")

        assert (await limiter.check_rate_limit("ip:2")).allowed

    @pytest.mark.asyncio
    async def test_reset(self, limiter):
        for _ in range(10):
            await limiter.check_rate_limit("ip:1")

        await limiter.reset("ip:1")
        assert (await limiter.check_rate_limit("ip:1")).allowed

    @pytest.mark.asyncio
    async def test_concurrent_checks_never_exceed_capacity(self, limiter):
        results = await asyncio.gather(*[limiter.check_rate_limit("ip:1") for _ in range(25)])

        assert sum(r.allowed for r in results) == 10

    @pytest.mark.asyncio
    async def test_cleanup_drops_only_refilled_buckets(self, monotonic):
        limiter = RateLimiter("test", RateLimitConfig(capacity=10, refill_amount=10, refill_period=10), clock=monotonic)
        await limiter.check_rate_limit("ip:1")
        for _ in range(10):
            await limiter.check_rate_limit("ip:2")

        monotonic.advance(5)

        assert limiter.cleanup_idle_buckets() == 1
        assert limiter.get_metrics()["active_keys"] == 1
        # The drained bucket keeps its state
        assert (await limiter.check_rate_limit("ip:2")).rate_limit.remaining == 4

    @pytest.mark.asyncio
    async def test_idle_buckets_pruned_during_checks(self, monotonic):
        limiter = RateLimiter(
            "test",
            RateLimitConfig(capacity=10, refill_amount=10, refill_period=60, cleanup_interval=120),
            clock=monotonic
        )
        for n in range(50):
            await limiter.check_rate_limit(f"ip:{n}")

        monotonic.advance(120)
        await limiter.check_rate_limit("ip:new")

        assert limiter.get_metrics()["active_keys"] == 1

    @pytest.mark.asyncio
    async def test_metrics(self, limiter):
        for _ in range(11):
            await limiter.check_rate_limit("ip:1")

        metrics = limiter.get_metrics()
        assert metrics["total_requests"] == 11
        assert metrics["denied_requests"] == 1
        assert metrics["active_keys"] == 1


def test_default_config_matches_ten_per_minute():
    config = RateLimitConfig()

    assert config.capacity == 10
    assert config.refill_rate == pytest.approx(10 / 60)
