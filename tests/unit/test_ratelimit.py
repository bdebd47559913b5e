"""Tests for the in-memory rate limiter."""

import pytest

from relohub.errors import RateLimitError
from relohub.ratelimit import MemoryRateLimitStore, RateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(MemoryRateLimitStore(clock=clock))


class TestMemoryRateLimiter:
    async def test_allows_up_to_limit(self, limiter):
        results = [await limiter.check("k", 3, 60) for _ in range(3)]
        assert all(r.allowed for r in results)
        assert [r.remaining for r in results] == [2, 1, 0]

    async def test_blocks_over_limit_with_retry_after(self, limiter, clock):
        for _ in range(3):
            await limiter.check("k", 3, 60)
        clock.now += 20
        result = await limiter.check("k", 3, 60)
        assert not result.allowed
        assert result.retry_after == 40

    async def test_window_slides(self, limiter, clock):
        for _ in range(3):
            await limiter.check("k", 3, 60)
        clock.now += 60
        assert (await limiter.check("k", 3, 60)).allowed

    async def test_keys_are_independent(self, limiter):
        for _ in range(3):
            await limiter.check("a", 3, 60)
        assert (await limiter.check("b", 3, 60)).allowed

    async def test_enforce_raises(self, limiter):
        await limiter.enforce("signin:x@example.com", 1, 900)
        with pytest.raises(RateLimitError) as exc_info:
            await limiter.enforce("signin:x@example.com", 1, 900)
        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 900

    async def test_reset_clears_key(self, limiter):
        await limiter.check("k", 1, 60)
        await limiter.reset("k")
        assert (await limiter.check("k", 1, 60)).allowed

    async def test_sweep_drops_idle_keys(self, limiter, clock):
        await limiter.check("old", 5, 10)
        clock.now += 5
        await limiter.check("fresh", 5, 10)
        clock.now += 6
        assert limiter.sweep() == 1
        assert len(limiter.store) == 1
