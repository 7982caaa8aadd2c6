"""Unit tests for the fixed-window rate limiter."""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from resetgate.core.exceptions import RateLimitedError
from resetgate.core.rate_limiting import InMemoryCounterStore, RateLimiter
from resetgate.core.rate_limiting.stores import CounterStore
from resetgate.domain.value_objects.rate_limit import RateLimitRule
from tests.utils.fakes import ManualMillisClock

WINDOW_MS = 60_000


class BrokenStore(CounterStore):
    def __init__(self):
        self.calls = 0

    async def increment(self, key, expires_at_ms, now_ms):
        self.calls += 1
        raise RedisConnectionError("redis down")


@pytest.fixture
def clock():
    # Aligned to the start of a 60 second window.
    return ManualMillisClock(start_ms=1_700_000_040_000)


@pytest.fixture
def store():
    return InMemoryCounterStore()


@pytest.fixture
def limiter(store, clock):
    return RateLimiter(store, clock=clock)


class TestRateLimiterCheck:
    async def test_allows_up_to_limit_then_limits(self, limiter):
        results = [await limiter.check("b", "1.2.3.4", 3, WINDOW_MS) for _ in range(4)]

        assert [r.limited for r in results] == [False, False, False, True]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    async def test_every_call_increments_once(self, limiter, store, clock):
        for _ in range(5):
            await limiter.check("b", "id", 2, WINDOW_MS)

        window_start = (clock() // WINDOW_MS) * WINDOW_MS
        key = RateLimiter.counter_key("b", "id", window_start)
        # One more increment reveals the stored count.
        assert await store.increment(key, window_start + WINDOW_MS, clock()) == 6

    async def test_reset_after_never_increases_within_window(self, limiter, clock):
        previous = None
        for _ in range(6):
            result = await limiter.check("b", "id", 100, WINDOW_MS)
            if previous is not None:
                assert result.reset_after_seconds <= previous
            previous = result.reset_after_seconds
            clock.advance(7_500)

    async def test_reset_after_counts_remaining_window(self, limiter, clock):
        clock.advance(15_500)

        result = await limiter.check("b", "id", 1, WINDOW_MS)

        assert result.reset_after_seconds == 45

    async def test_new_window_starts_fresh(self, limiter, clock):
        for _ in range(3):
            await limiter.check("b", "id", 2, WINDOW_MS)
        assert (await limiter.check("b", "id", 2, WINDOW_MS)).limited is True

        clock.advance(WINDOW_MS)

        result = await limiter.check("b", "id", 2, WINDOW_MS)
        assert result.limited is False
        assert result.remaining == 1

    async def test_buckets_and_identities_are_independent(self, limiter):
        for _ in range(2):
            await limiter.check("reset:request:ip", "1.1.1.1", 1, WINDOW_MS)

        assert (await limiter.check("reset:request:ip", "1.1.1.1", 1, WINDOW_MS)).limited is True
        assert (await limiter.check("reset:verify:ip", "1.1.1.1", 1, WINDOW_MS)).limited is False
        assert (await limiter.check("reset:request:ip", "2.2.2.2", 1, WINDOW_MS)).limited is False

    @pytest.mark.parametrize("limit, window", [(0, WINDOW_MS), (5, 0), (-1, -1)])
    async def test_rejects_non_positive_parameters(self, limiter, limit, window):
        with pytest.raises(ValueError):
            await limiter.check("b", "id", limit, window)

    async def test_disabled_limiter_never_limits_or_counts(self, store, clock):
        limiter = RateLimiter(store, enabled=False, clock=clock)

        for _ in range(10):
            result = await limiter.check("b", "id", 1, WINDOW_MS)
            assert result.limited is False

        assert len(store) == 0


class TestRateLimiterEnforce:
    async def test_raises_with_bucket_retry_after(self, limiter, clock):
        rule = RateLimitRule("reset:consume:token", 1, 900)
        clock.advance(100_000)

        await limiter.enforce(rule, "fp")
        with pytest.raises(RateLimitedError) as exc_info:
            await limiter.enforce(rule, "fp")

        assert exc_info.value.bucket == "reset:consume:token"
        assert 0 < exc_info.value.retry_after <= 900

    async def test_returns_result_when_allowed(self, limiter):
        result = await limiter.enforce(RateLimitRule("b", 2, 60), "id")

        assert result.limited is False
        assert result.remaining == 1


class TestRateLimiterFallback:
    async def test_falls_back_when_primary_store_fails(self, clock):
        fallback = InMemoryCounterStore()
        limiter = RateLimiter(BrokenStore(), fallback_store=fallback, clock=clock)

        results = [await limiter.check("b", "id", 1, WINDOW_MS) for _ in range(2)]

        assert [r.limited for r in results] == [False, True]
        assert len(fallback) == 1

    async def test_store_error_propagates_without_fallback(self, clock):
        limiter = RateLimiter(BrokenStore(), clock=clock)

        with pytest.raises(RedisConnectionError):
            await limiter.check("b", "id", 1, WINDOW_MS)


class TestRateLimiterStore:
    def test_uses_injected_empty_store(self, store):
        limiter = RateLimiter(store)

        assert limiter.store is store

    async def test_counts_land_in_injected_store(self, store, clock):
        limiter = RateLimiter(store, clock=clock)

        await limiter.check("b", "id", 5, WINDOW_MS)

        assert len(store) == 1
