"""Unit tests for rate limiting."""

import pytest

from clientbook.config.settings import Settings
from clientbook.core.exceptions import TooManyRequestsError
from clientbook.security.config import RateLimitConfig, default_limits
from clientbook.security.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitResult,
    SlidingWindowCounter,
)


class TestSlidingWindowCounter:
    def test_counts_within_window(self):
        counter = SlidingWindowCounter(window_start=0.0, window_size=60)
        counter.current_count = 5
        assert counter.get_weighted_count(30.0) == pytest.approx(5.0)

    def test_previous_window_is_weighted(self):
        counter = SlidingWindowCounter(window_start=0.0, window_size=60)
        counter.current_count = 10
        counter.roll(90.0)

        assert counter.previous_count == 10
        assert counter.current_count == 0
        assert counter.window_start == 60.0
        # 30s into the new window: half of the previous window still overlaps
        assert counter.get_weighted_count(90.0) == pytest.approx(5.0)

    def test_roll_past_two_windows_forgets_everything(self):
        counter = SlidingWindowCounter(window_start=0.0, window_size=60)
        counter.current_count = 10
        counter.roll(200.0)

        assert counter.previous_count == 0
        assert counter.current_count == 0
        assert counter.window_start == 200.0


class TestRateLimitResult:
    def test_headers_when_allowed(self):
        result = RateLimitResult(allowed=True, limit=60, remaining=59, reset_time=1000.5)
        headers = result.headers()

        assert headers["X-RateLimit-Limit"] == "60"
        assert headers["X-RateLimit-Remaining"] == "59"
        assert headers["X-RateLimit-Reset"] == "1000"
        assert "Retry-After" not in headers

    def test_headers_include_retry_after_when_blocked(self):
        result = RateLimitResult(
            allowed=False, limit=60, remaining=0, reset_time=1000.0, retry_after=12
        )
        assert result.headers()["Retry-After"] == "12"


@pytest.mark.asyncio
class TestInMemoryRateLimitStore:
    async def test_allows_up_to_limit(self):
        store = InMemoryRateLimitStore()

        results = [await store.check_and_increment("k", 3, 60) for _ in range(3)]

        assert all(r.allowed for r in results)
        assert [r.remaining for r in results] == [2, 1, 0]

    async def test_blocks_after_limit(self):
        store = InMemoryRateLimitStore()
        for _ in range(3):
            await store.check_and_increment("k", 3, 60)

        result = await store.check_and_increment("k", 3, 60)

        assert result.allowed is False
        assert result.remaining == 0
        assert result.retry_after >= 1

    async def test_keys_are_independent(self):
        store = InMemoryRateLimitStore()
        await store.check_and_increment("a", 1, 60)

        assert (await store.check_and_increment("a", 1, 60)).allowed is False
        assert (await store.check_and_increment("b", 1, 60)).allowed is True

    async def test_reset_single_key(self):
        store = InMemoryRateLimitStore()
        await store.check_and_increment("a", 1, 60)
        await store.reset("a")

        assert (await store.check_and_increment("a", 1, 60)).allowed is True

    async def test_reset_all(self):
        store = InMemoryRateLimitStore()
        await store.check_and_increment("a", 1, 60)
        await store.check_and_increment("b", 1, 60)
        await store.reset()

        assert (await store.check_and_increment("a", 1, 60)).allowed is True
        assert (await store.check_and_increment("b", 1, 60)).allowed is True


class TestRateLimitConfig:
    def test_default_limits(self):
        limits = default_limits()

        assert limits["api"].requests_per_minute == 60
        assert limits["auth"].requests_per_minute == 10
        assert limits["sensitive"].requests_per_minute == 5
        assert limits["auth"].per_user is False

    def test_error_codes_per_limit(self):
        limits = default_limits()

        assert limits["api"].error_code == "TOO_MANY_REQUESTS"
        assert limits["auth"].error_code == "TOO_MANY_ATTEMPTS"
        assert limits["sensitive"].error_code == "RATE_LIMIT_EXCEEDED"

    def test_from_settings(self):
        settings = Settings(
            rate_limit_enabled=False,
            rate_limit_api_per_minute=100,
            rate_limit_auth_per_minute=3,
            rate_limit_sensitive_per_minute=2,
        )
        config = RateLimitConfig.from_settings(settings)

        assert config.enabled is False
        assert config.limits["api"].requests_per_minute == 100
        assert config.limits["auth"].requests_per_minute == 3
        assert config.limits["sensitive"].requests_per_minute == 2


@pytest.mark.asyncio
class TestRateLimiter:
    async def test_hit_raises_with_named_error_code(self):
        limiter = RateLimiter(
            InMemoryRateLimitStore(),
            RateLimitConfig(limits=default_limits(auth=2)),
        )
        await limiter.hit("auth", "ip:10.0.0.1")
        await limiter.hit("auth", "ip:10.0.0.1")

        with pytest.raises(TooManyRequestsError) as exc_info:
            await limiter.hit("auth", "ip:10.0.0.1")

        assert exc_info.value.error_code == "TOO_MANY_ATTEMPTS"
        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after >= 1
        assert exc_info.value.headers()["Retry-After"] == str(exc_info.value.retry_after)

    async def test_limits_are_tracked_per_name(self):
        limiter = RateLimiter(
            InMemoryRateLimitStore(),
            RateLimitConfig(limits=default_limits(api=1, sensitive=1)),
        )
        await limiter.hit("api", "user:1")

        result = await limiter.hit("sensitive", "user:1")

        assert result.allowed is True

    async def test_disabled_limiter_always_allows(self):
        limiter = RateLimiter(
            InMemoryRateLimitStore(),
            RateLimitConfig(enabled=False, limits=default_limits(api=1)),
        )
        for _ in range(5):
            result = await limiter.hit("api", "user:1")
            assert result.allowed is True

    async def test_unknown_limit_name(self):
        limiter = RateLimiter(InMemoryRateLimitStore())

        with pytest.raises(KeyError):
            await limiter.check("nope", "user:1")

    def test_build_key(self):
        assert RateLimiter.build_key("api", "user:5") == "rate_limit:api:user:5"
