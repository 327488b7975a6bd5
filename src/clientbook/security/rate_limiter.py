"""Sliding-window rate limiting.

Implements named request budgets with:
- Per-client tracking (authenticated user id, falling back to IP)
- In-memory and extensible storage backends
- Rate limit headers for responses
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Protocol

from clientbook.core.exceptions import TooManyRequestsError
from clientbook.security.config import NamedLimit, RateLimitConfig


@dataclass
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed
        limit: The rate limit for this client
        remaining: Number of requests remaining in the window
        reset_time: Unix timestamp when the window resets
        retry_after: Seconds until the client can retry (if not allowed)
    """

    allowed: bool
    limit: int
    remaining: int
    reset_time: float
    retry_after: int = 0

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(int(self.reset_time)),
        }
        if self.retry_after > 0:
            headers["Retry-After"] = str(self.retry_after)
        return headers


@dataclass
class SlidingWindowCounter:
    """Sliding window counter.

    Tracks requests in the current and previous window and weights the
    previous one by how much of it still overlaps the sliding window.
    """

    current_count: int = 0
    previous_count: int = 0
    window_start: float = 0.0
    window_size: int = 60

    def roll(self, now: float) -> None:
        """Advance the window if ``now`` has moved past it."""
        elapsed = now - self.window_start
        if elapsed < self.window_size:
            return
        if int(elapsed / self.window_size) == 1:
            self.previous_count = self.current_count
            self.window_start += self.window_size
        else:
            # more than one full window passed
            self.previous_count = 0
            self.window_start = now
        self.current_count = 0

    def get_weighted_count(self, now: float) -> float:
        time_in_window = now - self.window_start
        if time_in_window >= self.window_size:
            return float(self.current_count)

        weight = 1.0 - (time_in_window / self.window_size)
        return self.current_count + (self.previous_count * weight)


class RateLimitStore(Protocol):
    """Protocol for rate limit storage backends."""

    async def check_and_increment(self, key: str, limit: int, window_size: int) -> RateLimitResult:
        """Check the limit for ``key`` and count the request if allowed."""
        ...

    async def reset(self, key: str | None = None) -> None:
        """Forget one key, or every key when ``key`` is None."""
        ...


class InMemoryRateLimitStore(RateLimitStore):
    """In-memory rate limit storage using sliding window counters.

    Suitable for single-process deployments.

    Example:
        store = InMemoryRateLimitStore()
        result = await store.check_and_increment("api:ip:192.168.1.1", 60, 60)
    """

    def __init__(self, cleanup_interval: int = 300) -> None:
        self._counters: dict[str, SlidingWindowCounter] = {}
        self._cleanup_interval = cleanup_interval
        self._last_cleanup = time.time()
        self._lock = asyncio.Lock()

    async def check_and_increment(self, key: str, limit: int, window_size: int) -> RateLimitResult:
        async with self._lock:
            now = time.time()

            if now - self._last_cleanup > self._cleanup_interval:
                self._cleanup(now, window_size)

            counter = self._counters.get(key)
            if counter is None:
                counter = self._counters[key] = SlidingWindowCounter(
                    window_start=now,
                    window_size=window_size,
                )

            counter.roll(now)
            weighted_count = counter.get_weighted_count(now)
            reset_time = counter.window_start + window_size

            if weighted_count >= limit:
                return RateLimitResult(
                    allowed=False,
                    limit=limit,
                    remaining=0,
                    reset_time=reset_time,
                    retry_after=max(1, int(reset_time - now)),
                )

            counter.current_count += 1
            return RateLimitResult(
                allowed=True,
                limit=limit,
                remaining=max(0, int(limit - weighted_count - 1)),
                reset_time=reset_time,
            )

    async def reset(self, key: str | None = None) -> None:
        async with self._lock:
            if key is None:
                self._counters.clear()
            else:
                self._counters.pop(key, None)

    def _cleanup(self, now: float, window_size: int) -> None:
        """Drop counters more than two windows old."""
        self._last_cleanup = now
        expired = [
            key
            for key, counter in self._counters.items()
            if now - counter.window_start > window_size * 2
        ]
        for key in expired:
            del self._counters[key]


class RateLimiter:
    """Enforces named limits against a storage backend.

    Example:
        limiter = RateLimiter(InMemoryRateLimitStore(), RateLimitConfig())
        result = await limiter.hit("auth", "ip:192.168.1.1")
    """

    def __init__(
        self,
        store: RateLimitStore,
        config: RateLimitConfig | None = None,
    ) -> None:
        self.store = store
        self.config = config or RateLimitConfig()

    def get_limit(self, name: str) -> NamedLimit:
        try:
            return self.config.limits[name]
        except KeyError:
            raise KeyError(f"Unknown rate limit: {name}") from None

    @staticmethod
    def build_key(name: str, client_id: str) -> str:
        return f"rate_limit:{name}:{client_id}"

    async def check(self, name: str, client_id: str) -> RateLimitResult:
        """Count a request against the named limit."""
        limit = self.get_limit(name)
        if not self.config.enabled:
            return RateLimitResult(
                allowed=True,
                limit=limit.requests_per_minute,
                remaining=limit.requests_per_minute,
                reset_time=time.time() + self.config.window_size_seconds,
            )

        return await self.store.check_and_increment(
            key=self.build_key(name, client_id),
            limit=limit.requests_per_minute,
            window_size=self.config.window_size_seconds,
        )

    async def hit(self, name: str, client_id: str) -> RateLimitResult:
        """Count a request and raise once the named limit is exhausted.

        Raises:
            TooManyRequestsError: Carrying the limit's message, code and retry delay
        """
        result = await self.check(name, client_id)
        if not result.allowed:
            limit = self.get_limit(name)
            raise TooManyRequestsError(
                limit.message,
                error_code=limit.error_code,
                retry_after=result.retry_after,
                limit=result.limit,
            )
        return result
