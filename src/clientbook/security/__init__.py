"""Security primitives: password hashing, bearer tokens and rate limiting."""

from clientbook.security.config import NamedLimit, RateLimitConfig
from clientbook.security.passwords import PasswordHasher
from clientbook.security.rate_limiter import (
    InMemoryRateLimitStore,
    RateLimiter,
    RateLimitResult,
    RateLimitStore,
    SlidingWindowCounter,
)
from clientbook.security.tokens import generate_token, hash_token, split_token

__all__ = [
    "NamedLimit",
    "RateLimitConfig",
    "PasswordHasher",
    "InMemoryRateLimitStore",
    "RateLimiter",
    "RateLimitResult",
    "RateLimitStore",
    "SlidingWindowCounter",
    "generate_token",
    "hash_token",
    "split_token",
]
