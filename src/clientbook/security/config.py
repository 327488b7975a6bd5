"""Security configuration dataclasses."""

from dataclasses import dataclass, field

from clientbook.config.settings import Settings


@dataclass(frozen=True, slots=True)
class NamedLimit:
    """A named request budget, e.g. ``auth`` for login attempts.

    Attributes:
        name: Limit name referenced by routes
        requests_per_minute: Requests allowed per window
        message: Client-facing message when the budget is exhausted
        error_code: Machine-readable code returned with the 429
        per_user: Key by authenticated user when one is known, else by IP
    """

    name: str
    requests_per_minute: int
    message: str
    error_code: str
    per_user: bool = True


def default_limits(
    api: int = 60,
    auth: int = 10,
    sensitive: int = 5,
) -> dict[str, NamedLimit]:
    return {
        "api": NamedLimit(
            name="api",
            requests_per_minute=api,
            message="Too many requests. Please try again later.",
            error_code="TOO_MANY_REQUESTS",
        ),
        # login attempts are unauthenticated, so they are always keyed by IP
        "auth": NamedLimit(
            name="auth",
            requests_per_minute=auth,
            message="Too many login attempts. Please try again later.",
            error_code="TOO_MANY_ATTEMPTS",
            per_user=False,
        ),
        "sensitive": NamedLimit(
            name="sensitive",
            requests_per_minute=sensitive,
            message="Rate limit exceeded for sensitive operations.",
            error_code="RATE_LIMIT_EXCEEDED",
        ),
    }


@dataclass(frozen=True, slots=True)
class RateLimitConfig:
    """Configuration for rate limiting.

    Attributes:
        enabled: Whether rate limiting is active
        window_size_seconds: Sliding window size for rate calculation
        include_in_headers: Include rate limit info in response headers
        limits: Named limits routes can opt into
    """

    enabled: bool = True
    window_size_seconds: int = 60
    include_in_headers: bool = True
    limits: dict[str, NamedLimit] = field(default_factory=default_limits)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimitConfig":
        return cls(
            enabled=settings.rate_limit_enabled,
            limits=default_limits(
                api=settings.rate_limit_api_per_minute,
                auth=settings.rate_limit_auth_per_minute,
                sensitive=settings.rate_limit_sensitive_per_minute,
            ),
        )
