"""Startup checks for settings that parse fine but cannot work together.

``validate_or_raise`` runs from the application factory. Errors abort
startup; warnings are logged once and ignored.
"""

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from clientbook.config.settings import Settings, get_settings
from clientbook.core.exceptions import ConfigurationError

logger = structlog.get_logger()


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ConfigIssue:
    field: str
    severity: Severity
    message: str
    suggestion: str | None = None

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        line = f"[{self.severity.value.upper()}] {self.field}: {self.message}"
        if self.suggestion:
            line += f"\n  Suggestion: {self.suggestion}"
        return line


def _error(field: str, message: str, suggestion: str | None = None) -> ConfigIssue:
    return ConfigIssue(field, Severity.ERROR, message, suggestion)


def _warning(field: str, message: str, suggestion: str | None = None) -> ConfigIssue:
    return ConfigIssue(field, Severity.WARNING, message, suggestion)


def _check_database(settings: Settings) -> Iterator[ConfigIssue]:
    url = settings.DATABASE_URL
    if not url:
        yield _error("DATABASE_URL", "Database URL is not configured", "Set DATABASE_URL")
    elif not url.startswith(("postgresql", "sqlite")):
        yield _warning(
            "DATABASE_URL",
            f"Unsupported database scheme: {url.split('://', 1)[0]}",
            "Use PostgreSQL, or SQLite for local work",
        )
    elif settings.is_production and settings.is_sqlite:
        yield _warning(
            "DATABASE_URL",
            "SQLite in production does not support row locks",
            "Use postgresql+asyncpg:// in production",
        )

    if settings.DATABASE_POOL_SIZE < 1:
        yield _error("DATABASE_POOL_SIZE", f"Invalid pool size: {settings.DATABASE_POOL_SIZE}")


def _check_security(settings: Settings) -> Iterator[ConfigIssue]:
    if settings.API_TOKEN is not None:
        if len(settings.API_TOKEN.get_secret_value()) < 16:
            yield _warning(
                "API_TOKEN",
                "Static API token is short and may be guessed",
                "Use at least 32 random characters",
            )
        if not settings.API_TOKEN_HEADER:
            yield _error("API_TOKEN_HEADER", "API token is set but the header name is empty")

    rounds = settings.bcrypt_rounds
    if not 4 <= rounds <= 31:
        yield _error("bcrypt_rounds", f"bcrypt rounds must be between 4 and 31, got {rounds}")
    elif settings.is_production and rounds < 10:
        yield _warning("bcrypt_rounds", "Low bcrypt cost in production", "Use 12 or more rounds")

    expiration = settings.token_expiration_minutes
    if expiration is not None and expiration <= 0:
        yield _error("token_expiration_minutes", "Token expiration must be positive or unset")

    if settings.is_production and "*" in settings.CORS_ORIGINS:
        yield _error(
            "CORS_ORIGINS",
            "Wildcard CORS origin not allowed in production",
            "List the allowed origins explicitly",
        )


def _check_limits(settings: Settings) -> Iterator[ConfigIssue]:
    for name in (
        "rate_limit_api_per_minute",
        "rate_limit_auth_per_minute",
        "rate_limit_sensitive_per_minute",
    ):
        if getattr(settings, name) < 1:
            yield _error(name, "Rate limit must allow at least one request per minute")

    if not 1 <= settings.default_per_page <= settings.max_per_page:
        yield _error(
            "default_per_page",
            f"default_per_page ({settings.default_per_page}) must be between 1 "
            f"and max_per_page ({settings.max_per_page})",
        )


def _check_environment(settings: Settings) -> Iterator[ConfigIssue]:
    if not settings.is_production:
        return
    if settings.DEBUG:
        yield _error("DEBUG", "Debug mode must be disabled in production", "Set DEBUG=false")
    if settings.log_level == "DEBUG":
        yield _warning(
            "log_level",
            "DEBUG logging in production may expose customer data",
            "Use INFO or WARNING",
        )


CHECKS: tuple[Callable[[Settings], Iterator[ConfigIssue]], ...] = (
    _check_database,
    _check_security,
    _check_limits,
    _check_environment,
)


def validate_configuration(settings: Settings | None = None) -> list[ConfigIssue]:
    """Run every check and return the issues found, errors and warnings mixed."""
    settings = settings or get_settings()
    return [issue for check in CHECKS for issue in check(settings)]


def validate_or_raise(settings: Settings | None = None) -> None:
    """Raise ``ConfigurationError`` listing every error; log the warnings."""
    issues = validate_configuration(settings)
    errors = [issue for issue in issues if issue.is_error]
    if errors:
        details = "\n".join(str(issue) for issue in errors)
        raise ConfigurationError(f"Configuration validation failed:\n{details}")

    for issue in issues:
        logger.warning("configuration_warning", field=issue.field, detail=issue.message)


def get_configuration_summary(settings: Settings | None = None) -> dict[str, Any]:
    """Settings that are safe to write to the startup log."""
    settings = settings or get_settings()
    return {
        "environment": settings.ENVIRONMENT,
        "debug": settings.DEBUG,
        "log_level": settings.log_level,
        "database": settings.DATABASE_URL.split("://", 1)[0],
        "cors_origins_count": len(settings.CORS_ORIGINS),
        "api_token_configured": settings.API_TOKEN is not None,
        "rate_limit_enabled": settings.rate_limit_enabled,
        "token_expiration_minutes": settings.token_expiration_minutes,
    }
