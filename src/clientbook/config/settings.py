"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENVIRONMENT: Literal["development", "test", "production"] = "development"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./clientbook.db"
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 20
    DATABASE_ECHO: bool = False

    # Shared static API token, checked ahead of per-user bearer auth
    API_TOKEN: SecretStr | None = None
    API_TOKEN_HEADER: str = "x-api-token"

    # HTTP
    CORS_ORIGINS: list[str] = Field(default_factory=list)
    TRUSTED_PROXIES: list[str] = Field(default_factory=list)
    """Peers whose X-Forwarded-For and X-Real-IP headers are believed."""

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool | None = None
    """Force JSON log output. None means JSON only in production."""

    # Rate limiting
    rate_limit_enabled: bool = True
    rate_limit_api_per_minute: int = 60
    rate_limit_auth_per_minute: int = 10
    rate_limit_sensitive_per_minute: int = 5

    # Authentication
    token_expiration_minutes: int | None = None
    """Lifetime of issued bearer tokens. None means tokens never expire."""

    bcrypt_rounds: int = 12

    # Pagination
    default_per_page: int = 15
    max_per_page: int = 100

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
