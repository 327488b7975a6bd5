"""Payloads of the unauthenticated health endpoints."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from clientbook import __version__


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Outcome of probing one backing service."""

    status: HealthStatus
    message: str | None = None
    latency_ms: float | None = None


class HealthResponse(BaseModel):
    status: HealthStatus
    version: str = __version__
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class HealthDetailResponse(HealthResponse):
    database: ComponentHealth

    @classmethod
    def from_database(cls, database: ComponentHealth) -> "HealthDetailResponse":
        """Overall status follows the database, the only backing service."""
        return cls(status=database.status, database=database)
