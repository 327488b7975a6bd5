"""Request and response schemas for the HTTP API."""

from .auth import LoginRequest, LoginResource, TokenResource, UserResource
from .customer import CustomerIndexQuery, CustomerRequest, CustomerResource, StatusResource
from .health import ComponentHealth, HealthDetailResponse, HealthResponse, HealthStatus

__all__ = [
    "ComponentHealth",
    "CustomerIndexQuery",
    "CustomerRequest",
    "CustomerResource",
    "HealthDetailResponse",
    "HealthResponse",
    "HealthStatus",
    "LoginRequest",
    "LoginResource",
    "StatusResource",
    "TokenResource",
    "UserResource",
]
