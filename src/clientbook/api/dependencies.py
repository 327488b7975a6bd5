"""FastAPI dependencies for API endpoints."""

from collections.abc import Awaitable, Callable
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from clientbook.api.middleware.context import attach_response_headers
from clientbook.api.network import get_client_ip
from clientbook.auth.actions import LoginAction, LogoutAction
from clientbook.auth.service import AuthService
from clientbook.config.settings import Settings
from clientbook.core.context import RequestContext, get_current_context_or_none
from clientbook.core.events import EventDispatcher
from clientbook.core.exceptions import AuthenticationError
from clientbook.customers.service import CustomerService
from clientbook.db.config import get_db
from clientbook.db.models.user import AccessToken, User
from clientbook.db.repositories.customer import CustomerRepository
from clientbook.db.repositories.user import UserRepository
from clientbook.security.passwords import PasswordHasher
from clientbook.security.rate_limiter import RateLimiter

# Re-export database dependency for convenience
__all__ = [
    "get_db",
    "get_settings_from_app",
    "get_events",
    "get_auth_service",
    "get_customer_service",
    "get_optional_user",
    "get_current_user",
    "get_current_token",
    "rate_limit",
]

bearer_scheme = HTTPBearer(auto_error=False, description="Token issued by POST /v1/login")

# Sentinel stored on request.state once bearer resolution has been attempted
_UNRESOLVED = object()


def get_settings_from_app(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_events(request: Request) -> EventDispatcher:
    return request.app.state.events


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_auth_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings_from_app)],
    events: Annotated[EventDispatcher, Depends(get_events)],
    hasher: Annotated[PasswordHasher, Depends(get_hasher)],
) -> AuthService:
    """Build an AuthService bound to the request's database session."""
    users = UserRepository(db)
    token_ttl = None
    if settings.token_expiration_minutes:
        token_ttl = timedelta(minutes=settings.token_expiration_minutes)
    return AuthService(
        users,
        LoginAction(users, hasher, events, token_ttl=token_ttl),
        LogoutAction(users, events),
    )


def get_customer_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    events: Annotated[EventDispatcher, Depends(get_events)],
) -> CustomerService:
    return CustomerService.build(CustomerRepository(db), events)


async def _resolve_bearer(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None,
    auth: AuthService,
) -> tuple[User, AccessToken] | None:
    """Resolve the bearer token once per request and cache the outcome."""
    cached = getattr(request.state, "auth", _UNRESOLVED)
    if cached is not _UNRESOLVED:
        return cached

    resolved = None
    if credentials is not None and credentials.credentials:
        try:
            resolved = await auth.authenticate_token(credentials.credentials)
        except AuthenticationError:
            resolved = None

    request.state.auth = resolved
    if resolved is not None:
        user = resolved[0]
        request.state.user_id = user.id
        ctx: RequestContext | None = get_current_context_or_none()
        if ctx is not None:
            ctx.user_id = user.id
    return resolved


async def get_optional_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> User | None:
    """The authenticated user, or None when no valid bearer token was sent."""
    resolved = await _resolve_bearer(request, credentials, auth)
    return resolved[0] if resolved else None


async def get_current_token(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> AccessToken:
    """The access token used for this request.

    Raises:
        AuthenticationError: If the token is missing, unknown or expired
    """
    resolved = await _resolve_bearer(request, credentials, auth)
    if resolved is None:
        raise AuthenticationError()
    return resolved[1]


async def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> User:
    """The authenticated user.

    Raises:
        AuthenticationError: If the token is missing, unknown or expired
    """
    resolved = await _resolve_bearer(request, credentials, auth)
    if resolved is None:
        raise AuthenticationError()
    return resolved[0]


def rate_limit(name: str) -> Callable[..., Awaitable[None]]:
    """Build a dependency that counts the request against a named limit.

    Requests are keyed by the authenticated user when the limit allows
    it and a valid bearer token was sent, otherwise by client IP.

    Example:
        @router.get("/me", dependencies=[Depends(rate_limit("api"))])
    """

    async def dependency(
        request: Request,
        limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
        user: Annotated[User | None, Depends(get_optional_user)],
    ) -> None:
        limit = limiter.get_limit(name)
        if limit.per_user and user is not None:
            client_id = f"user:{user.id}"
        else:
            client_id = f"ip:{get_client_ip(request)}"

        result = await limiter.hit(name, client_id)
        if limiter.config.include_in_headers:
            attach_response_headers(request, result.headers())

    dependency.__name__ = f"rate_limit_{name}"
    return dependency
