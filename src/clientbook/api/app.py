"""Application factory and lifespan for the Clientbook API."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clientbook import __version__
from clientbook.api.middleware import (
    ApiTokenMiddleware,
    ErrorHandlingMiddleware,
    RequestContextMiddleware,
    RequestLoggingMiddleware,
    register_exception_handlers,
)
from clientbook.api.routers import health_router, v1_router
from clientbook.auth.listeners import register_auth_listeners
from clientbook.config.settings import Settings, get_settings
from clientbook.config.validation import get_configuration_summary, validate_or_raise
from clientbook.core.events import EventDispatcher
from clientbook.core.logging import setup_logging
from clientbook.customers.listeners import register_customer_listeners
from clientbook.db.config import close_db, init_db
from clientbook.security.config import RateLimitConfig
from clientbook.security.passwords import PasswordHasher
from clientbook.security.rate_limiter import InMemoryRateLimitStore, RateLimiter

logger = structlog.get_logger()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Return a fresh application wired to ``settings`` (the cached settings by default).

    Each call builds its own dispatcher, hasher and rate limiter, so tests
    can create isolated apps::

        app = create_app(Settings(ENVIRONMENT="test", bcrypt_rounds=4))

    Served with ``uvicorn clientbook.api.app:create_app --factory``.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="Clientbook API",
        description="Customer management API with token authentication",
        version=__version__,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=_lifespan,
    )

    # Request-time code reads these instead of module globals
    app.state.settings = settings
    app.state.events = _build_dispatcher()
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.rate_limiter = RateLimiter(
        InMemoryRateLimitStore(), RateLimitConfig.from_settings(settings)
    )

    register_exception_handlers(app)
    _configure_middleware(app, settings)
    _configure_routers(app)

    return app


def _build_dispatcher() -> EventDispatcher:
    events = EventDispatcher()
    register_auth_listeners(events)
    register_customer_listeners(events)
    return events


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Startup validates configuration, checks the database and starts the
    event worker. Shutdown drains queued listeners before closing the
    database.
    """
    settings: Settings = app.state.settings
    setup_logging(settings=settings)
    validate_or_raise(settings)

    await init_db(settings)
    events: EventDispatcher = app.state.events
    await events.start()
    logger.info(
        "application_started", version=__version__, **get_configuration_summary(settings)
    )

    yield

    logger.info("application_stopping")
    await events.stop()
    await close_db()


def _configure_middleware(app: FastAPI, settings: Settings) -> None:
    """Install middleware, innermost first.

    Starlette wraps each added middleware around the previous ones, so a
    request passes through access logging, error handling, CORS, the static
    API token check and finally the request context. Rejections from the
    token check are therefore still logged and still carry CORS headers.
    """
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(ApiTokenMiddleware)

    if settings.CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


def _configure_routers(app: FastAPI) -> None:
    app.include_router(health_router)
    app.include_router(v1_router)
