"""Database configuration and session management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from clientbook.config.settings import Settings, get_settings

logger = structlog.get_logger()

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def build_engine(settings: Settings) -> AsyncEngine:
    """Create an async engine for the configured database.

    SQLite ignores pool sizing, so pool options are only passed for
    server databases.
    """
    kwargs: dict[str, Any] = {"echo": settings.DATABASE_ECHO}
    if settings.ENVIRONMENT == "test":
        kwargs["poolclass"] = NullPool
    elif not settings.is_sqlite:
        kwargs["pool_size"] = settings.DATABASE_POOL_SIZE
        kwargs["max_overflow"] = settings.DATABASE_MAX_OVERFLOW
        kwargs["pool_pre_ping"] = True
    return create_async_engine(settings.DATABASE_URL, **kwargs)


def get_engine() -> AsyncEngine:
    """Get the process-wide engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_factory


async def init_db(settings: Settings | None = None) -> None:
    """Verify connectivity during application startup.

    Passing ``settings`` replaces the process-wide engine with one built
    from them.

    SQLite databases get their tables created directly; PostgreSQL schemas
    are managed by the Alembic migrations.
    """
    from clientbook.db.models import Base

    global _engine
    if settings is not None:
        await close_db()
        _engine = build_engine(settings)
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))
        if engine.dialect.name == "sqlite":
            await conn.run_sync(Base.metadata.create_all)
    logger.info("database_initialized", dialect=engine.dialect.name)


async def close_db() -> None:
    """Dispose of the engine and release pooled connections."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Context manager for obtaining a session outside of FastAPI.

    Usage:
        async with get_async_session() as session:
            result = await session.execute(query)
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for FastAPI to inject database sessions.

    Uncommitted work is rolled back when the request raises.
    """
    async with get_session_factory()() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
