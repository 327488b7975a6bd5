"""Pytest fixtures for Clientbook tests."""

from collections.abc import AsyncGenerator, Callable, Coroutine
from typing import Any

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from clientbook.config.settings import Settings
from clientbook.core.events import EventDispatcher
from clientbook.db.config import get_db
from clientbook.db.models import Base, Customer, CustomerStatus, User
from clientbook.security.passwords import PasswordHasher

TEST_PASSWORD = "secret-password"

# =============================================================================
# Structlog Configuration Fixture
# =============================================================================


@pytest.fixture(scope="function", autouse=True)
def reset_structlog_after_test():
    """Reset structlog configuration after each test.

    Tests that call setup_logging() change global state.
    """
    yield
    structlog.reset_defaults()
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest_asyncio.fixture
async def test_engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def hasher() -> PasswordHasher:
    # minimum cost keeps the suite fast
    return PasswordHasher(rounds=4)


@pytest.fixture
def events() -> EventDispatcher:
    return EventDispatcher()


# =============================================================================
# Model Factories
# =============================================================================


@pytest.fixture
def make_user(
    db_session: AsyncSession, hasher: PasswordHasher
) -> Callable[..., Coroutine[Any, Any, User]]:
    """Factory creating committed users."""
    counter = {"n": 0}

    async def _make(**overrides: Any) -> User:
        counter["n"] += 1
        n = counter["n"]
        password = overrides.pop("password", TEST_PASSWORD)
        attrs = {
            "name": f"User {n}",
            "username": f"user{n}",
            "email": f"user{n}@example.com",
            "password_hash": hasher.hash(password),
            "is_active": True,
        }
        attrs.update(overrides)
        user = User(**attrs)
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_customer(db_session: AsyncSession) -> Callable[..., Coroutine[Any, Any, Customer]]:
    """Factory creating committed customers."""
    counter = {"n": 0}

    async def _make(**overrides: Any) -> Customer:
        counter["n"] += 1
        n = counter["n"]
        attrs = {
            "name": f"Customer {n}",
            "email": f"customer{n}@example.com",
            "status": CustomerStatus.ACTIVE,
            "metadata_": {},
        }
        attrs.update(overrides)
        customer = Customer(**attrs)
        db_session.add(customer)
        await db_session.commit()
        await db_session.refresh(customer)
        return customer

    return _make


@pytest.fixture
def test_password() -> str:
    return TEST_PASSWORD


@pytest_asyncio.fixture
async def user(make_user) -> User:
    return await make_user(name="Admin User", username="admin", email="admin@example.com")


# =============================================================================
# API Fixtures
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings for API testing."""
    return Settings(
        ENVIRONMENT="test",
        DEBUG=True,
        DATABASE_URL="sqlite+aiosqlite:///:memory:",
        API_TOKEN=None,
        CORS_ORIGINS=[],
        log_level="DEBUG",
        bcrypt_rounds=4,
        rate_limit_enabled=True,
        token_expiration_minutes=None,
    )


@pytest.fixture
def test_app(
    test_settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> FastAPI:
    """FastAPI application wired to the in-memory test database."""
    from clientbook.api.app import create_app

    app = create_app(settings=test_settings)

    async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    return app


@pytest_asyncio.fixture
async def test_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client calling the test application in-process."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def login(test_client: AsyncClient) -> Callable[..., Coroutine[Any, Any, str]]:
    """Log in through the API and return the plain-text token."""

    async def _login(username: str, device_name: str | None = None) -> str:
        payload: dict[str, Any] = {"username": username, "password": TEST_PASSWORD}
        if device_name is not None:
            payload["device_name"] = device_name
        response = await test_client.post("/v1/login", json=payload)
        assert response.status_code == 200, response.text
        return response.json()["data"]["token"]["access_token"]

    return _login


@pytest_asyncio.fixture
async def auth_headers(login, user: User) -> dict[str, str]:
    token = await login(user.username)
    return {"Authorization": f"Bearer {token}"}
