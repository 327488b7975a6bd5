"""Integration tests for API middleware stack."""

from collections.abc import AsyncGenerator, Callable
from contextlib import AsyncExitStack
from uuid import UUID

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clientbook.api.app import create_app
from clientbook.config.settings import Settings
from clientbook.db.config import get_db
from clientbook.db.models import User


@pytest_asyncio.fixture
async def client_with(
    test_settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
):
    """Build clients for apps created with overridden settings."""
    async with AsyncExitStack() as stack:

        async def _build(routes: dict[str, Callable] | None = None, **overrides) -> AsyncClient:
            app = create_app(settings=test_settings.model_copy(update=overrides))
            for path, endpoint in (routes or {}).items():
                app.add_api_route(path, endpoint)

            async def _get_test_db() -> AsyncGenerator[AsyncSession, None]:
                async with session_factory() as session:
                    yield session

            app.dependency_overrides[get_db] = _get_test_db
            client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
            return await stack.enter_async_context(client)

        yield _build


@pytest.mark.asyncio
class TestRequestContextMiddleware:
    async def test_request_id_header(self, test_client: AsyncClient):
        response = await test_client.get("/health")

        request_id = response.headers["X-Request-ID"]
        assert UUID(request_id).version == 7

    async def test_request_ids_are_unique(self, test_client: AsyncClient):
        first = await test_client.get("/health")
        second = await test_client.get("/health")

        assert first.headers["X-Request-ID"] != second.headers["X-Request-ID"]

    async def test_request_id_on_error_responses(self, test_client: AsyncClient):
        response = await test_client.get("/v1/me")

        assert response.status_code == 401
        assert "X-Request-ID" in response.headers


@pytest.mark.asyncio
class TestApiTokenMiddleware:
    async def test_missing_api_token(self, client_with):
        client = await client_with(API_TOKEN=SecretStr("s3cret"))

        response = await client.post("/v1/login", json={"username": "a", "password": "b"})

        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "INVALID_API_TOKEN"

    async def test_wrong_api_token(self, client_with):
        client = await client_with(API_TOKEN=SecretStr("s3cret"))

        response = await client.get("/v1/me", headers={"x-api-token": "guess"})

        assert response.json()["error_code"] == "INVALID_API_TOKEN"

    async def test_api_token_checked_before_bearer(
        self, client_with, user: User, test_password: str
    ):
        client = await client_with(API_TOKEN=SecretStr("s3cret"))

        response = await client.post(
            "/v1/login",
            json={"username": "admin", "password": test_password},
            headers={"x-api-token": "s3cret"},
        )

        assert response.status_code == 200

    async def test_custom_header_name(self, client_with):
        client = await client_with(API_TOKEN=SecretStr("s3cret"), API_TOKEN_HEADER="X-Shared-Key")

        response = await client.get("/v1/me", headers={"X-Shared-Key": "s3cret"})

        # past the static token check, stopped by bearer auth
        assert response.json()["error_code"] == "UNAUTHORIZED"

    async def test_health_is_exempt(self, client_with):
        client = await client_with(API_TOKEN=SecretStr("s3cret"))

        response = await client.get("/health")

        assert response.status_code == 200


@pytest.mark.asyncio
class TestRateLimiting:
    async def test_headers_on_success(self, test_client: AsyncClient, auth_headers: dict):
        response = await test_client.get("/v1/me", headers=auth_headers)

        assert response.headers["X-RateLimit-Limit"] == "60"
        assert int(response.headers["X-RateLimit-Remaining"]) < 60
        assert "X-RateLimit-Reset" in response.headers

    async def test_login_attempts_limited(self, client_with):
        client = await client_with(rate_limit_auth_per_minute=2)
        payload = {"username": "ghost", "password": "whatever"}

        for _ in range(2):
            assert (await client.post("/v1/login", json=payload)).status_code == 401

        response = await client.post("/v1/login", json=payload)

        assert response.status_code == 429
        body = response.json()
        assert body["error_code"] == "TOO_MANY_ATTEMPTS"
        assert body["message"] == "Too many login attempts. Please try again later."
        assert int(response.headers["Retry-After"]) >= 1
        assert response.headers["X-RateLimit-Limit"] == "2"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    async def test_forwarded_for_ignored_from_untrusted_peer(self, client_with):
        client = await client_with(rate_limit_auth_per_minute=2)
        payload = {"username": "ghost", "password": "whatever"}

        codes = []
        for i in range(3):
            headers = {"X-Forwarded-For": f"10.0.0.{i}"}
            response = await client.post("/v1/login", json=payload, headers=headers)
            codes.append(response.status_code)

        assert codes == [401, 401, 429]

    async def test_forwarded_for_honoured_from_trusted_proxy(self, client_with):
        # ASGITransport reports the peer as 127.0.0.1
        client = await client_with(rate_limit_auth_per_minute=2, TRUSTED_PROXIES=["127.0.0.1"])
        payload = {"username": "ghost", "password": "whatever"}

        for i in range(3):
            response = await client.post(
                "/v1/login", json=payload, headers={"X-Forwarded-For": f"10.0.0.{i}, 127.0.0.1"}
            )
            assert response.status_code == 401

    async def test_sensitive_limit(self, client_with, make_customer, user: User, test_password):
        client = await client_with(rate_limit_sensitive_per_minute=1)
        login = await client.post(
            "/v1/login", json={"username": "admin", "password": test_password}
        )
        headers = {"Authorization": f"Bearer {login.json()['data']['token']['access_token']}"}
        first = await make_customer()
        second = await make_customer()

        ok = await client.delete(f"/v1/customers/{first.uuid}/force", headers=headers)
        limited = await client.delete(f"/v1/customers/{second.uuid}/force", headers=headers)

        assert ok.status_code == 200
        assert limited.status_code == 429
        assert limited.json()["error_code"] == "RATE_LIMIT_EXCEEDED"

    async def test_disabled(self, client_with):
        client = await client_with(rate_limit_enabled=False, rate_limit_auth_per_minute=1)
        payload = {"username": "ghost", "password": "whatever"}

        for _ in range(3):
            assert (await client.post("/v1/login", json=payload)).status_code == 401


@pytest.mark.asyncio
class TestErrorHandling:
    async def test_unknown_route(self, test_client: AsyncClient):
        response = await test_client.get("/nowhere")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "message": "Resource not found.",
            "error_code": "NOT_FOUND",
        }

    async def test_wrong_method(self, test_client: AsyncClient):
        response = await test_client.get("/v1/login")

        assert response.status_code == 405
        assert response.json()["error_code"] == "METHOD_NOT_ALLOWED"

    async def test_malformed_json(self, test_client: AsyncClient):
        response = await test_client.post(
            "/v1/login",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_unhandled_exception(self, test_app: FastAPI, test_client: AsyncClient):
        async def explode():
            raise RuntimeError("kaboom")

        test_app.add_api_route("/boom", explode)

        response = await test_client.get("/boom")

        assert response.status_code == 500
        body = response.json()
        assert body["error_code"] == "SERVER_ERROR"
        assert body["message"] == "An unexpected error occurred."
        assert body["errors"] == {"exception": ["RuntimeError"]}
        assert "kaboom" not in response.text

    async def test_exception_details_hidden_outside_debug(self, client_with):
        async def explode():
            raise RuntimeError("kaboom")

        client = await client_with(routes={"/boom": explode}, DEBUG=False)

        response = await client.get("/boom")

        assert response.status_code == 500
        assert "errors" not in response.json()
