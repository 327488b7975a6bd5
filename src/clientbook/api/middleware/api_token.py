"""Shared static API token check."""

import hmac
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from clientbook.api.middleware.errors import domain_error_response
from clientbook.core.exceptions import InvalidApiTokenError

# Only the versioned API is guarded; health checks and docs stay open
PROTECTED_PREFIXES = ("/v1",)


class ApiTokenMiddleware(BaseHTTPMiddleware):
    """Require the configured static API token on every API request.

    Runs ahead of per-user bearer authentication. When no token is
    configured the check is skipped entirely.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        settings = request.app.state.settings
        expected = settings.API_TOKEN

        if expected is None or not request.url.path.startswith(PROTECTED_PREFIXES):
            return await call_next(request)

        provided = request.headers.get(settings.API_TOKEN_HEADER)
        if not provided or not hmac.compare_digest(
            provided.encode("utf-8"), expected.get_secret_value().encode("utf-8")
        ):
            return domain_error_response(InvalidApiTokenError())

        return await call_next(request)
