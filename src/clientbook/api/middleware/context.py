"""Request context middleware for propagating context through the request lifecycle."""

from collections.abc import Mapping
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from clientbook.api.network import get_client_ip
from clientbook.core.context import create_context, request_context


def attach_response_headers(request: Request, headers: Mapping[str, str]) -> None:
    """Queue headers to be set on whatever response this request produces.

    Handlers return ready-made ``JSONResponse`` objects, so dependencies
    cannot add headers through an injected ``Response``.
    """
    pending = getattr(request.state, "response_headers", None)
    if pending is None:
        pending = request.state.response_headers = {}
    pending.update(headers)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware that sets up a RequestContext for each request.

    Sets:
        request.state.request_id: The generated request ID (UUIDv7)
        request.state.context: The RequestContext itself
        X-Request-ID response header: For client correlation
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        ctx = create_context(client_ip=get_client_ip(request))
        request.state.request_id = ctx.request_id
        request.state.context = ctx

        with request_context(ctx):
            response = await call_next(request)

        for name, value in (getattr(request.state, "response_headers", None) or {}).items():
            response.headers.setdefault(name, value)
        response.headers["X-Request-ID"] = str(ctx.request_id)
        return response
