"""Access log middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from clientbook.api.network import get_client_ip

access_logger = logging.getLogger("clientbook.api.requests")


def level_for_status(status_code: int) -> int:
    """Server errors log at ERROR, client errors at WARNING."""
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Write one access line per request through stdlib logging.

    The line is rendered by the structlog formatter installed by
    ``setup_logging``. Query strings are left out because login and
    listing URLs can carry personal data.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        state = request.state
        access_logger.log(
            level_for_status(response.status_code),
            "%s %s -> %s (%.2fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            extra={
                "request_id": str(getattr(state, "request_id", "unknown")),
                "user_id": getattr(state, "user_id", None),
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "client_ip": get_client_ip(request),
                "user_agent": request.headers.get("user-agent"),
            },
        )
        return response
