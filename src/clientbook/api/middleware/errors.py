"""Mapping of exceptions to HTTP error responses.

Domain errors carry their own status and error code. Framework errors
(request validation, unknown routes) are translated to the same
envelope. Anything else becomes a 500 in ``ErrorHandlingMiddleware``.
"""

from collections.abc import Sequence
from typing import Any, Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from clientbook.api.responses import ApiResponse
from clientbook.core.exceptions import DomainError, TooManyRequestsError, ValidationFailedError

logger = structlog.get_logger()

# Location prefixes FastAPI puts in front of field names
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}

HTTP_ERROR_CODES = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
}


def domain_error_response(exc: DomainError) -> JSONResponse:
    """Render a domain error as the standard error envelope."""
    errors = exc.errors if isinstance(exc, ValidationFailedError) else None
    headers = exc.headers() if isinstance(exc, TooManyRequestsError) else None
    return ApiResponse.error(
        exc.message,
        status_code=exc.status_code,
        errors=errors,
        error_code=exc.error_code,
        headers=headers,
    )


def format_validation_errors(errors: Sequence[Any]) -> dict[str, list[str]]:
    """Group pydantic error entries by field name.

    ``("body", "email")`` becomes ``"email"``; nested locations are
    joined with dots.
    """
    grouped: dict[str, list[str]] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in _LOCATION_PREFIXES:
            loc = loc[1:]
        field = ".".join(loc) or "body"
        message = error.get("msg", "Invalid value")
        grouped.setdefault(field, []).append(message)
    return grouped


async def handle_domain_error(request: Request, exc: DomainError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("domain_error", error_code=exc.error_code, error=exc.message)
    return domain_error_response(exc)


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return domain_error_response(ValidationFailedError(format_validation_errors(exc.errors())))


async def handle_pydantic_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return domain_error_response(ValidationFailedError(format_validation_errors(exc.errors())))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        message = "Resource not found."
    else:
        message = str(exc.detail)
    return ApiResponse.error(
        message,
        status_code=exc.status_code,
        error_code=HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR"),
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, handle_domain_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(ValidationError, handle_pydantic_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware that catches exceptions escaping the routing layer.

    Domain errors raised by inner middleware are rendered like any other
    domain error; everything else is logged and turned into a 500.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except DomainError as exc:
            return domain_error_response(exc)
        except Exception as exc:
            return self._handle_exception(request, exc)

    def _handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            method=request.method,
            path=request.url.path,
        )

        errors = None
        if self._is_debug(request):
            errors = {"exception": [type(exc).__name__]}

        request_id = getattr(request.state, "request_id", None)
        return ApiResponse.error(
            "An unexpected error occurred.",
            status_code=500,
            errors=errors,
            error_code="SERVER_ERROR",
            headers={"X-Request-ID": str(request_id)} if request_id else None,
        )

    def _is_debug(self, request: Request) -> bool:
        settings = getattr(request.app.state, "settings", None)
        return bool(settings is not None and settings.DEBUG)
