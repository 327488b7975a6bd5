"""API middleware components."""

from .api_token import ApiTokenMiddleware
from .context import RequestContextMiddleware
from .errors import ErrorHandlingMiddleware, register_exception_handlers
from .logging import RequestLoggingMiddleware

__all__ = [
    "ApiTokenMiddleware",
    "ErrorHandlingMiddleware",
    "RequestContextMiddleware",
    "RequestLoggingMiddleware",
    "register_exception_handlers",
]
