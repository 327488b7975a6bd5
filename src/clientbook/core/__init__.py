"""Core services and utilities for Clientbook."""

from .context import (
    RequestContext,
    create_context,
    get_current_context,
    get_current_context_or_none,
    request_context,
)
from .events import (
    CustomerCreated,
    CustomerDeleted,
    CustomerRestored,
    CustomerUpdated,
    DomainEvent,
    EventDispatcher,
    UserLoggedIn,
    UserLoggedOut,
)
from .exceptions import (
    AuthenticationError,
    ClientbookError,
    ConfigurationError,
    ContextNotSetError,
    CustomerAlreadyExistsError,
    CustomerNotFoundError,
    DomainError,
    InvalidApiTokenError,
    InvalidCredentialsError,
    TooManyRequestsError,
    UserNotFoundError,
    ValidationFailedError,
)

__all__ = [
    # Context
    "RequestContext",
    "create_context",
    "get_current_context",
    "get_current_context_or_none",
    "request_context",
    # Events
    "CustomerCreated",
    "CustomerDeleted",
    "CustomerRestored",
    "CustomerUpdated",
    "DomainEvent",
    "EventDispatcher",
    "UserLoggedIn",
    "UserLoggedOut",
    # Exceptions
    "AuthenticationError",
    "ClientbookError",
    "ConfigurationError",
    "ContextNotSetError",
    "CustomerAlreadyExistsError",
    "CustomerNotFoundError",
    "DomainError",
    "InvalidApiTokenError",
    "InvalidCredentialsError",
    "TooManyRequestsError",
    "UserNotFoundError",
    "ValidationFailedError",
]
