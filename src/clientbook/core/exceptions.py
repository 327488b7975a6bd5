"""Domain exceptions for Clientbook.

Every domain error carries a human-readable message, a stable machine
readable ``error_code`` and the HTTP ``status_code`` the API boundary
responds with. Only ``clientbook.api.middleware.errors`` turns these into
responses; the domain layer never builds HTTP payloads itself.
"""

from typing import Any


class ClientbookError(Exception):
    """Base exception for all Clientbook errors."""


class ConfigurationError(ClientbookError):
    """Invalid or unsafe settings detected at startup."""


class DomainError(ClientbookError):
    """Base class for errors that map to a client-facing response.

    Attributes:
        message: Human-readable description
        error_code: Stable machine-readable code
        status_code: HTTP status returned at the API boundary
    """

    error_code: str = "SERVER_ERROR"
    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "error_code": self.error_code}


class ContextNotSetError(DomainError):
    """Raised when attempting to access request context that is not set.

    This indicates a programming error: code requiring a request context
    was called outside of a request.
    """

    default_message = "Request context is not set"


# =============================================================================
# Authentication
# =============================================================================


class InvalidCredentialsError(DomainError):
    """Raised when a login attempt fails.

    Unknown usernames, wrong passwords and disabled accounts all produce
    this same error so callers cannot enumerate accounts.
    """

    error_code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "The provided credentials are incorrect."


class InvalidApiTokenError(DomainError):
    """Raised when the shared static API token is missing or wrong."""

    error_code = "INVALID_API_TOKEN"
    status_code = 401
    default_message = "Invalid or missing API token."


class AuthenticationError(DomainError):
    """Raised when a request lacks a valid bearer token."""

    error_code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Unauthenticated. Please provide a valid token."


class UserNotFoundError(DomainError):
    """Raised when a user lookup by username fails."""

    error_code = "USER_NOT_FOUND"
    status_code = 404

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User not found with username: {username}")


# =============================================================================
# Customers
# =============================================================================


class CustomerNotFoundError(DomainError):
    """Raised when a customer lookup by id or uuid fails.

    Attributes:
        identifier: The id or uuid that was looked up
    """

    error_code = "CUSTOMER_NOT_FOUND"
    status_code = 404

    def __init__(self, identifier: Any):
        self.identifier = identifier
        super().__init__(f"Customer not found with identifier: {identifier}")


class CustomerAlreadyExistsError(DomainError):
    """Raised when a customer email is already taken.

    Attributes:
        email: The conflicting email address
    """

    error_code = "CUSTOMER_ALREADY_EXISTS"
    status_code = 409

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Customer with email {email} already exists")


# =============================================================================
# Request handling
# =============================================================================


class ValidationFailedError(DomainError):
    """Raised when input fails validation.

    Attributes:
        errors: Messages keyed by field name
    """

    error_code = "VALIDATION_ERROR"
    status_code = 422
    default_message = "Validation failed"

    def __init__(self, errors: dict[str, list[str]], message: str | None = None):
        self.errors = errors
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "errors": self.errors}


class TooManyRequestsError(DomainError):
    """Raised when a named rate limit is exceeded.

    Attributes:
        retry_after: Seconds until the client may retry
        limit: Requests allowed per window
    """

    error_code = "TOO_MANY_REQUESTS"
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        retry_after: int = 60,
        limit: int | None = None,
    ):
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code
        self.retry_after = retry_after
        self.limit = limit

    def headers(self) -> dict[str, str]:
        headers = {"Retry-After": str(self.retry_after)}
        if self.limit is not None:
            headers["X-RateLimit-Limit"] = str(self.limit)
            headers["X-RateLimit-Remaining"] = "0"
        return headers
