"""Unit tests for domain exceptions and their HTTP mapping."""

import json

import pytest

from clientbook.api.middleware.errors import domain_error_response, format_validation_errors
from clientbook.core.exceptions import (
    AuthenticationError,
    ClientbookError,
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


class TestExceptionTaxonomy:
    @pytest.mark.parametrize(
        ("exc", "status_code", "error_code"),
        [
            (InvalidCredentialsError(), 401, "INVALID_CREDENTIALS"),
            (InvalidApiTokenError(), 401, "INVALID_API_TOKEN"),
            (AuthenticationError(), 401, "UNAUTHORIZED"),
            (UserNotFoundError("bob"), 404, "USER_NOT_FOUND"),
            (CustomerNotFoundError("abc"), 404, "CUSTOMER_NOT_FOUND"),
            (CustomerAlreadyExistsError("a@b.c"), 409, "CUSTOMER_ALREADY_EXISTS"),
            (ValidationFailedError({"email": ["bad"]}), 422, "VALIDATION_ERROR"),
            (TooManyRequestsError(), 429, "TOO_MANY_REQUESTS"),
            (ContextNotSetError(), 500, "SERVER_ERROR"),
        ],
    )
    def test_status_and_code(self, exc: DomainError, status_code: int, error_code: str):
        assert exc.status_code == status_code
        assert exc.error_code == error_code

    def test_domain_errors_share_base(self):
        assert isinstance(CustomerNotFoundError(1), ClientbookError)

    def test_default_messages(self):
        assert InvalidCredentialsError().message == "The provided credentials are incorrect."
        assert InvalidApiTokenError().message == "Invalid or missing API token."

    def test_messages_include_identifier(self):
        assert "abc" in CustomerNotFoundError("abc").message
        assert "a@b.c" in CustomerAlreadyExistsError("a@b.c").message

    def test_validation_error_to_dict_includes_errors(self):
        exc = ValidationFailedError({"email": ["bad"]})
        assert exc.to_dict() == {
            "message": "Validation failed",
            "error_code": "VALIDATION_ERROR",
            "errors": {"email": ["bad"]},
        }

    def test_too_many_requests_custom_code(self):
        exc = TooManyRequestsError("slow down", error_code="TOO_MANY_ATTEMPTS", retry_after=30)
        assert exc.error_code == "TOO_MANY_ATTEMPTS"
        assert exc.headers() == {"Retry-After": "30"}
        # class attribute untouched
        assert TooManyRequestsError.error_code == "TOO_MANY_REQUESTS"


class TestDomainErrorResponse:
    def test_envelope_shape(self):
        response = domain_error_response(CustomerNotFoundError("abc"))
        body = json.loads(response.body)

        assert response.status_code == 404
        assert body["success"] is False
        assert body["error_code"] == "CUSTOMER_NOT_FOUND"
        assert "errors" not in body

    def test_validation_errors_included(self):
        response = domain_error_response(ValidationFailedError({"name": ["required"]}))
        body = json.loads(response.body)

        assert response.status_code == 422
        assert body["errors"] == {"name": ["required"]}

    def test_rate_limit_headers(self):
        response = domain_error_response(TooManyRequestsError(retry_after=9, limit=5))

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "9"
        assert response.headers["X-RateLimit-Limit"] == "5"
        assert response.headers["X-RateLimit-Remaining"] == "0"


class TestFormatValidationErrors:
    def test_location_prefix_stripped(self):
        errors = [
            {"loc": ("body", "email"), "msg": "value is not a valid email address"},
            {"loc": ("query", "per_page"), "msg": "Input should be less than or equal to 100"},
        ]
        assert format_validation_errors(errors) == {
            "email": ["value is not a valid email address"],
            "per_page": ["Input should be less than or equal to 100"],
        }

    def test_messages_grouped_by_field(self):
        errors = [
            {"loc": ("body", "name"), "msg": "first"},
            {"loc": ("body", "name"), "msg": "second"},
        ]
        assert format_validation_errors(errors) == {"name": ["first", "second"]}

    def test_nested_location_joined(self):
        errors = [{"loc": ("body", "metadata", "tags", 0), "msg": "bad"}]
        assert format_validation_errors(errors) == {"metadata.tags.0": ["bad"]}

    def test_missing_body(self):
        errors = [{"loc": ("body",), "msg": "Field required"}]
        assert format_validation_errors(errors) == {"body": ["Field required"]}
