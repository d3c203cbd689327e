"""Tests for gh_usecases.exceptions module."""

import pytest

from gh_usecases.enums import ErrorKind
from gh_usecases.exceptions import (
    ApiError,
    AuthenticationError,
    ConfigurationError,
    GhUsecasesError,
    InvalidTransitionError,
    NetworkError,
    ValidationError,
)


class TestGhUsecasesError:
    """Test base GhUsecasesError class."""

    def test_init_with_message(self):
        error = GhUsecasesError("Test error message")

        assert error.message == "Test error message"
        assert str(error) == "Test error message"
        assert error.kind == ErrorKind.UNKNOWN

    def test_explicit_kind(self):
        assert GhUsecasesError("x", kind=ErrorKind.NOT_FOUND).kind == ErrorKind.NOT_FOUND

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (ConfigurationError("bad file"), ErrorKind.UNKNOWN),
            (AuthenticationError("no token"), ErrorKind.AUTHENTICATION),
            (NetworkError("offline"), ErrorKind.NETWORK),
            (ValidationError("bad name"), ErrorKind.VALIDATION),
            (ApiError("failed"), ErrorKind.UNKNOWN),
        ],
    )
    def test_default_kinds(self, error, kind):
        assert isinstance(error, GhUsecasesError)
        assert error.kind == kind


class TestAuthenticationError:
    """Test AuthenticationError."""

    def test_suggestion_in_str_but_not_in_message(self):
        error = AuthenticationError("Not logged in", suggestion="Run `gh auth login`")

        assert error.message == "Not logged in"
        assert str(error) == "Not logged in\nSuggestion: Run `gh auth login`"


class TestApiError:
    """Test ApiError and NetworkError."""

    def test_status_code_appended(self):
        error = ApiError("Forbidden", kind=ErrorKind.PERMISSION, status_code=403, error_type="FORBIDDEN")

        assert error.message == "Forbidden (HTTP 403)"
        assert error.status_code == 403
        assert error.error_type == "FORBIDDEN"
        assert error.kind == ErrorKind.PERMISSION

    def test_network_error_is_api_error(self):
        with pytest.raises(ApiError):
            raise NetworkError("offline")


class TestInvalidTransitionError:
    def test_names_step_and_event(self):
        error = InvalidTransitionError("done", "Cancelled")

        assert error.step == "done"
        assert error.event == "Cancelled"
        assert "Cancelled" in str(error)
