"""Unit tests for utils/exceptions.py module.

Tests error classification into network, backend and unknown failures,
the retry predicates built on it, and user-facing error formatting.
"""

import pytest
from types import SimpleNamespace

from requests.exceptions import ConnectionError as RequestsConnectionError, Timeout

from shiftctl.exceptions import (
    APIError,
    AuthenticationError,
    ConfigError,
    NetworkError,
    RateLimitError,
    RequestError,
    ShiftCtlError,
    ValidationError,
)
from shiftctl.utils.exceptions import (
    NETWORK_ERROR_MESSAGE,
    BackendFailure,
    NetworkFailure,
    UnknownFailure,
    classify_error,
    default_should_retry,
    format_error_for_user,
    get_network_error_message,
    is_backend_error,
    is_connection_failure,
    is_network_error,
    is_permission_denied,
)


class TestClassifyError:
    """Test cases for classify_error."""

    def test_network_error(self):
        """Test our NetworkError is a network failure."""
        failure = classify_error(NetworkError("Network connection failed"))

        assert failure == NetworkFailure("Network connection failed", timeout=False)

    def test_network_timeout(self):
        """Test a timed-out NetworkError keeps its timeout flag."""
        failure = classify_error(NetworkError("Request timed out", timeout=True))

        assert isinstance(failure, NetworkFailure)
        assert failure.timeout is True

    def test_requests_timeout(self):
        """Test a raw requests timeout is a network failure."""
        failure = classify_error(Timeout("read timed out"))

        assert isinstance(failure, NetworkFailure)
        assert failure.timeout is True

    @pytest.mark.parametrize("error", [
        RequestsConnectionError("connection aborted"),
        ConnectionRefusedError("refused"),
        TimeoutError("timed out"),
    ])
    def test_transport_errors(self, error):
        """Test transport-level exceptions are network failures."""
        assert isinstance(classify_error(error), NetworkFailure)

    @pytest.mark.parametrize("code", ["ECONNRESET", "etimedout", "NETWORK_ERROR", "ENOTFOUND"])
    def test_network_codes(self, code):
        """Test objects carrying a network error code are network failures."""
        error = SimpleNamespace(code=code, message="socket hang up")

        assert isinstance(classify_error(error), NetworkFailure)

    def test_timeout_code_sets_timeout(self):
        """Test a timeout code marks the failure as a timeout."""
        failure = classify_error(SimpleNamespace(code="ETIMEDOUT", message="slow"))

        assert failure.timeout is True

    def test_timeout_attribute(self):
        """Test an object with timeout=True is a network timeout."""
        failure = classify_error(SimpleNamespace(timeout=True, message="gave up"))

        assert failure == NetworkFailure("gave up", timeout=True)

    def test_status_zero(self):
        """Test a zero status (no response) is a network failure."""
        assert isinstance(classify_error(SimpleNamespace(status=0, message="")), NetworkFailure)

    def test_backend_error_with_code(self):
        """Test an API error carrying a code is a backend failure."""
        error = APIError("permission denied for table shifts", status_code=403, code="42501")

        failure = classify_error(error)

        assert failure == BackendFailure(
            code="42501",
            message="permission denied for table shifts",
            status_code=403,
        )

    def test_backend_error_status_only(self):
        """Test an API error with only a status is a backend failure."""
        failure = classify_error(APIError("Internal Server Error", status_code=500))

        assert isinstance(failure, BackendFailure)
        assert failure.code is None
        assert failure.status_code == 500

    def test_numeric_code_is_stringified(self):
        """Test a numeric code is normalized to a string."""
        failure = classify_error(SimpleNamespace(code=23505, message="duplicate key"))

        assert failure == BackendFailure(code="23505", message="duplicate key", status_code=None)

    def test_network_message_hint(self):
        """Test an otherwise plain error mentioning the network is a network failure."""
        failure = classify_error(Exception("TypeError: Failed to fetch"))

        assert isinstance(failure, NetworkFailure)
        assert failure.timeout is False

    def test_timeout_message_hint(self):
        """Test a plain error mentioning a timeout is a network timeout."""
        failure = classify_error(Exception("Operation timed out"))

        assert failure.timeout is True

    def test_unknown_error(self):
        """Test an unrecognised error is unknown."""
        assert classify_error(ValueError("boom")) == UnknownFailure("boom")

    def test_none(self):
        """Test a missing error is unknown."""
        assert isinstance(classify_error(None), UnknownFailure)

    def test_plain_string(self):
        """Test a bare string is classified by its text."""
        assert isinstance(classify_error("something odd"), UnknownFailure)


class TestPredicates:
    """Test cases for the classification predicates."""

    def test_is_network_error(self):
        """Test is_network_error follows the classification."""
        assert is_network_error(NetworkError("offline")) is True
        assert is_network_error(APIError("bad", status_code=400)) is False
        assert is_network_error(ValueError("x")) is False

    def test_is_backend_error(self):
        """Test is_backend_error follows the classification."""
        assert is_backend_error(APIError("bad", status_code=400)) is True
        assert is_backend_error(NetworkError("offline")) is False

    def test_default_should_retry(self):
        """Test the default predicate retries only network failures."""
        assert default_should_retry(NetworkError("offline")) is True
        assert default_should_retry(Timeout("slow")) is True
        assert default_should_retry(APIError("boom", status_code=500)) is False
        assert default_should_retry(APIError("denied", code="PGRST301")) is False
        assert default_should_retry(KeyError("x")) is False

    @pytest.mark.parametrize("code", ["08000", "08001", "08003", "08006"])
    def test_connection_failure_codes(self, code):
        """Test database connection exception codes count as connection failures."""
        assert is_connection_failure(APIError("connection failure", status_code=503, code=code)) is True

    def test_connection_failure_network(self):
        """Test network failures count as connection failures."""
        assert is_connection_failure(NetworkError("offline")) is True

    def test_connection_failure_other_backend_codes(self):
        """Test other backend codes are not connection failures."""
        assert is_connection_failure(APIError("duplicate", status_code=409, code="23505")) is False
        assert is_connection_failure(ValueError("x")) is False

    def test_request_error_fails_closed(self):
        """Test unsendable requests are unknown failures even when the text mentions a connection."""
        error = RequestError("Request could not be sent: No connection adapters were found")

        assert classify_error(error) == UnknownFailure(error.message)
        assert default_should_retry(error) is False
        assert is_connection_failure(error) is False

    @pytest.mark.parametrize("error", [
        APIError("JWT expired", status_code=401, code="PGRST301"),
        APIError("new row violates row-level security policy", status_code=403, code="42501"),
        APIError("permission denied for table workers", status_code=403),
    ])
    def test_permission_denied(self, error):
        """Test permission rejections are recognised."""
        assert is_permission_denied(error) is True

    def test_not_permission_denied(self):
        """Test other errors are not permission rejections."""
        assert is_permission_denied(APIError("duplicate", status_code=409, code="23505")) is False
        assert is_permission_denied(NetworkError("permission denied")) is False


class TestGetNetworkErrorMessage:
    """Test cases for get_network_error_message."""

    def test_network(self):
        """Test network failures get the connection message."""
        assert get_network_error_message(NetworkError("offline")) == NETWORK_ERROR_MESSAGE

    def test_permission(self):
        """Test permission failures get the permission message."""
        message = get_network_error_message(APIError("permission denied", status_code=403))

        assert message.startswith("Permission denied.")

    def test_other(self):
        """Test anything else gets the generic message."""
        assert get_network_error_message(APIError("duplicate", status_code=409)) == (
            "An error occurred. Please try again."
        )

    def test_none(self):
        """Test a missing error gets the unknown message."""
        assert get_network_error_message(None) == "An unknown error occurred."


class TestFormatErrorForUser:
    """Test cases for format_error_for_user."""

    def test_network_error(self):
        """Test network errors show the connection message."""
        assert format_error_for_user(NetworkError("offline")) == NETWORK_ERROR_MESSAGE

    def test_network_error_debug(self):
        """Test debug mode adds the underlying cause."""
        message = format_error_for_user(NetworkError("Network connection failed"), debug=True)

        assert message.startswith(NETWORK_ERROR_MESSAGE)
        assert "Cause: Network connection failed" in message

    def test_rate_limit(self):
        """Test rate limit errors show the retry-after hint."""
        error = RateLimitError("Too many requests", retry_after=30, status_code=429)

        message = format_error_for_user(error)

        assert message == "Rate limit exceeded: Too many requests\nRetry after: 30 seconds"

    def test_permission_denied(self):
        """Test permission rejections ask the user to log in."""
        error = APIError("permission denied for table shifts", status_code=403, code="42501")

        message = format_error_for_user(error)

        assert message == "Permission denied. Please ensure you are logged in.\nCode: 42501"

    def test_not_found_code(self):
        """Test a zero-row single read is reported as not found."""
        error = APIError("JSON object requested, multiple (or no) rows returned", status_code=406, code="PGRST116")

        assert format_error_for_user(error).startswith("Record not found.")

    def test_backend_error_with_hint(self):
        """Test backend errors include code and hint."""
        error = APIError(
            'column "clock_in_lat" does not exist',
            status_code=400,
            code="42703",
            hint="Check the column name",
        )

        message = format_error_for_user(error)

        assert message == (
            'Backend error: column "clock_in_lat" does not exist\n'
            "Code: 42703\n"
            "Hint: Check the column name"
        )

    def test_backend_error_debug(self):
        """Test debug mode adds status and response data."""
        error = APIError("boom", status_code=500, response_data={"message": "boom"})

        message = format_error_for_user(error, debug=True)

        assert "Status code: 500" in message
        assert "Response: {'message': 'boom'}" in message

    def test_authentication_error(self):
        """Test authentication errors are labelled."""
        error = AuthenticationError("Invalid email or password. Please try again.")

        assert format_error_for_user(error) == (
            "Authentication error: Invalid email or password. Please try again."
        )

    def test_validation_error(self):
        """Test validation errors are labelled."""
        assert format_error_for_user(ValidationError("No active shift found.")) == (
            "Validation error: No active shift found."
        )

    def test_config_error(self):
        """Test configuration errors are labelled."""
        assert format_error_for_user(ConfigError("Profile 'x' not found")) == (
            "Configuration error: Profile 'x' not found"
        )

    def test_base_error_details(self):
        """Test details of a generic error are shown in debug mode only."""
        error = ShiftCtlError("Something failed", details={"step": "upload"})

        assert format_error_for_user(error) == "Something failed"
        assert "Details:" in format_error_for_user(error, debug=True)

    def test_unexpected_error(self):
        """Test foreign exceptions are reported as unexpected."""
        assert format_error_for_user(KeyError("x")) == "Unexpected error: 'x'"
