"""Error classification and user-facing error formatting.

Raw errors reach this module in many shapes: our own ``NetworkError`` and
``APIError`` subclasses, bare ``requests`` exceptions, or any object that
happens to expose ``code``/``message``/``status_code``/``timeout``. The
classification here maps them onto a small tagged union so the retry
predicate never has to inspect raw shapes itself.
"""

from dataclasses import dataclass
from typing import Any, Optional, Union

from requests.exceptions import ConnectionError as RequestsConnectionError, Timeout

from ..exceptions import (
    APIError,
    AuthenticationError,
    ConfigError,
    NetworkError,
    RateLimitError,
    RequestError,
    ShiftCtlError,
    ValidationError,
)


@dataclass(frozen=True)
class NetworkFailure:
    """No response was received, or the request timed out."""

    message: str
    timeout: bool = False


@dataclass(frozen=True)
class BackendFailure:
    """The backend answered with a structured error."""

    code: Optional[str]
    message: str
    status_code: Optional[int] = None


@dataclass(frozen=True)
class UnknownFailure:
    """Anything that is neither a network nor a backend failure."""

    message: str


Failure = Union[NetworkFailure, BackendFailure, UnknownFailure]

# Lower-cased codes that mean "the request never got an answer".
NETWORK_ERROR_CODES = frozenset({
    "network_error",
    "timeout",
    "etimedout",
    "econnreset",
    "econnrefused",
    "econnaborted",
    "enotfound",
    "eai_again",
    "enetunreach",
    "ehostunreach",
})

TIMEOUT_ERROR_CODES = frozenset({"timeout", "etimedout"})

# PostgreSQL class 08 (connection exception) codes.
CONNECTION_FAILURE_CODES = frozenset({"08000", "08001", "08003", "08006"})

PERMISSION_DENIED_CODES = frozenset({"PGRST301", "42501"})

NOT_FOUND_CODES = frozenset({"PGRST116"})

_NETWORK_MESSAGE_HINTS = ("network", "timeout", "timed out", "fetch", "connection")

NETWORK_ERROR_MESSAGE = (
    "Network connection issue. Please check your internet connection and try again."
)


def _error_code(error: Any) -> Optional[str]:
    code = getattr(error, "code", None)
    if code is None or isinstance(code, bool):
        return None
    if isinstance(code, (str, int)):
        code = str(code).strip()
        return code or None
    return None


def _error_status(error: Any) -> Optional[int]:
    for attr in ("status_code", "status"):
        status = getattr(error, attr, None)
        if isinstance(status, int) and not isinstance(status, bool):
            return status
    return None


def _error_message(error: Any) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error)


def classify_error(error: Any) -> Failure:
    """Map a raw error onto ``NetworkFailure | BackendFailure | UnknownFailure``.

    Unrecognised shapes are classified as unknown so that callers fail
    closed and do not retry them.

    Args:
        error: The raw error object

    Returns:
        The classified failure
    """
    if error is None:
        return UnknownFailure("No error information")

    message = _error_message(error)

    if isinstance(error, (Timeout, TimeoutError)):
        return NetworkFailure(message, timeout=True)
    if isinstance(error, NetworkError):
        return NetworkFailure(message, timeout=error.timeout)
    if isinstance(error, (RequestsConnectionError, ConnectionError)):
        return NetworkFailure(message)
    if isinstance(error, RequestError):
        return UnknownFailure(message)

    if getattr(error, "timeout", None) is True:
        return NetworkFailure(message, timeout=True)

    code = _error_code(error)
    status = _error_status(error)

    if code and code.lower() in NETWORK_ERROR_CODES:
        return NetworkFailure(message, timeout=code.lower() in TIMEOUT_ERROR_CODES)
    if status == 0:
        return NetworkFailure(message)

    if code or (status is not None and status > 0):
        return BackendFailure(code=code, message=message, status_code=status)

    lowered = message.lower()
    if any(hint in lowered for hint in _NETWORK_MESSAGE_HINTS):
        return NetworkFailure(message, timeout="timeout" in lowered or "timed out" in lowered)

    return UnknownFailure(message)


def is_network_error(error: Any) -> bool:
    """Check whether an error is a transient network failure."""
    return isinstance(classify_error(error), NetworkFailure)


def is_backend_error(error: Any) -> bool:
    """Check whether an error is a structured backend failure."""
    return isinstance(classify_error(error), BackendFailure)


def is_connection_failure(error: Any) -> bool:
    """Check for a network failure or a database connection exception.

    Write paths use this predicate: a ``08xxx`` code means the backend
    lost its own database connection, which is as transient as a
    dropped client connection.
    """
    failure = classify_error(error)
    if isinstance(failure, NetworkFailure):
        return True
    return isinstance(failure, BackendFailure) and failure.code in CONNECTION_FAILURE_CODES


def default_should_retry(error: Any) -> bool:
    """Default retry predicate: retry network-classified errors only."""
    return is_network_error(error)


def is_permission_denied(error: Any) -> bool:
    """Check whether an error is a row-level-security or permission rejection."""
    failure = classify_error(error)
    if not isinstance(failure, BackendFailure):
        return False
    if failure.code in PERMISSION_DENIED_CODES:
        return True
    return "permission denied" in failure.message.lower()


def get_network_error_message(error: Any) -> str:
    """Get a human-readable message based on the error type.

    Args:
        error: The error object

    Returns:
        User-friendly error message
    """
    if error is None:
        return "An unknown error occurred."

    if is_network_error(error):
        return NETWORK_ERROR_MESSAGE

    message = _error_message(error).lower()
    if "permission" in message or "denied" in message:
        return "Permission denied. Please check your app permissions and try again."

    return "An error occurred. Please try again."


def format_error_for_user(error: Exception, debug: bool = False) -> str:
    """Format an error message for user display.

    Args:
        error: The exception to format
        debug: Whether to include debug information

    Returns:
        Formatted error message
    """
    if isinstance(error, NetworkError) or is_network_error(error):
        message = NETWORK_ERROR_MESSAGE
        if debug:
            message += f"\nCause: {error}"
        return message

    if isinstance(error, RateLimitError):
        message = f"Rate limit exceeded: {error.message}"
        if error.retry_after:
            message += f"\nRetry after: {error.retry_after} seconds"
        return message

    if isinstance(error, APIError):
        if is_permission_denied(error):
            message = "Permission denied. Please ensure you are logged in."
        elif error.code in NOT_FOUND_CODES:
            message = "Record not found."
        else:
            message = f"Backend error: {error.message}"
        if error.code:
            message += f"\nCode: {error.code}"
        if error.hint:
            message += f"\nHint: {error.hint}"
        if debug:
            if error.status_code:
                message += f"\nStatus code: {error.status_code}"
            if error.response_data:
                message += f"\nResponse: {error.response_data}"
        return message

    if isinstance(error, AuthenticationError):
        return f"Authentication error: {error.message}"

    if isinstance(error, ValidationError):
        return f"Validation error: {error.message}"

    if isinstance(error, ConfigError):
        return f"Configuration error: {error.message}"

    if isinstance(error, ShiftCtlError):
        message = error.message
        if error.details and debug:
            message += f"\nDetails: {error.details}"
        return message

    return f"Unexpected error: {error}"
