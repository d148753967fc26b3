"""Exception classes for the shiftctl workforce client.

This module defines the exception hierarchy used throughout the client.
Backend failures keep the backend's own ``code``/``message``/``hint`` so
callers can build user-facing text from them.
"""

from typing import Optional, Dict, Any


class ShiftCtlError(Exception):
    """Base exception class for all shiftctl errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(ShiftCtlError):
    """Exception raised for configuration-related errors."""
    pass


class AuthenticationError(ShiftCtlError):
    """Exception raised when no usable session or credentials exist."""
    pass


class SessionExpiredError(AuthenticationError):
    """Exception raised when the stored session has expired."""
    pass


class ValidationError(ShiftCtlError):
    """Exception raised for client-side validation errors."""
    pass


class NetworkError(ShiftCtlError):
    """Exception raised when a request got no response at all.

    Covers dropped connections, DNS failures, aborted requests and
    timeouts. ``status_code`` is always None and ``code`` is either
    ``"timeout"`` or ``"network_error"``.
    """

    def __init__(
        self,
        message: str,
        timeout: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            timeout: Whether the failure was a timeout
            details: Optional additional error details
        """
        super().__init__(message, details)
        self.timeout = timeout
        self.code = "timeout" if timeout else "network_error"
        self.status_code = None


class RequestError(ShiftCtlError):
    """Exception raised when a request could not be built or sent.

    Invalid URLs, missing connection adapters and similar problems that
    will fail the same way every time. ``code`` is ``"request_error"``.
    """

    code = "request_error"
    status_code = None


class APIError(ShiftCtlError):
    """Base exception for errors returned by the backend."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        response_data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            code: Backend error code (e.g. ``PGRST301``, ``42501``)
            hint: Optional hint returned by the backend
            response_data: Raw response data from the backend
        """
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.hint = hint
        self.response_data = response_data or {}

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} ({self.code})"
        return self.message


class BadRequestError(APIError):
    """Exception raised for 400 Bad Request errors."""
    pass


class UnauthorizedError(APIError):
    """Exception raised for 401 Unauthorized errors."""
    pass


class ForbiddenError(APIError):
    """Exception raised for 403 Forbidden errors (row-level security)."""
    pass


class NotFoundError(APIError):
    """Exception raised when a requested row or object does not exist."""
    pass


class ConflictError(APIError):
    """Exception raised for 409 Conflict errors."""
    pass


class ServerError(APIError):
    """Exception raised for 5xx server errors."""
    pass


class RateLimitError(APIError):
    """Exception raised for 429 Rate Limit errors."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        **kwargs: Any
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            retry_after: Seconds to wait before retrying
            **kwargs: Additional arguments passed to parent class
        """
        super().__init__(message, **kwargs)
        self.retry_after = retry_after
