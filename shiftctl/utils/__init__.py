"""Utility modules for the shiftctl client.

This package contains error classification, retry logic, auth header
management and date helpers.
"""

from .auth import AuthManager
from .exceptions import (
    BackendFailure,
    NetworkFailure,
    UnknownFailure,
    classify_error,
    is_backend_error,
    is_connection_failure,
    is_network_error,
)
from .retry import AttemptOutcome, RetryExecutor, retry, retry_operation

__all__ = [
    "AuthManager",
    "BackendFailure",
    "NetworkFailure",
    "UnknownFailure",
    "classify_error",
    "is_backend_error",
    "is_connection_failure",
    "is_network_error",
    "AttemptOutcome",
    "RetryExecutor",
    "retry",
    "retry_operation",
]
