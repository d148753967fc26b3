"""Care worker shift client package.

A command-line client for a care-worker workforce backend: worker sign-in,
clocking in and out of shifts, timesheets, schedules and documents, with
retrying network access throughout.
"""

__version__ = "0.1.0"
__description__ = "Command-line client for care worker shifts, timesheets and documents"

# Re-export main classes for convenience
from .client import BackendClient
from .config import ConfigManager, Profile
from .events import AuthEvent, AuthEventBus, auth_events
from .query import Query
from .render import OutputFormatter
from .session import AuthSession, SessionStore
from .utils.auth import AuthManager
from .utils.retry import AttemptOutcome, RetryExecutor, retry, retry_operation
from .exceptions import (
    ShiftCtlError,
    ConfigError,
    AuthenticationError,
    SessionExpiredError,
    ValidationError,
    NetworkError,
    RequestError,
    APIError,
    BadRequestError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    ServerError,
    RateLimitError,
)

__all__ = [
    "__version__",
    "__description__",
    "BackendClient",
    "ConfigManager",
    "Profile",
    "AuthEvent",
    "AuthEventBus",
    "auth_events",
    "Query",
    "OutputFormatter",
    "AuthSession",
    "SessionStore",
    "AuthManager",
    "AttemptOutcome",
    "RetryExecutor",
    "retry",
    "retry_operation",
    "ShiftCtlError",
    "ConfigError",
    "AuthenticationError",
    "SessionExpiredError",
    "ValidationError",
    "NetworkError",
    "RequestError",
    "APIError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "ServerError",
    "RateLimitError",
]
