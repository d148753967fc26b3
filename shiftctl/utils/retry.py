"""Retry logic with exponential backoff for asynchronous operations.

``RetryExecutor`` wraps a zero-argument coroutine factory, classifies each
failure through an injectable predicate and re-invokes the operation with
capped exponential backoff. Delays are configured in milliseconds. Errors
are never wrapped: the caller always sees the original exception object.
"""

import asyncio
from dataclasses import dataclass
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

from .exceptions import default_should_retry

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_DELAY = 1000  # ms
DEFAULT_MAX_DELAY = 10000  # ms


@dataclass(frozen=True)
class AttemptOutcome:
    """Outcome of a single failed attempt that will be retried."""

    attempt_number: int
    error: Optional[BaseException] = None
    delay_before_next_attempt: Optional[float] = None

    @property
    def will_retry(self) -> bool:
        return self.delay_before_next_attempt is not None


class RetryExecutor:
    """Executes async operations with retry and capped exponential backoff."""

    def __init__(
        self,
        max_retries: int = DEFAULT_MAX_RETRIES,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        max_delay: float = DEFAULT_MAX_DELAY,
        should_retry: Optional[Callable[[BaseException], bool]] = None,
        on_retry: Optional[Callable[[AttemptOutcome], None]] = None,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        """Initialize retry executor.

        Args:
            max_retries: Maximum number of retries after the initial try
            initial_delay: Delay before the first retry in milliseconds
            max_delay: Upper bound on any delay in milliseconds
            should_retry: Predicate deciding whether an error is retryable.
                Defaults to retrying network-classified errors only.
            on_retry: Callback invoked before each backoff wait
            sleep: Awaitable sleep taking seconds (defaults to asyncio.sleep)

        Raises:
            ValueError: If the configuration is out of range
        """
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ValueError("max_retries must be a non-negative integer")
        if initial_delay < 0:
            raise ValueError("initial_delay must be non-negative")
        if max_delay < 0:
            raise ValueError("max_delay must be non-negative")

        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.max_delay = max_delay
        self.should_retry = should_retry or default_should_retry
        self.on_retry = on_retry
        self._sleep = sleep

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the delay before the retry following ``attempt``.

        Args:
            attempt: Attempt index (0-based; 0 is the initial try)

        Returns:
            Delay in milliseconds
        """
        return min(self.initial_delay * (2 ** attempt), self.max_delay)

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Execute an operation with retry logic.

        Args:
            operation: Zero-argument callable returning an awaitable

        Returns:
            Result of the operation

        Raises:
            Exception: The last error raised by the operation, unchanged
        """
        attempt = 0
        while True:
            try:
                return await operation()
            except Exception as e:
                if attempt >= self.max_retries or not self.should_retry(e):
                    raise

                delay = self.calculate_delay(attempt)
                if self.on_retry:
                    self.on_retry(AttemptOutcome(
                        attempt_number=attempt + 1,
                        error=e,
                        delay_before_next_attempt=delay,
                    ))

                sleep = self._sleep or asyncio.sleep
                await sleep(delay / 1000)
                attempt += 1

    @classmethod
    def from_profile(cls, profile: Any, **kwargs: Any) -> "RetryExecutor":
        """Create an executor from a configuration profile's retry settings."""
        options = {
            "max_retries": profile.retry_attempts,
            "initial_delay": profile.initial_delay,
            "max_delay": profile.max_delay,
        }
        options.update(kwargs)
        return cls(**options)


async def retry_operation(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    should_retry: Optional[Callable[[BaseException], bool]] = None,
) -> T:
    """Retry an async operation with exponential backoff.

    Convenience wrapper building a one-off ``RetryExecutor``.
    """
    executor = RetryExecutor(
        max_retries=max_retries,
        initial_delay=initial_delay,
        max_delay=max_delay,
        should_retry=should_retry,
    )
    return await executor.execute(operation)


def retry(
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    should_retry: Optional[Callable[[BaseException], bool]] = None,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Decorator adding retry logic to coroutine functions.

    Args:
        max_retries: Maximum number of retries after the initial try
        initial_delay: Delay before the first retry in milliseconds
        max_delay: Upper bound on any delay in milliseconds
        should_retry: Retry predicate (defaults to network errors only)

    Returns:
        Decorator function
    """
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            executor = RetryExecutor(
                max_retries=max_retries,
                initial_delay=initial_delay,
                max_delay=max_delay,
                should_retry=should_retry,
            )
            return await executor.execute(lambda: func(*args, **kwargs))

        return wrapper
    return decorator
