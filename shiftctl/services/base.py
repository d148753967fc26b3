"""Shared plumbing for the async service layer."""

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, Optional, TypeVar

from rich.console import Console

from ..client import BackendClient
from ..config import Profile
from ..events import AuthEventBus, auth_events
from ..exceptions import AuthenticationError
from ..models.worker import Worker
from ..session import SessionStore
from ..utils.retry import (
    DEFAULT_INITIAL_DELAY,
    DEFAULT_MAX_DELAY,
    DEFAULT_MAX_RETRIES,
    AttemptOutcome,
    RetryExecutor,
)

T = TypeVar("T")


class BaseService:
    """Runs blocking client calls off the event loop, with retries."""

    def __init__(
        self,
        client: BackendClient,
        store: SessionStore,
        profile: Optional[Profile] = None,
        events: Optional[AuthEventBus] = None,
        console: Optional[Console] = None,
        debug: bool = False,
        sleep: Optional[Callable[[float], Awaitable[Any]]] = None,
    ) -> None:
        """Initialize service.

        Args:
            client: Backend client
            store: Session store holding the worker identity and current shift
            profile: Profile supplying default retry settings
            events: Auth event bus (defaults to the process-wide bus)
            console: Console for warnings and diagnostics
            debug: Print retry diagnostics
            sleep: Sleep used between retries (tests inject a fake)
        """
        self.client = client
        self.store = store
        self.profile = profile
        self.events = events or auth_events
        self.console = console or Console(stderr=True)
        self.debug = debug
        self._sleep = sleep

    def _debug(self, message: str) -> None:
        if self.debug:
            self.console.print(f"[DEBUG] {message}", style="dim", markup=False, highlight=False)

    def _warn(self, message: str) -> None:
        self.console.print(f"[yellow]Warning: {message}[/yellow]")

    def _log_retry(self, outcome: AttemptOutcome) -> None:
        self._debug(
            f"Attempt {outcome.attempt_number} failed: {outcome.error}. "
            f"Retrying in {outcome.delay_before_next_attempt:.0f}ms"
        )

    def _executor(
        self,
        max_retries: Optional[int] = None,
        initial_delay: Optional[float] = None,
        should_retry: Optional[Callable[[BaseException], bool]] = None,
    ) -> RetryExecutor:
        """Build a retry executor, falling back to the profile's settings."""
        if self.profile:
            defaults = (self.profile.retry_attempts, self.profile.initial_delay, self.profile.max_delay)
        else:
            defaults = (DEFAULT_MAX_RETRIES, DEFAULT_INITIAL_DELAY, DEFAULT_MAX_DELAY)

        initial = defaults[1] if initial_delay is None else initial_delay
        return RetryExecutor(
            max_retries=defaults[0] if max_retries is None else max_retries,
            initial_delay=initial,
            max_delay=max(defaults[2], initial),
            should_retry=should_retry,
            on_retry=self._log_retry,
            sleep=self._sleep,
        )

    async def _call(
        self,
        func: Callable[..., T],
        *args: Any,
        retry: Optional[RetryExecutor] = None,
        **kwargs: Any,
    ) -> T:
        """Run a blocking client call in a worker thread under a retry executor."""
        executor = retry or self._executor()
        return await executor.execute(lambda: asyncio.to_thread(partial(func, *args, **kwargs)))

    def require_worker(self) -> Worker:
        """Get the stored worker identity.

        Raises:
            AuthenticationError: If no worker is signed in
        """
        worker = self.store.load_worker()
        if worker is None:
            raise AuthenticationError("Not logged in. Run 'shiftctl auth login' first.")
        return worker
