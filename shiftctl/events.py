"""In-process auth event bus.

Commands and services announce sign-in and sign-out here so that other
parts of the process (e.g. cached state) can react without the service
knowing about them.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from rich.console import Console

Listener = Callable[..., None]


class AuthEvent(str, Enum):
    LOGGED_IN = "logged_in"
    LOGGED_OUT = "logged_out"


class AuthEventBus:
    """Publish/subscribe bus for auth events."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self._listeners: Dict[AuthEvent, List[Listener]] = {event: [] for event in AuthEvent}
        self.console = console or Console(stderr=True)

    def subscribe(self, event: AuthEvent, listener: Listener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            A callable that removes the listener again
        """
        event = AuthEvent(event)
        self._listeners[event].append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners[event]:
                self._listeners[event].remove(listener)

        return unsubscribe

    def emit(self, event: AuthEvent, **payload: Any) -> None:
        """Call every listener of ``event``.

        A listener that raises is reported and the remaining listeners
        still run.
        """
        event = AuthEvent(event)
        for listener in list(self._listeners[event]):
            try:
                listener(**payload)
            except Exception as e:
                self.console.print(
                    f"[yellow]Warning: {event.value} listener failed: {e}[/yellow]"
                )

    def listener_count(self, event: AuthEvent) -> int:
        return len(self._listeners[AuthEvent(event)])


auth_events = AuthEventBus()
