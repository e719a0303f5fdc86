"""Session Events — explicit publish/subscribe bus for session lifecycle changes.

Invariants:
    - Handlers run synchronously, in subscription order, inside publish()
    - A failing handler is logged and does not stop delivery to the others
    - subscribe() returns a callable that removes exactly that subscription

Design Decisions:
    - Explicit bus over action-name matching: every store that resets on logout
      subscribes in its constructor, so the reset contract is discoverable
    - Synchronous delivery: logout must leave every store empty before
      logout() returns
"""

import logging
from collections import defaultdict
from collections.abc import Callable

from pcas.core.domain_types import SessionEvent

logger = logging.getLogger(__name__)

Handler = Callable[[], None]


class SessionEvents:
    """Publish/subscribe registry keyed by SessionEvent."""

    def __init__(self) -> None:
        self._handlers: dict[SessionEvent, list[Handler]] = defaultdict(list)

    def subscribe(self, event: SessionEvent, handler: Handler) -> Callable[[], None]:
        self._handlers[event].append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers[event]:
                self._handlers[event].remove(handler)

        return unsubscribe

    def publish(self, event: SessionEvent) -> int:
        """Deliver event to every handler. Returns number of handlers invoked."""
        handlers = list(self._handlers[event])
        for handler in handlers:
            try:
                handler()
            except Exception as e:
                logger.error(
                    f"Session event handler failed: {e}",
                    extra={"error_code": "EVENT_HANDLER_FAILED"},
                    exc_info=True,
                )
        return len(handlers)
