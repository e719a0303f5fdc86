"""Navigation — in-process Navigator that records page changes.

Invariants:
    - go() appends to history; current is the last path (None before any go)

Design Decisions:
    - The real router lives in the UI shell; this implementation backs the
      composition root when no UI is attached, and tests assert on history
"""

import logging

logger = logging.getLogger(__name__)


class HistoryNavigator:
    """Navigator that keeps an ordered list of visited paths."""

    def __init__(self) -> None:
        self.history: list[str] = []

    def go(self, path: str) -> None:
        logger.debug(f"Navigating to {path}", extra={"path": path})
        self.history.append(path)

    @property
    def current(self) -> str | None:
        return self.history[-1] if self.history else None
