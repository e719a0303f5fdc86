"""Record State — in-memory state machine for one domain record store.

Invariants:
    - is_loading is True only between begin_request() and apply_*() of a request
    - error is cleared by begin_request() and clear_error(), never by a success
    - is_dirty is True iff update_field() ran after the last confirmed save/load
    - last_saved changes only on apply_saved() and mark_clean()
    - reset() returns every field to its initial value

Design Decisions:
    - Dataclass with plain transition methods: the store awaits IO, then applies
      one of these, so the machine is testable without a network
    - Timestamps are passed in by the caller (pure, deterministic)
    - update_field relies on the record's model_copy(update=...) (pydantic
      models) instead of importing pydantic into core
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

R = TypeVar("R")


@dataclass
class RecordState(Generic[R]):
    """State of one domain record: {data, is_loading, error, last_saved, is_dirty}."""

    data: R | None = None
    is_loading: bool = False
    error: str | None = None
    last_saved: str | None = None
    is_dirty: bool = False

    def begin_request(self) -> None:
        self.is_loading = True
        self.error = None

    def apply_fetched(self, record: R | None) -> None:
        self.is_loading = False
        self.data = record
        self.is_dirty = False
        self.error = None

    def apply_saved(self, record: R | None, saved_at: str) -> None:
        self.apply_fetched(record)
        self.last_saved = saved_at

    def apply_failure(self, message: str) -> None:
        self.is_loading = False
        self.error = message

    def set_local(self, record: R | None) -> None:
        """Seed data without implying a pending remote write."""
        self.data = record
        self.is_dirty = False

    def update_field(self, partial: dict[str, Any]) -> None:
        """Shallow-merge into data (when present) and mark dirty."""
        if self.data is not None:
            self.data = self.data.model_copy(update=partial)  # type: ignore[attr-defined]
        self.is_dirty = True

    def mark_clean(self, saved_at: str) -> None:
        self.is_dirty = False
        self.last_saved = saved_at

    def clear_error(self) -> None:
        self.error = None

    def reset(self) -> None:
        self.data = None
        self.is_loading = False
        self.error = None
        self.last_saved = None
        self.is_dirty = False
