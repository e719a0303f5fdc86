"""Domain Record Store — generic fetch/save/local-mutation store for one form section.

Invariants:
    - fetch()/save() never raise: failures land in state.error as display text
    - is_loading is True only while a fetch/save is awaiting the gateway
    - Successful save sets last_saved (ISO timestamp); fetch does not
    - Subscribed to SessionEvent.LOGGED_OUT and LOGGED_IN at construction;
      either boundary empties it (a 401 eviction never publishes LOGGED_OUT)
    - Concurrent fetch/save are not de-duplicated: last to settle wins

Design Decisions:
    - One class for all four sections, parameterized by SectionDefinition,
      instead of one hand-written store per section
    - IO here, transitions in core.record_state.RecordState
"""

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from pcas.core.domain_types import SessionEvent
from pcas.core.errors import (
    ErrorContext, FormValidationError, PcasError, ServerResponseError,
)
from pcas.core.record_state import RecordState
from pcas.core.session_events import SessionEvents
from pcas.infrastructure.api_client import ApiGateway
from pcas.infrastructure.local_cache import utc_now
from pcas.schemas.application import RECORD_META_FIELDS
from pcas.schemas.base import WireModel
from pcas.services.section_registry import SectionDefinition

logger = logging.getLogger(__name__)


def validation_problems(error: ValidationError) -> list[str]:
    """Flatten pydantic errors into "field: message" strings."""
    problems = []
    for e in error.errors():
        loc = ".".join(str(part) for part in e["loc"])
        problems.append(f"{loc}: {e['msg']}" if loc else e["msg"])
    return problems


def record_values(record: WireModel | None) -> dict[str, Any]:
    """Form-shaped values of a record (no server metadata, no None values)."""
    if record is None:
        return {}
    dumped = record.model_dump(exclude=set(RECORD_META_FIELDS), mode="json")
    return {k: v for k, v in dumped.items() if v is not None}


class DomainRecordStore:
    """In-memory mirror of one server record plus its sync status."""

    def __init__(
        self,
        definition: SectionDefinition,
        gateway: ApiGateway,
        events: SessionEvents,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.definition = definition
        self.gateway = gateway
        self.state: RecordState = RecordState()
        self._clock = clock
        self._unsubscribe = [
            events.subscribe(event, self.clear_all)
            for event in (SessionEvent.LOGGED_OUT, SessionEvent.LOGGED_IN)
        ]

    # ─── read model ─────────────────────────────────────────────

    @property
    def data(self) -> WireModel | None:
        return self.state.data

    @property
    def is_loading(self) -> bool:
        return self.state.is_loading

    @property
    def error(self) -> str | None:
        return self.state.error

    @property
    def is_dirty(self) -> bool:
        return self.state.is_dirty

    @property
    def last_saved(self) -> str | None:
        return self.state.last_saved

    @property
    def is_complete(self) -> bool:
        if self.state.data is None:
            return False
        return self.definition.predicate(record_values(self.state.data))

    # ─── remote operations ──────────────────────────────────────

    async def fetch(self) -> bool:
        """Load the record from the backend. Returns True on success."""
        self.state.begin_request()
        try:
            envelope = await self.gateway.get(self.definition.fetch_path)
            record = self._parse_record(envelope.data_field(self.definition.data_key))
        except PcasError as e:
            self._fail(e, self.definition.fetch_failed_message)
            return False
        self.state.apply_fetched(record)
        return True

    async def save(self, request: WireModel) -> bool:
        """Create or update the record on the backend. Returns True on success."""
        self.state.begin_request()
        try:
            envelope = await self.gateway.post(
                self.definition.save_path, request.to_wire(),
            )
            record = self._parse_record(envelope.data_field(self.definition.data_key))
        except PcasError as e:
            self._fail(e, self.definition.save_failed_message)
            return False
        self.state.apply_saved(record, self._clock().isoformat())
        logger.info(
            f"{self.definition.label} saved",
            extra={"section": self.definition.data_key},
        )
        return True

    def build_request(self, values: Mapping[str, Any]) -> WireModel:
        """Validate form values into the section's request model.

        Raises FormValidationError with one entry per invalid field.
        """
        try:
            return self.definition.request_model.model_validate(dict(values))
        except ValidationError as e:
            raise FormValidationError(
                validation_problems(e),
                ErrorContext(section=self.definition.data_key),
            ) from e

    # ─── local mutations ────────────────────────────────────────

    def set_local(self, record: WireModel | None) -> None:
        self.state.set_local(record)

    def update_field(self, **partial: Any) -> None:
        self.state.update_field(partial)

    def mark_clean(self) -> None:
        self.state.mark_clean(self._clock().isoformat())

    def record_error(self, message: str) -> None:
        """Surface a locally detected problem the same way as a remote one."""
        self.state.apply_failure(message)

    def clear_error(self) -> None:
        self.state.clear_error()

    def reset(self) -> None:
        self.state.reset()

    def clear_all(self) -> None:
        """Session boundary handler: drop the record and every status flag."""
        self.state.reset()

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()

    # ─── helpers ────────────────────────────────────────────────

    def _parse_record(self, raw: Any) -> WireModel | None:
        if raw is None:
            return None
        try:
            return self.definition.record_model.model_validate(raw)
        except ValidationError as e:
            raise ServerResponseError(
                "Unexpected response from server", None,
                ErrorContext(
                    section=self.definition.data_key,
                    debug_info={"problems": validation_problems(e)},
                ),
            ) from e

    def _fail(self, error: PcasError, fallback: str) -> None:
        message = error.message or fallback
        self.state.apply_failure(message)
        logger.warning(
            f"{self.definition.label} request failed: {message}",
            extra={"section": self.definition.data_key, "error_code": error.code},
        )
