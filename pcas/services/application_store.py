"""Aggregate Application Store — completion read model over the four record stores.

Invariants:
    - completion_status[section] is True iff that section's store holds a record
    - completion_percentage == completed sections / 4 * 100
    - fetch_all() seeds all four stores in one synchronous step after its await
      (observers never see a half-seeded application)
    - Subscribed to SessionEvent.LOGGED_OUT and LOGGED_IN at construction

Design Decisions:
    - No copy of the records: the aggregate reads the stores, so it can never
      disagree with them
    - One bulk request instead of four racing fetches for a full reload
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from pydantic import ValidationError

from pcas.core.domain_types import Section, SessionEvent
from pcas.core.errors import PcasError, ServerResponseError
from pcas.core.session_events import SessionEvents
from pcas.infrastructure.api_client import ApiGateway
from pcas.infrastructure.local_cache import utc_now
from pcas.schemas.application import ApplicationData
from pcas.services.record_store import DomainRecordStore
from pcas.services.section_registry import APPLICATION_ALL_PATH

logger = logging.getLogger(__name__)


@dataclass
class AggregateState:
    is_loading: bool = False
    error: str | None = None
    last_synced: str | None = None


class ApplicationStore:
    """Derived completion status plus the bulk fetch."""

    def __init__(
        self,
        gateway: ApiGateway,
        stores: dict[Section, DomainRecordStore],
        events: SessionEvents,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gateway = gateway
        self.stores = stores
        self.state = AggregateState()
        self._clock = clock
        events.subscribe(SessionEvent.LOGGED_OUT, self.reset)
        events.subscribe(SessionEvent.LOGGED_IN, self.reset)

    @property
    def data(self) -> ApplicationData:
        return ApplicationData(**{
            section.value: store.data for section, store in self.stores.items()
        })

    @property
    def completion_status(self) -> dict[Section, bool]:
        return {
            section: store.data is not None
            for section, store in self.stores.items()
        }

    @property
    def completion_percentage(self) -> float:
        status = self.completion_status
        if not status:
            return 0.0
        return sum(status.values()) / len(status) * 100

    def is_section_complete(self, section: Section) -> bool:
        return self.completion_status.get(section, False)

    async def fetch_all(self) -> bool:
        self.state.is_loading = True
        self.state.error = None
        try:
            envelope = await self.gateway.get(APPLICATION_ALL_PATH)
            try:
                data = ApplicationData.model_validate(envelope.data or {})
            except ValidationError as e:
                raise ServerResponseError(
                    "Unexpected response from server", None,
                ) from e
        except PcasError as e:
            self.state.is_loading = False
            self.state.error = e.message or "Failed to fetch application data"
            logger.warning(
                f"Bulk application fetch failed: {self.state.error}",
                extra={"error_code": e.code},
            )
            return False
        for section, store in self.stores.items():
            store.set_local(getattr(data, section.value))
        self.state.is_loading = False
        self.state.last_synced = self._clock().isoformat()
        self.state.error = None
        return True

    def clear_error(self) -> None:
        self.state.error = None

    def reset(self) -> None:
        self.state = AggregateState()
