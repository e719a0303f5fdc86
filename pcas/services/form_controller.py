"""Form Page Controller — mount/submit orchestration for one application section.

Invariants:
    - mount() while logged out (and not re-hydratable) navigates to LOGIN_PAGE
      and returns None
    - Value precedence on mount: store record -> local cache envelope -> defaults
      (defaults pre-populated from the logged-in User where the section allows)
    - submit() always writes the cache envelope, independent of the remote outcome
    - submit() calls store.save() only when the section's predicate is satisfied;
      incomplete drafts stay local
    - submit() while logged out navigates to LOGIN_PAGE, writes nothing and
      returns None
    - Pinned fields (the profile photo) change only through attach_photo();
      submitted form data never overwrites them
    - A SaveConfirmation exists only after a successful remote save; dismissing
      it cancels its pending navigation
    - LOGGED_OUT and LOGGED_IN reset values, status, saved_at and source and
      dismiss the open SaveConfirmation

Design Decisions:
    - Precedence chain is an ordered list of loaders, first non-None wins,
      so the fallback order is data, not nested conditionals
    - Status labels come from a StatusPolicy chosen per section
    - Cache keys are per-user; a legacy flat key is migrated on first read
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from pcas.core.boundary_protocols import Navigator
from pcas.core.cache_keys import legacy_section_key, section_key
from pcas.core.completion import (
    DEFAULT_STATUS_POLICY, StatusPolicy, completed_subsections,
)
from pcas.core.domain_types import (
    FormStatus, SessionEvent, SubmitAction, ValueSource, PHOTO_MAX_BYTES,
)
from pcas.core.errors import FormValidationError
from pcas.infrastructure.local_cache import LocalCache, utc_now
from pcas.services.record_store import DomainRecordStore, record_values
from pcas.services.section_registry import LOGIN_PAGE
from pcas.services.session_lifecycle import SessionLifecycleController

logger = logging.getLogger(__name__)


class SaveConfirmation:
    """Transient "saved" overlay with optional delayed navigation.

    Closes by itself after `delay` seconds; when `navigate_to` is set it then
    navigates there. dismiss() closes it early and cancels the navigation.
    """

    def __init__(
        self,
        delay: float,
        navigator: Navigator,
        navigate_to: str | None = None,
    ):
        self.navigate_to = navigate_to
        self.is_open = True
        self.navigated = False
        self._navigator = navigator
        self._handle = asyncio.get_running_loop().call_later(delay, self._expire)

    def _expire(self) -> None:
        if not self.is_open:
            return
        self.is_open = False
        if self.navigate_to:
            self.navigated = True
            self._navigator.go(self.navigate_to)

    def dismiss(self) -> None:
        if self.is_open:
            self._handle.cancel()
            self.is_open = False


@dataclass
class FormSnapshot:
    values: dict[str, Any]
    status: FormStatus
    saved_at: datetime | None
    source: ValueSource


@dataclass
class SubmitOutcome:
    values: dict[str, Any]
    status: FormStatus
    saved_at: datetime
    cached: bool
    remote_attempted: bool = False
    remote_saved: bool = False
    error: str | None = None
    confirmation: SaveConfirmation | None = field(default=None)


class FormController:
    """Drives one section's page: load values on mount, persist them on submit."""

    def __init__(
        self,
        store: DomainRecordStore,
        session: SessionLifecycleController,
        cache: LocalCache,
        navigator: Navigator,
        *,
        status_policy: StatusPolicy = DEFAULT_STATUS_POLICY,
        max_cache_age: timedelta | None = None,
        confirmation_delay: float = 2.2,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.definition = store.definition
        self.session = session
        self.cache = cache
        self.navigator = navigator
        self.status_policy = status_policy
        self.max_cache_age = max_cache_age
        self.confirmation_delay = confirmation_delay
        self._clock = clock
        self.values: dict[str, Any] = self.definition.defaults()
        self.status = FormStatus.NOT_STARTED
        self.saved_at: datetime | None = None
        self.source: ValueSource | None = None
        self.confirmation: SaveConfirmation | None = None
        self._unsubscribe = [
            session.events.subscribe(event, self.reset)
            for event in (SessionEvent.LOGGED_OUT, SessionEvent.LOGGED_IN)
        ]

    @property
    def cache_key(self) -> str:
        user = self.session.user
        return section_key(self.definition.section, user.id if user else None)

    def reset(self) -> None:
        """Session boundary: forget the previous user's draft and pending navigation."""
        if self.confirmation is not None:
            self.confirmation.dismiss()
            self.confirmation = None
        self.values = self.definition.defaults()
        self.status = FormStatus.NOT_STARTED
        self.saved_at = None
        self.source = None

    def close(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()

    # ─── mount ──────────────────────────────────────────────────

    async def mount(self) -> FormSnapshot | None:
        if not self.session.is_authenticated and self.session.stored_credential():
            await self.session.get_current_user()
        if not self.session.is_authenticated:
            self.navigator.go(LOGIN_PAGE)
            return None

        if self.store.data is None:
            await self.store.fetch()

        snapshot = self.resolve_values()
        self.values = snapshot.values
        self.status = snapshot.status
        self.saved_at = snapshot.saved_at
        self.source = snapshot.source
        logger.debug(
            f"{self.definition.label} form mounted from {snapshot.source.value}",
            extra={"section": self.definition.data_key},
        )
        return snapshot

    def resolve_values(self) -> FormSnapshot:
        """Walk the precedence chain; the first loader with data wins."""
        loaders: list[Callable[[], FormSnapshot | None]] = [
            self._from_record,
            self._from_cache,
        ]
        for loader in loaders:
            snapshot = loader()
            if snapshot is not None:
                return snapshot
        return self._from_defaults()

    def _from_record(self) -> FormSnapshot | None:
        if self.store.data is None:
            return None
        values = {**self.definition.defaults(), **record_values(self.store.data)}
        return FormSnapshot(
            values=values,
            status=self.status_policy.derive(values, self.definition.predicate),
            saved_at=None,
            source=ValueSource.RECORD,
        )

    def _from_cache(self) -> FormSnapshot | None:
        key = self.cache_key
        self.cache.migrate_key(legacy_section_key(self.definition.section), key)
        envelope = self.cache.read_envelope(key, self.max_cache_age)
        if envelope is None:
            return None
        return FormSnapshot(
            values={**self.definition.defaults(), **envelope.values},
            status=envelope.status,
            saved_at=envelope.saved_at,
            source=ValueSource.CACHE,
        )

    def _from_defaults(self) -> FormSnapshot:
        return FormSnapshot(
            values=self.definition.defaults(self.session.user),
            status=FormStatus.NOT_STARTED,
            saved_at=None,
            source=ValueSource.DEFAULTS,
        )

    # ─── submit ─────────────────────────────────────────────────

    async def submit(
        self,
        form_values: Mapping[str, Any],
        action: SubmitAction = SubmitAction.SAVE,
    ) -> SubmitOutcome | None:
        """Mirror the draft to the cache and, when complete, save it remotely.

        Logged out: navigates to LOGIN_PAGE, writes nothing, returns None.
        """
        if self.session.user is None:
            self.navigator.go(LOGIN_PAGE)
            return None

        pinned = self.definition.pinned_fields
        merged = {
            **self.values,
            **{k: v for k, v in form_values.items() if k not in pinned},
        }
        satisfied = self.definition.predicate(merged)
        status = self.status_policy.derive(merged, self.definition.predicate)
        now = self._clock()

        self.values = merged
        self.status = status
        self.saved_at = now
        cached = self.cache.write_envelope(self.cache_key, merged, status, now)
        outcome = SubmitOutcome(
            values=merged, status=status, saved_at=now, cached=cached,
        )
        if not satisfied:
            return outcome

        try:
            request = self.store.build_request(merged)
        except FormValidationError as e:
            self.store.record_error(e.message)
            outcome.error = e.message
            return outcome

        outcome.remote_attempted = True
        outcome.remote_saved = await self.store.save(request)
        if not outcome.remote_saved:
            outcome.error = self.store.error
            return outcome
        # Logged out while the save was in flight
        if self.session.user is None:
            return outcome

        navigate_to = (
            self.definition.next_page
            if action is SubmitAction.SAVE_AND_CONTINUE else None
        )
        if self.confirmation is not None:
            self.confirmation.dismiss()
        self.confirmation = SaveConfirmation(
            self.confirmation_delay, self.navigator, navigate_to,
        )
        outcome.confirmation = self.confirmation
        return outcome

    def attach_photo(self, file_name: str, size: int) -> bool:
        """Upload handler for the pinned photo fields; rejects files over PHOTO_MAX_BYTES."""
        if not {"photo_name", "photo_bytes"} <= self.definition.pinned_fields:
            raise ValueError(f"{self.definition.label} has no photo upload")
        if size > PHOTO_MAX_BYTES:
            self.store.record_error("Profile picture must be ≤ 5 MB.")
            return False
        self.values = {**self.values, "photo_name": file_name, "photo_bytes": size}
        return True

    def completed_subsections(self, values: Mapping[str, Any] | None = None) -> list[str]:
        return completed_subsections(
            self.definition.section, self.values if values is None else values,
        )
