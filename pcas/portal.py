"""Portal — composition root wiring settings, cache, gateway, stores and controllers.

Invariants:
    - Exactly one LocalCache, ApiGateway and SessionEvents per Portal; every
      component shares them
    - Every record store, the aggregate store and every form controller
      subscribe to LOGGED_OUT and LOGGED_IN before create() returns
    - Components wired explicitly (no auto-discovery)

Design Decisions:
    - Classmethod factory instead of module globals: tests build isolated
      portals against stub transports and in-memory caches
    - initialize_auth() runs during create(): the stored credential is in
      memory before any page mounts
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

import httpx

from pcas.config import Settings, get_settings
from pcas.core.boundary_protocols import KeyValueStore, Navigator
from pcas.core.completion import DEFAULT_STATUS_POLICY, LEGACY_STATUS_POLICY
from pcas.core.domain_types import Section
from pcas.core.session_events import SessionEvents
from pcas.infrastructure.api_client import ApiGateway
from pcas.infrastructure.cache_database import SqlKeyValueStore
from pcas.infrastructure.local_cache import LocalCache
from pcas.infrastructure.observability import setup_logging
from pcas.services.application_store import ApplicationStore
from pcas.services.form_controller import FormController
from pcas.services.navigation import HistoryNavigator
from pcas.services.record_store import DomainRecordStore
from pcas.services.section_registry import SECTIONS
from pcas.services.server_status import ServerStatusProbe
from pcas.services.session_lifecycle import SessionLifecycleController
from pcas.services.university_store import UniversitySelectionStore

logger = logging.getLogger(__name__)


@dataclass
class Portal:
    settings: Settings
    cache: LocalCache
    gateway: ApiGateway
    events: SessionEvents
    navigator: Navigator
    session: SessionLifecycleController
    stores: dict[Section, DomainRecordStore]
    application: ApplicationStore
    forms: dict[Section, FormController]
    universities: UniversitySelectionStore
    server_status: ServerStatusProbe

    @classmethod
    def create(
        cls,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        navigator: Navigator | None = None,
        store: KeyValueStore | None = None,
        configure_logging: bool = True,
    ) -> "Portal":
        settings = settings or get_settings()
        if configure_logging:
            setup_logging(settings.log_level, settings.log_format)

        cache = LocalCache(store or SqlKeyValueStore(settings.cache_database_url))
        gateway = ApiGateway(settings.backend_url, cache, transport=transport)
        events = SessionEvents()
        navigator = navigator or HistoryNavigator()
        session = SessionLifecycleController(gateway, cache, events)

        stores = {
            section: DomainRecordStore(definition, gateway, events)
            for section, definition in SECTIONS.items()
        }
        max_age = (
            timedelta(days=settings.cache_max_age_days)
            if settings.cache_max_age_days > 0 else None
        )
        legacy = set(settings.legacy_status_sections)
        forms = {
            section: FormController(
                stores[section], session, cache, navigator,
                status_policy=(
                    LEGACY_STATUS_POLICY if section.value in legacy
                    else DEFAULT_STATUS_POLICY
                ),
                max_cache_age=max_age,
                confirmation_delay=settings.confirmation_delay_seconds,
            )
            for section in stores
        }

        portal = cls(
            settings=settings,
            cache=cache,
            gateway=gateway,
            events=events,
            navigator=navigator,
            session=session,
            stores=stores,
            application=ApplicationStore(gateway, stores, events),
            forms=forms,
            universities=UniversitySelectionStore(
                cache, settings.max_university_picks,
            ),
            server_status=ServerStatusProbe(gateway),
        )
        session.initialize_auth()
        logger.info("Portal client ready", extra={"path": settings.backend_url})
        return portal

    async def aclose(self) -> None:
        for form in self.forms.values():
            form.close()
        for store in self.stores.values():
            store.close()
        await self.gateway.aclose()
        if isinstance(self.cache.store, SqlKeyValueStore):
            self.cache.store.dispose()
