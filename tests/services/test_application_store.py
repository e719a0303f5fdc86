"""Aggregate Application Store — tests for completion read model and bulk fetch.

Tests cover:
    - completion_status / percentage derived from the record stores
    - fetch_all() seeds every store and stamps last_synced
    - fetch_all() failure keeps existing records
    - LOGGED_OUT and LOGGED_IN reset the aggregate state
"""

import httpx
import pytest

from pcas.core.domain_types import Section, SessionEvent
from pcas.schemas.application import Family
from pcas.services.application_store import ApplicationStore
from pcas.services.record_store import DomainRecordStore
from pcas.services.section_registry import SECTIONS
from helpers import FIXED_NOW, complete_education_values, complete_family_values, envelope


def _build(gateway, events):
    stores = {
        section: DomainRecordStore(definition, gateway, events)
        for section, definition in SECTIONS.items()
    }
    return stores, ApplicationStore(gateway, stores, events, clock=lambda: FIXED_NOW)


async def test_empty_application_is_zero_percent(make_gateway, events):
    _, application = _build(make_gateway(lambda r: httpx.Response(200)), events)
    assert application.completion_percentage == 0
    assert application.completion_status == {section: False for section in Section}
    assert application.data.profile is None


async def test_completion_follows_store_records(make_gateway, events):
    stores, application = _build(make_gateway(lambda r: httpx.Response(200)), events)
    stores[Section.FAMILY].set_local(Family(**complete_family_values()))
    assert application.is_section_complete(Section.FAMILY)
    assert not application.is_section_complete(Section.PROFILE)
    assert application.completion_percentage == pytest.approx(25.0)
    assert application.data.family.father_name == "Imran Khan"


async def test_fetch_all_seeds_every_store(make_gateway, events):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/application/all"
        return httpx.Response(200, json=envelope({
            "profile": None,
            "family": {**complete_family_values(), "id": "f1"},
            "education": {**complete_education_values(), "id": "e1"},
            "extracurricular": {"clubs": "Debating", "id": "x1"},
        }))

    stores, application = _build(make_gateway(handler), events)
    assert await application.fetch_all()
    assert stores[Section.PROFILE].data is None
    assert stores[Section.FAMILY].data.id == "f1"
    assert stores[Section.EXTRACURRICULAR].data.clubs == "Debating"
    assert application.completion_percentage == pytest.approx(75.0)
    assert application.state.last_synced == FIXED_NOW.isoformat()
    assert not application.state.is_loading


async def test_fetch_all_failure_keeps_records(make_gateway, events):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"message": "server error"})

    stores, application = _build(make_gateway(handler), events)
    stores[Section.FAMILY].set_local(Family(**complete_family_values()))
    assert not await application.fetch_all()
    assert application.state.error == "server error"
    assert stores[Section.FAMILY].data is not None
    application.clear_error()
    assert application.state.error is None


async def test_logout_resets_aggregate_and_stores(make_gateway, events):
    stores, application = _build(make_gateway(lambda r: httpx.Response(200)), events)
    stores[Section.FAMILY].set_local(Family(**complete_family_values()))
    application.state.last_synced = "earlier"
    events.publish(SessionEvent.LOGGED_OUT)
    assert application.state.last_synced is None
    assert application.completion_percentage == 0


async def test_login_resets_aggregate_and_stores(make_gateway, events):
    stores, application = _build(make_gateway(lambda r: httpx.Response(200)), events)
    stores[Section.FAMILY].set_local(Family(**complete_family_values()))
    application.state.last_synced = "earlier"
    events.publish(SessionEvent.LOGGED_IN)
    assert application.state.last_synced is None
    assert application.completion_status[Section.FAMILY] is False
