"""Root conftest — shared fixtures for local cache, gateway and portal tests.

Invariants:
    - Every test gets a fresh in-memory SQLite cache (StaticPool, one connection)
    - Gateways built by make_gateway are closed at teardown
    - The portal fixture talks to a fresh stub backend over ASGITransport

Design Decisions:
    - httpx.MockTransport for gateway-level tests: one handler function per
      test states exactly what the backend answers
    - Fixed clock: envelope timestamps and staleness checks are deterministic
"""

import os

import httpx
import pytest

from pcas.config import Settings
from pcas.core.session_events import SessionEvents
from pcas.infrastructure.api_client import ApiGateway
from pcas.infrastructure.cache_database import SqlKeyValueStore
from pcas.infrastructure.local_cache import LocalCache
from pcas.portal import Portal
from pcas.services.navigation import HistoryNavigator
from helpers import BASE_URL, FIXED_NOW
from stub_backend import create_stub_backend

# Ensure tests never point at a real backend or on-disk cache
os.environ.setdefault("BACKEND_URL", "http://test")
os.environ.setdefault("CACHE_DATABASE_URL", "sqlite://")


@pytest.fixture
def kv_store():
    store = SqlKeyValueStore("sqlite://")
    yield store
    store.dispose()


@pytest.fixture
def cache(kv_store):
    return LocalCache(kv_store, clock=lambda: FIXED_NOW)


@pytest.fixture
def events():
    return SessionEvents()


@pytest.fixture
def navigator():
    return HistoryNavigator()


@pytest.fixture
async def make_gateway(cache):
    """Factory: handler(request) -> httpx.Response becomes the backend."""
    created: list[ApiGateway] = []

    def factory(handler) -> ApiGateway:
        gateway = ApiGateway(BASE_URL, cache, transport=httpx.MockTransport(handler))
        created.append(gateway)
        return gateway

    yield factory
    for gateway in created:
        await gateway.aclose()


@pytest.fixture
def stub_app():
    return create_stub_backend()


@pytest.fixture
def backend(stub_app):
    """The stub backend's in-memory state."""
    return stub_app.state.backend


@pytest.fixture
def settings():
    return Settings(
        backend_url=f"{BASE_URL}/",
        cache_database_url="sqlite://",
        cache_max_age_days=30,
        confirmation_delay_seconds=0.01,
    )


@pytest.fixture
async def portal(settings, stub_app, kv_store, navigator):
    p = Portal.create(
        settings,
        transport=httpx.ASGITransport(app=stub_app),
        navigator=navigator,
        store=kv_store,
        configure_logging=False,
    )
    yield p
    await p.aclose()
