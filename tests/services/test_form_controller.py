"""Form Page Controller — tests for mount precedence, submit gating and confirmation.

Tests cover:
    - Logged-out mount redirects to the login page
    - Precedence chain: record -> cache envelope -> defaults (user prefill)
    - Legacy flat cache key migrated to the per-user key
    - Stale envelopes ignored
    - submit() always mirrors to the cache; remote save only when complete
    - Save confirmation navigates after the delay unless dismissed
    - Logged-out submit redirects and writes nothing
    - Session boundaries reset the form and cancel pending navigation
    - Photo fields come only from attach_photo(), never from form data
    - Legacy status policy labels
"""

import asyncio
import json
from datetime import timedelta

import httpx
import pytest

from pcas.core.completion import LEGACY_STATUS_POLICY
from pcas.core.domain_types import (
    FormStatus, Section, SessionEvent, SubmitAction, ValueSource, PHOTO_MAX_BYTES,
)
from pcas.core.session_events import SessionEvents
from pcas.schemas.application import ProfileRequest
from pcas.services.form_controller import FormController
from pcas.services.record_store import DomainRecordStore
from pcas.services.section_registry import (
    DASHBOARD_PAGE, EXTRACURRICULAR, FAMILY, LOGIN_PAGE, PROFILE,
)
from pcas.services.session_lifecycle import SessionLifecycleController
from helpers import FIXED_NOW, complete_family_values, complete_profile_values, envelope

USER = {
    "id": "u1", "email": "a@b.com", "fullName": "Ayesha Khan",
    "dob": "2004-02-11T00:00:00.000Z", "phone": "03001234567",
    "address": "12 Mall Road, Lahore", "role": "undergraduate",
}
DELAY = 0.01


class FakeBackend:
    """MockTransport handler with per-path canned records and a call log."""

    def __init__(self):
        self.records: dict[str, dict | None] = {}
        self.posts: list[tuple[str, dict]] = []
        self.fail_saves: str | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/api/auth/me":
            return httpx.Response(200, json=envelope({"user": USER}))
        section = path.rsplit("-", 1)[-1]
        if "/get-" in path:
            return httpx.Response(200, json=envelope({section: self.records.get(section)}))
        if "/create-or-update-" in path:
            body = json.loads(request.content)
            self.posts.append((section, body))
            if self.fail_saves:
                return httpx.Response(500, json={"message": self.fail_saves})
            record = {**body, "id": f"{section}-1", "userId": "u1"}
            self.records[section] = record
            return httpx.Response(200, json=envelope({section: record}))
        return httpx.Response(404, json={"message": "not found"})


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def wiring(make_gateway, cache, navigator, fake_backend):
    """Build (controller, store, session) for a section definition."""
    gateway = make_gateway(fake_backend)
    events = SessionEvents()
    session = SessionLifecycleController(gateway, cache, events)

    def build(definition, **kwargs):
        store = DomainRecordStore(definition, gateway, events, clock=lambda: FIXED_NOW)
        controller = FormController(
            store, session, cache, navigator,
            confirmation_delay=DELAY, clock=lambda: FIXED_NOW, **kwargs,
        )
        return controller, store, session

    return build


# --- mount --------------------------------------------------------------------

async def test_mount_without_credential_redirects_to_login(wiring, navigator):
    controller, _, _ = wiring(PROFILE)
    assert await controller.mount() is None
    assert navigator.history == [LOGIN_PAGE]


async def test_mount_prefers_server_record_over_cache(wiring, cache, fake_backend):
    cache.set_text("token", "T1")
    fake_backend.records["profile"] = {
        **ProfileRequest(**complete_profile_values()).to_wire(), "id": "p1",
    }
    cache.write_envelope(
        "pcas:application:profile:u1", {"first_name": "Cached"}, FormStatus.IN_PROGRESS,
    )
    controller, store, _ = wiring(PROFILE)
    snapshot = await controller.mount()
    assert snapshot.source == ValueSource.RECORD
    assert snapshot.values["first_name"] == "Ayesha"
    assert snapshot.status == FormStatus.COMPLETE
    assert store.data.id == "p1"


async def test_mount_falls_back_to_cache_envelope(wiring, cache):
    cache.set_text("token", "T1")
    cache.write_envelope(
        "pcas:application:family:u1", {"father_name": "Imran"}, FormStatus.IN_PROGRESS,
    )
    controller, _, _ = wiring(FAMILY)
    snapshot = await controller.mount()
    assert snapshot.source == ValueSource.CACHE
    assert snapshot.values == {
        "father_name": "Imran", "mother_name": "", "father_occupation": "",
    }
    assert snapshot.status == FormStatus.IN_PROGRESS
    assert snapshot.saved_at == FIXED_NOW
    assert controller.values == snapshot.values


async def test_mount_defaults_prefilled_from_user(wiring, cache):
    cache.set_text("token", "T1")
    controller, _, session = wiring(PROFILE)
    snapshot = await controller.mount()
    assert session.is_authenticated
    assert snapshot.source == ValueSource.DEFAULTS
    assert snapshot.status == FormStatus.NOT_STARTED
    assert snapshot.values["first_name"] == "Ayesha"
    assert snapshot.values["last_name"] == "Khan"
    assert snapshot.values["dob"] == "2004-02-11"
    assert snapshot.values["cnic"] == ""


async def test_mount_migrates_legacy_flat_key(wiring, cache):
    cache.set_text("token", "T1")
    cache.write_envelope("pcas:application:family", {"mother_name": "Sara"}, FormStatus.IN_PROGRESS)
    controller, _, _ = wiring(FAMILY)
    snapshot = await controller.mount()
    assert snapshot.source == ValueSource.CACHE
    assert snapshot.values["mother_name"] == "Sara"
    assert cache.get_text("pcas:application:family") is None
    assert cache.read_envelope("pcas:application:family:u1") is not None


async def test_mount_ignores_stale_envelope(wiring, cache):
    cache.set_text("token", "T1")
    cache.write_envelope(
        "pcas:application:family:u1", {"father_name": "Old"}, FormStatus.IN_PROGRESS,
        saved_at=FIXED_NOW - timedelta(days=45),
    )
    controller, _, _ = wiring(FAMILY, max_cache_age=timedelta(days=30))
    snapshot = await controller.mount()
    assert snapshot.source == ValueSource.DEFAULTS


# --- submit -------------------------------------------------------------------

async def test_submit_empty_profile_stays_local(wiring, cache, fake_backend):
    cache.set_text("token", "T1")
    controller, store, _ = wiring(PROFILE)
    await controller.mount()
    empty = {key: "" for key in PROFILE.default_values}
    empty["photo_bytes"] = 0
    outcome = await controller.submit(empty)
    assert outcome.status == FormStatus.NOT_STARTED
    assert outcome.cached
    assert not outcome.remote_attempted
    assert fake_backend.posts == []
    assert store.data is None
    assert cache.read_envelope("pcas:application:profile:u1").status == FormStatus.NOT_STARTED


async def test_submit_partial_draft_is_cached_in_progress(wiring, cache, fake_backend):
    cache.set_text("token", "T1")
    controller, _, _ = wiring(FAMILY)
    await controller.mount()
    outcome = await controller.submit({"father_name": "Imran"})
    assert outcome.status == FormStatus.IN_PROGRESS
    assert not outcome.remote_attempted
    cached = cache.read_envelope("pcas:application:family:u1")
    assert cached.values["father_name"] == "Imran"
    assert fake_backend.posts == []


async def test_submit_complete_saves_and_navigates(wiring, cache, navigator, fake_backend):
    cache.set_text("token", "T1")
    controller, store, _ = wiring(FAMILY)
    await controller.mount()
    outcome = await controller.submit(complete_family_values(), SubmitAction.SAVE_AND_CONTINUE)
    assert outcome.remote_saved
    assert outcome.status == FormStatus.COMPLETE
    assert fake_backend.posts[0][1]["fatherOccupation"] == "govt"
    assert store.data.id == "family-1"
    assert outcome.confirmation.is_open
    await asyncio.sleep(DELAY * 5)
    assert not outcome.confirmation.is_open
    assert outcome.confirmation.navigated
    assert navigator.current == FAMILY.next_page


async def test_plain_save_does_not_navigate(wiring, cache, navigator):
    cache.set_text("token", "T1")
    controller, _, _ = wiring(EXTRACURRICULAR)
    await controller.mount()
    outcome = await controller.submit({"clubs": "Debating"}, SubmitAction.SAVE)
    assert outcome.remote_saved
    await asyncio.sleep(DELAY * 5)
    assert not outcome.confirmation.is_open
    assert not outcome.confirmation.navigated
    assert navigator.history == []


async def test_dismiss_cancels_pending_navigation(wiring, cache, navigator):
    cache.set_text("token", "T1")
    controller, _, _ = wiring(EXTRACURRICULAR)
    await controller.mount()
    outcome = await controller.submit({"clubs": "Debating"}, SubmitAction.SAVE_AND_CONTINUE)
    assert outcome.confirmation.navigate_to == DASHBOARD_PAGE
    outcome.confirmation.dismiss()
    await asyncio.sleep(DELAY * 5)
    assert not outcome.confirmation.navigated
    assert navigator.history == []


async def test_remote_failure_still_caches(wiring, cache, fake_backend):
    cache.set_text("token", "T1")
    fake_backend.fail_saves = "server error"
    controller, store, _ = wiring(FAMILY)
    await controller.mount()
    outcome = await controller.submit(complete_family_values())
    assert outcome.cached
    assert outcome.remote_attempted
    assert not outcome.remote_saved
    assert outcome.error == "server error"
    assert outcome.confirmation is None
    assert store.error == "server error"
    assert cache.read_envelope("pcas:application:family:u1").status == FormStatus.COMPLETE


async def test_invalid_values_never_reach_backend(wiring, cache, fake_backend):
    cache.set_text("token", "T1")
    controller, store, _ = wiring(PROFILE)
    await controller.mount()
    controller.attach_photo("me.jpg", 120_000)
    outcome = await controller.submit(complete_profile_values(primary_lang="fr"))
    assert outcome.status == FormStatus.COMPLETE
    assert not outcome.remote_attempted
    assert outcome.error
    assert store.error == outcome.error
    assert fake_backend.posts == []


async def test_legacy_status_policy_labels(wiring, cache, fake_backend):
    cache.set_text("token", "T1")
    controller, _, _ = wiring(FAMILY, status_policy=LEGACY_STATUS_POLICY)
    await controller.mount()
    outcome = await controller.submit(complete_family_values())
    assert outcome.status == FormStatus.IN_PROGRESS
    assert outcome.remote_saved
    partial = await controller.submit({"mother_name": ""})
    assert partial.status == FormStatus.NOT_STARTED


async def test_completed_subsections_follow_values(wiring, cache):
    cache.set_text("token", "T1")
    controller, _, _ = wiring(PROFILE)
    await controller.mount()
    assert "Personal Information" in controller.completed_subsections()
    assert "Photo & IDs" not in controller.completed_subsections()
    assert controller.completed_subsections(complete_profile_values()) == [
        "Personal Information", "Address", "Language", "Demographics",
        "Photo & IDs", "Contact Details",
    ]
    assert controller.definition.section == Section.PROFILE


# --- session boundaries -------------------------------------------------------

async def test_submit_while_logged_out_writes_nothing(wiring, cache, navigator, fake_backend):
    controller, _, _ = wiring(FAMILY)
    assert await controller.submit({"father_name": "X"}) is None
    assert navigator.history == [LOGIN_PAGE]
    assert cache.keys() == []
    assert fake_backend.posts == []


async def test_logout_resets_form_state(wiring, cache):
    cache.set_text("token", "T1")
    controller, _, session = wiring(FAMILY)
    await controller.mount()
    await controller.submit({"father_name": "Imran"})
    session.logout_local()
    assert controller.values == FAMILY.defaults()
    assert controller.status == FormStatus.NOT_STARTED
    assert controller.saved_at is None
    assert controller.source is None


async def test_logout_cancels_pending_navigation(wiring, cache, navigator):
    cache.set_text("token", "T1")
    controller, _, session = wiring(EXTRACURRICULAR)
    await controller.mount()
    outcome = await controller.submit({"clubs": "Debating"}, SubmitAction.SAVE_AND_CONTINUE)
    assert outcome.confirmation.is_open
    session.logout_local()
    await asyncio.sleep(DELAY * 5)
    assert not outcome.confirmation.navigated
    assert controller.confirmation is None
    assert navigator.history == []


async def test_login_event_resets_form_state(wiring, cache):
    cache.set_text("token", "T1")
    controller, _, session = wiring(FAMILY)
    await controller.mount()
    await controller.submit({"father_name": "Imran"})
    session.events.publish(SessionEvent.LOGGED_IN)
    assert controller.values["father_name"] == ""
    assert controller.status == FormStatus.NOT_STARTED


# --- photo upload -------------------------------------------------------------

async def test_form_data_cannot_set_photo(wiring, cache, fake_backend):
    cache.set_text("token", "T1")
    controller, _, _ = wiring(PROFILE)
    await controller.mount()
    outcome = await controller.submit(complete_profile_values())
    assert outcome.values["photo_name"] == ""
    assert outcome.status == FormStatus.IN_PROGRESS
    assert not outcome.remote_attempted

    assert controller.attach_photo("me.jpg", 120_000)
    outcome = await controller.submit(
        complete_profile_values(photo_name="other.png", photo_bytes=1),
    )
    assert outcome.values["photo_name"] == "me.jpg"
    assert outcome.values["photo_bytes"] == 120_000
    assert outcome.remote_saved
    assert fake_backend.posts[-1][1]["photoName"] == "me.jpg"


async def test_attach_photo_rejects_oversized_file(wiring, cache):
    cache.set_text("token", "T1")
    controller, store, _ = wiring(PROFILE)
    await controller.mount()
    assert not controller.attach_photo("big.jpg", PHOTO_MAX_BYTES + 1)
    assert store.error == "Profile picture must be ≤ 5 MB."
    assert controller.values["photo_name"] == ""


async def test_attach_photo_on_section_without_upload_raises(wiring):
    controller, _, _ = wiring(FAMILY)
    with pytest.raises(ValueError):
        controller.attach_photo("me.jpg", 1)
