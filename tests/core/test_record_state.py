"""Record State — tests for the per-record state machine.

Tests cover:
    - Request lifecycle (begin -> fetched/saved/failure)
    - Dirty tracking through update_field and mark_clean
    - reset() restores the initial state
"""

from pcas.core.record_state import RecordState
from pcas.schemas.application import Family
from helpers import complete_family_values


def test_initial_state_is_empty():
    state = RecordState()
    assert state.data is None
    assert not state.is_loading
    assert state.error is None
    assert state.last_saved is None
    assert not state.is_dirty


def test_begin_request_sets_loading_and_clears_error():
    state = RecordState(error="old")
    state.begin_request()
    assert state.is_loading
    assert state.error is None


def test_apply_fetched_stores_record_without_touching_last_saved():
    state = RecordState()
    record = Family(**complete_family_values())
    state.begin_request()
    state.apply_fetched(record)
    assert state.data == record
    assert not state.is_loading
    assert state.last_saved is None


def test_apply_saved_sets_last_saved():
    state = RecordState()
    state.begin_request()
    state.apply_saved(Family(**complete_family_values()), "2024-05-01T10:00:00+00:00")
    assert state.last_saved == "2024-05-01T10:00:00+00:00"
    assert not state.is_dirty


def test_failure_keeps_previous_data():
    record = Family(**complete_family_values())
    state = RecordState(data=record)
    state.begin_request()
    state.apply_failure("server error")
    assert state.data == record
    assert state.error == "server error"
    assert not state.is_loading


def test_update_field_merges_and_marks_dirty():
    state = RecordState(data=Family(**complete_family_values()))
    state.update_field({"mother_name": "Hina Khan"})
    assert state.data.mother_name == "Hina Khan"
    assert state.data.father_name == "Imran Khan"
    assert state.is_dirty


def test_update_field_without_data_still_marks_dirty():
    state = RecordState()
    state.update_field({"mother_name": "Hina"})
    assert state.data is None
    assert state.is_dirty


def test_mark_clean_clears_dirty_and_stamps():
    state = RecordState(is_dirty=True)
    state.mark_clean("2024-05-01T10:00:00+00:00")
    assert not state.is_dirty
    assert state.last_saved == "2024-05-01T10:00:00+00:00"


def test_set_local_does_not_mark_dirty():
    state = RecordState(is_dirty=True)
    state.set_local(Family(**complete_family_values()))
    assert state.data is not None
    assert not state.is_dirty


def test_reset_restores_initial_state():
    state = RecordState(
        data=Family(**complete_family_values()), is_loading=True,
        error="x", last_saved="t", is_dirty=True,
    )
    state.reset()
    assert state == RecordState()
