"""State store and TripState serialization tests."""
import json
from datetime import date

import pytest

from tripflow.core.errors import InvalidConversationIdError, StaleStateError, StateStoreError
from tripflow.core.session import (
    InMemoryStateStore,
    JsonFileStateStore,
    create_state_store,
    validate_conversation_id,
)
from tripflow.models.domain import DateRange, ExpectedSlot, TripState


@pytest.fixture(params=["memory", "file"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryStateStore()
    return JsonFileStateStore(tmp_path / "state")


def sample_state(conversation_id: str = "c1") -> TripState:
    state = TripState.create(conversation_id)
    state.destination.fill("Paris", "Paris", lock=True)
    state.dates.fill(
        "March 15-22",
        DateRange(start_date=date(2025, 3, 15), end_date=date(2025, 3, 22)),
        lock=True,
    )
    state.expected_slot = ExpectedSlot.TRAVELERS
    return state


# ==================== STORES ====================

class TestStores:

    def test_unknown_conversation(self, any_store):
        assert any_store.load("nobody") is None

    def test_round_trip(self, any_store):
        state = sample_state()
        any_store.save(state)

        loaded = any_store.load("c1")

        assert loaded == state
        assert loaded.dates.normalized.start_date == date(2025, 3, 15)

    def test_optimistic_version_check(self, any_store):
        state = sample_state()
        any_store.save(state, expected_version=-1)

        with pytest.raises(StaleStateError) as exc_info:
            any_store.save(state, expected_version=-1)
        assert exc_info.value.actual == 0

        state.version = 1
        any_store.save(state, expected_version=0)
        assert any_store.load("c1").version == 1

    def test_unconditional_save(self, any_store):
        any_store.save(sample_state())
        any_store.save(sample_state())

        assert any_store.load("c1") is not None

    def test_delete(self, any_store):
        any_store.save(sample_state())

        assert any_store.delete("c1")
        assert not any_store.delete("c1")
        assert any_store.load("c1") is None


class TestJsonFileStore:

    def test_document_uses_camel_case(self, tmp_path):
        store = JsonFileStateStore(tmp_path)
        store.save(sample_state())

        document = json.loads((tmp_path / "c1.json").read_text(encoding="utf-8"))

        assert document["conversationId"] == "c1"
        assert document["expectedSlot"] == "travelers"
        assert document["dates"]["normalized"] == {"startDate": "2025-03-15", "endDate": "2025-03-22"}

    def test_corrupt_document(self, tmp_path):
        (tmp_path / "c1.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(StateStoreError):
            JsonFileStateStore(tmp_path).load("c1")

    def test_invalid_document(self, tmp_path):
        (tmp_path / "c1.json").write_text('{"expectedSlot": "nowhere"}', encoding="utf-8")

        with pytest.raises(StateStoreError):
            JsonFileStateStore(tmp_path).load("c1")

    def test_path_traversal_is_refused(self, tmp_path):
        with pytest.raises(InvalidConversationIdError):
            JsonFileStateStore(tmp_path).load("../secrets")


class TestFactory:

    def test_backends(self, tmp_path):
        assert isinstance(create_state_store("memory"), InMemoryStateStore)
        assert isinstance(create_state_store("file", tmp_path), JsonFileStateStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_state_store("redis")

    @pytest.mark.parametrize("conversation_id", ["abc-123", "user_1.session", "X"])
    def test_valid_ids(self, conversation_id):
        assert validate_conversation_id(conversation_id) == conversation_id


# ==================== TRIP STATE ====================

class TestTripState:

    def test_serialization_round_trip(self):
        state = sample_state()

        assert TripState.from_dict(state.to_dict()) == state

    def test_readiness(self):
        state = TripState.create("c1")

        assert state.can_search_hotels() == (False, ["destination", "dates"])

        state = sample_state()

        assert state.can_search_hotels() == (True, [])
        assert state.can_search_activities() == (True, [])
        assert state.missing_required() == ["origin", "travelers", "budget"]
        assert not state.is_complete()

    def test_filled_but_unlocked_is_not_authoritative(self):
        state = TripState.create("c1")
        state.dates.fill("soon", DateRange(start_date=date(2025, 3, 1), end_date=date(2025, 3, 2)))

        assert state.dates.authoritative is None
        assert state.can_search_hotels() == (False, ["destination", "dates"])

    def test_lock_requires_value(self):
        with pytest.raises(ValueError):
            TripState.create("c1").travelers.lock()

    def test_unknown_slot_name(self):
        with pytest.raises(KeyError):
            TripState.create("c1").slot("hotel")
