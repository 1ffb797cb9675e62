"""Tests for the State container (state.py)."""

import pytest

from baton.core.errors import CheckpointError, StateTypeError
from baton.orchestration import State


class TestStateValues:
    def test_absent_key_yields_none(self):
        assert State().get("missing") is None

    def test_absent_key_yields_default(self):
        assert State().get("missing", 7) == 7

    def test_set_overwrites(self):
        state = State({"x": {"a": 1}})
        state.set("x", {"b": 2})
        assert state.get("x") == {"b": 2}

    def test_entries_is_live(self):
        state = State()
        entries = state.entries()
        entries["direct"] = 1
        state.set("via_set", 2)
        assert state.get("direct") == 1
        assert entries["via_set"] == 2

    def test_update_merges_with_overwrite(self):
        state = State({"a": 1, "b": 2})
        state.update({"b": 20, "c": 30})
        assert state.entries() == {"a": 1, "b": 20, "c": 30}

    def test_initial_values_are_copied(self):
        initial = {"a": 1}
        state = State(initial)
        state.set("a", 2)
        assert initial == {"a": 1}


class TestTypedAccess:
    def test_matching_type(self):
        assert State({"n": 3}).get_as("n", int) == 3

    def test_absent_key_returns_default(self):
        assert State().get_as("n", int) is None
        assert State().get_as("n", int, 5) == 5

    def test_mismatch_raises(self):
        with pytest.raises(StateTypeError) as exc_info:
            State({"n": "three"}).get_as("n", int)
        error = exc_info.value
        assert error.key == "n"
        assert error.actual == "three"
        assert "expected int" in str(error)

    def test_tuple_of_types(self):
        assert State({"v": (1, 2)}).get_as("v", (list, tuple)) == (1, 2)


class TestInterruption:
    def test_starts_uninterrupted(self):
        state = State()
        assert state.is_interrupted() is False
        assert state.interrupted_count() == 0

    def test_counter_equals_true_calls(self):
        state = State()
        for _ in range(4):
            state.set_interrupted(True)
        assert state.is_interrupted() is True
        assert state.interrupted_count() == 4

    def test_false_never_decrements(self):
        state = State()
        state.set_interrupted(True)
        state.set_interrupted(False)
        state.set_interrupted(False)
        assert state.is_interrupted() is False
        assert state.interrupted_count() == 1


class TestSerialization:
    def test_round_trip(self):
        state = State({"items": [1, 2], "name": "x"})
        state.set_interrupted(True)
        restored = State.from_dict(state.to_dict())
        assert restored.entries() == {"items": [1, 2], "name": "x"}
        assert restored.is_interrupted() is True
        assert restored.interrupted_count() == 1

    def test_to_dict_is_a_copy(self):
        state = State({"items": [1]})
        snapshot = state.to_dict()
        state.get("items").append(2)
        assert snapshot["values"]["items"] == [1]

    def test_bad_values_rejected(self):
        with pytest.raises(CheckpointError):
            State.from_dict({"values": ["not", "a", "mapping"]})
