"""
State - the mutable key/value bag shared by every step of one computation.

Unlike a context object that is copied between steps, ``State`` is mutated
in place: a compute writes a key and the very next monitor check (and the
next step) sees it. The same instance survives every hand-off of its Atom,
so values written before an interruption are still there when the next job
resumes.

Besides the values, the state carries the interruption bookkeeping:

- ``interrupted`` - set by a compute (manual hand-off) or by the engine when
  a monitor reports an unsafe budget; reset at the start of every cycle.
- ``interrupted_times`` - incremented on every ``set_interrupted(True)``,
  never decremented. The engine compares it with the hand-off budget.

Example:
    from baton.orchestration import State

    state = State({"batch": [1, 2, 3]})
    state.set("total", 0)
    total = state.get_as("total", int)

Tags:
    baton, orchestration, state, shared-state, checkpoint

Doc-Types:
    api-reference
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, TypeVar, overload

from baton.core.errors import CheckpointError, StateTypeError

T = TypeVar("T")


class State:
    """
    Mutable state container plus interruption bookkeeping.

    Attributes are private; use the accessors. ``entries()`` hands out the
    live dict so that computes and monitors observe writes immediately.
    """

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})
        self._interrupted = False
        self._interrupted_times = 0

    # =========================================================================
    # Values
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value under ``key``; absent keys yield ``default``."""
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key`` (overwrite, no merge)."""
        self._values[key] = value

    def has(self, key: str) -> bool:
        return key in self._values

    def update(self, values: Mapping[str, Any]) -> None:
        """Overwrite every key of ``values`` into the state."""
        for key, value in values.items():
            self._values[key] = value

    def entries(self) -> dict[str, Any]:
        """The live underlying mapping (not a copy)."""
        return self._values

    @overload
    def get_as(self, key: str, expected_type: type[T]) -> T | None: ...

    @overload
    def get_as(self, key: str, expected_type: type[T], default: T) -> T: ...

    def get_as(self, key: str, expected_type: Any, default: Any = None) -> Any:
        """
        Typed read of a state value.

        Args:
            key: State key
            expected_type: Type (or tuple of types) the value must be
            default: Returned when the key is absent

        Raises:
            StateTypeError: The key is present but holds another type
        """
        if key not in self._values:
            return default
        value = self._values[key]
        if not isinstance(value, expected_type):
            raise StateTypeError(key, expected=expected_type, actual=value)
        return value

    # =========================================================================
    # Interruption bookkeeping
    # =========================================================================

    def is_interrupted(self) -> bool:
        return self._interrupted

    def set_interrupted(self, interrupted: bool) -> None:
        """Set the interruption flag; ``True`` also bumps the counter."""
        if interrupted:
            self._interrupted_times += 1
        self._interrupted = interrupted

    def interrupted_count(self) -> int:
        return self._interrupted_times

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary (for checkpointing)."""
        return {
            "values": copy.deepcopy(self._values),
            "interrupted": self._interrupted,
            "interrupted_times": self._interrupted_times,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> State:
        """Deserialize from dictionary (for checkpoint resume)."""
        values = data.get("values", {})
        if not isinstance(values, Mapping):
            raise CheckpointError(
                "State checkpoint 'values' must be a mapping",
                field="values",
                value=values,
            )
        state = cls(copy.deepcopy(dict(values)))
        state._interrupted = bool(data.get("interrupted", False))
        state._interrupted_times = int(data.get("interrupted_times", 0))
        return state

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return (
            f"State(keys={sorted(self._values)}, "
            f"interrupted={self._interrupted}, "
            f"interrupted_times={self._interrupted_times})"
        )
