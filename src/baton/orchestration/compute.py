"""Computes — user business logic plugged into the step tree.

A ``Compute`` is the leaf of every step tree: it receives the shared
:class:`~baton.orchestration.state.State`, mutates it, and may call
``state.set_interrupted(True)`` to force a hand-off regardless of what the
monitors say.

Two ways to supply one:

1.  **A class with ``execute(state)``**: satisfies the ``Compute``
    protocol, no base class required::

        class LoadBatch:
            def execute(self, state):
                state.set("batch", fetch_next_batch())

2.  **A plain function** wrapped by :class:`FunctionCompute`. The function
    takes the state's mapping and returns:

    * ``True``      → the state is interrupted (hand-off requested)
    * a ``dict``    → every entry is written into the state (overwrite)
    * anything else → ignored

    ::

        def bump(values):
            return {"count": values.get("count", 0) + 1}

        atom.chain(bump)  # adapted automatically

Exceptions raised by user code are never caught here.

Tags:
    baton, orchestration, compute, adapters, plain-functions

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from baton.orchestration.state import State


@runtime_checkable
class Compute(Protocol):
    """Protocol for units of business logic."""

    def execute(self, state: State) -> None:
        """Mutate ``state``; optionally request interruption."""
        ...


ComputeFn = Callable[[dict[str, Any]], Any]


class FunctionCompute:
    """Adapt a one-argument function into a :class:`Compute`.

    The function receives the live state mapping. Its return value is
    interpreted polymorphically (see module docstring).
    """

    def __init__(self, fn: ComputeFn) -> None:
        if not callable(fn):
            raise TypeError(f"FunctionCompute needs a callable, got {type(fn).__name__}")
        self.fn = fn

    def execute(self, state: State) -> None:
        result = self.fn(state.entries())
        if result is True:
            state.set_interrupted(True)
        elif isinstance(result, Mapping):
            state.update(result)

    @property
    def name(self) -> str:
        return getattr(self.fn, "__qualname__", None) or repr(self.fn)

    def __repr__(self) -> str:
        return f"FunctionCompute({self.name})"
