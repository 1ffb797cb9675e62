"""Step Types — the resumable building blocks of an Atom's work tree.

Manifesto:
An Atom never runs "the whole job". It asks its root step to do *one*
bounded unit of work, checks the resource monitors, and repeats. Every
step type therefore answers two questions, ``is_finished(state)`` and
``execute(state)``, and a parent only ever executes its first unfinished
child, exactly once per call. Because progress lives in the steps
themselves (a ``done`` flag, a cursor), the tree can stop after any unit
and pick up at the same place in the next job.

ARCHITECTURE
────────────
::

    Step (ABC)
      ├── SimpleStep(compute)                  ── one-shot wrapper
      ├── CompositeStep(*children)             ── ordered sequence
      └── ForEachStep(body, item_key, ...)     ── cursor over a sequence
            ├── RangeStep(item_key, min, max)  ── inclusive integer range
            └── RepeatStep(count)              ── 0 .. count-1

    as_step(obj)   ── Step | Compute | callable → Step

Every step can also ``reset()`` its progress and ``snapshot()`` /
``restore()`` it as a JSON-compatible dict.

ForEach semantics
─────────────────
``ForEachStep.execute`` binds the current item, resets the body, runs
the body's ``execute`` *once*, then advances its cursor. A one-shot body
(a ``SimpleStep``) therefore runs once per item. A multi-unit body (a
``CompositeStep`` or nested loop) only gets its first unit per item;
the cursor does not wait for the body to finish.

Related modules:
    compute.py   — Compute protocol and FunctionCompute adapter
    state.py     — the State every step reads and writes
    atom.py      — the engine that drives the root step

Example::

    from baton.orchestration import CompositeStep, RangeStep, SimpleStep

    tree = CompositeStep(
        SimpleStep(LoadBatch()),
        RangeStep("page", 1, 20, body=SimpleStep(FetchPage())),
    )

Tags:
    baton, orchestration, step-types, composite, for-each, range, repeat

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Any

from baton.core.errors import CheckpointError, StepDefinitionError
from baton.orchestration.compute import Compute, FunctionCompute
from baton.orchestration.state import State


class Step(ABC):
    """
    A resumable unit of the execution tree.

    Subclasses must keep ``is_finished`` free of side effects and make
    ``execute`` perform at most one bounded unit of work.
    """

    step_type: str = "step"

    def __init__(self, name: str | None = None) -> None:
        self.name = name

    @abstractmethod
    def is_finished(self, state: State) -> bool:
        """Pure query: has this step done all of its work?"""

    @abstractmethod
    def execute(self, state: State) -> None:
        """Perform one unit of work. Never called once finished."""

    @abstractmethod
    def reset(self) -> None:
        """Rewind this step's progress to the beginning."""

    @abstractmethod
    def snapshot(self) -> dict[str, Any]:
        """JSON-compatible progress snapshot."""

    @abstractmethod
    def restore(self, snapshot: dict[str, Any]) -> None:
        """Reapply a snapshot produced by ``snapshot()`` on the same tree shape."""

    def _check_snapshot(self, snapshot: dict[str, Any]) -> None:
        if not isinstance(snapshot, dict) or snapshot.get("type") != self.step_type:
            found = snapshot.get("type") if isinstance(snapshot, dict) else type(snapshot).__name__
            raise CheckpointError(
                f"Cannot restore {found!r} snapshot onto {self.describe()}",
                field="type",
                value=found,
                constraint=self.step_type,
            ).with_context(step=self.describe())

    def describe(self) -> str:
        return f"{type(self).__name__}({self.name})" if self.name else type(self).__name__

    def __repr__(self) -> str:
        return self.describe()


# =============================================================================
# Simple
# =============================================================================


class SimpleStep(Step):
    """Wraps one :class:`Compute`; finished after its first execute."""

    step_type = "simple"

    def __init__(self, compute: Compute, name: str | None = None) -> None:
        super().__init__(name)
        self.compute = compute
        self.done = False

    def is_finished(self, state: State) -> bool:
        return self.done

    def execute(self, state: State) -> None:
        if self.done:
            return
        self.compute.execute(state)
        self.done = True

    def reset(self) -> None:
        self.done = False

    def snapshot(self) -> dict[str, Any]:
        return {"type": self.step_type, "done": self.done}

    def restore(self, snapshot: dict[str, Any]) -> None:
        self._check_snapshot(snapshot)
        self.done = bool(snapshot.get("done", False))


# =============================================================================
# Composite
# =============================================================================


class CompositeStep(Step):
    """Ordered sequence of child steps, resumed leftmost-first.

    There is no explicit position: the first child whose ``is_finished``
    is false is the current one.
    """

    step_type = "composite"

    def __init__(self, *children: Step | Compute | Callable[..., Any], name: str | None = None) -> None:
        super().__init__(name)
        self.children: list[Step] = [as_step(child) for child in children]

    def add(self, child: Step | Compute | Callable[..., Any]) -> Step:
        """Append a child (coerced through :func:`as_step`) and return it."""
        step = as_step(child)
        self.children.append(step)
        return step

    def current(self, state: State) -> Step | None:
        """The first unfinished child, or ``None`` when finished."""
        for child in self.children:
            if not child.is_finished(state):
                return child
        return None

    def is_finished(self, state: State) -> bool:
        return self.current(state) is None

    def execute(self, state: State) -> None:
        child = self.current(state)
        if child is not None:
            child.execute(state)

    def reset(self) -> None:
        for child in self.children:
            child.reset()

    def snapshot(self) -> dict[str, Any]:
        return {
            "type": self.step_type,
            "children": [child.snapshot() for child in self.children],
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        self._check_snapshot(snapshot)
        children = snapshot.get("children", [])
        if len(children) != len(self.children):
            raise CheckpointError(
                f"{self.describe()} has {len(self.children)} children, "
                f"checkpoint has {len(children)}",
                field="children",
            ).with_context(step=self.describe())
        for child, child_snapshot in zip(self.children, children):
            child.restore(child_snapshot)

    def __len__(self) -> int:
        return len(self.children)


# =============================================================================
# ForEach (+ Range / Repeat)
# =============================================================================


class ForEachStep(Step):
    """
    Iterates a sequence, running ``body`` once per item.

    The sequence is either a literal (``values``) or read from the state
    under ``values_key`` on every check; supplying both is an error.
    Without either, the loop is empty.

    Args:
        body: Step (or compute / function) run for each item
        item_key: State key that receives the current item (optional)
        values_key: State key holding the sequence (optional)
        values: Literal sequence, captured at construction (optional)
    """

    step_type = "for_each"

    def __init__(
        self,
        body: Step | Compute | Callable[..., Any],
        item_key: str | None = None,
        values_key: str | None = None,
        values: Sequence[Any] | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(name)
        if values_key is not None and values is not None:
            raise StepDefinitionError(
                "ForEachStep takes either values_key or literal values, not both"
            )
        self.body = as_step(body)
        self.item_key = item_key
        self.values_key = values_key
        self.values = list(values) if values is not None else None
        self.cursor = 0

    def resolve_values(self, state: State) -> Sequence[Any]:
        """The sequence to iterate, resolved fresh from ``state``."""
        if self.values is not None:
            return self.values
        if self.values_key is not None:
            resolved = state.get_as(self.values_key, (list, tuple))
            if resolved is not None:
                return resolved
        return ()

    def is_finished(self, state: State) -> bool:
        return self.cursor >= len(self.resolve_values(state))

    def execute(self, state: State) -> None:
        values = self.resolve_values(state)
        if self.cursor >= len(values):
            return
        if self.item_key is not None:
            state.set(self.item_key, values[self.cursor])
        self.body.reset()
        self.body.execute(state)
        self.cursor += 1

    def reset(self) -> None:
        self.cursor = 0
        self.body.reset()

    def snapshot(self) -> dict[str, Any]:
        return {
            "type": self.step_type,
            "cursor": self.cursor,
            "body": self.body.snapshot(),
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        self._check_snapshot(snapshot)
        self.cursor = int(snapshot.get("cursor", 0))
        if "body" in snapshot:
            self.body.restore(snapshot["body"])


class RangeStep(ForEachStep):
    """ForEach over the inclusive integer range ``min_value .. max_value``.

    A reversed range (``min_value > max_value``) is empty.
    """

    def __init__(
        self,
        item_key: str | None,
        min_value: int,
        max_value: int,
        body: Step | Compute | Callable[..., Any],
        name: str | None = None,
    ) -> None:
        super().__init__(
            body,
            item_key=item_key,
            values=range(min_value, max_value + 1),
            name=name,
        )


class RepeatStep(ForEachStep):
    """ForEach over ``0 .. count-1``; ``item_key`` receives the index."""

    def __init__(
        self,
        count: int,
        body: Step | Compute | Callable[..., Any],
        item_key: str | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(
            body,
            item_key=item_key,
            values=range(max(count, 0)),
            name=name,
        )


# =============================================================================
# Coercion
# =============================================================================


def as_step(obj: Step | Compute | Callable[..., Any]) -> Step:
    """Coerce a step, compute, or plain function into a :class:`Step`.

    Raises:
        StepDefinitionError: ``obj`` is none of those
    """
    if isinstance(obj, Step):
        return obj
    if isinstance(obj, Compute):
        return SimpleStep(obj)
    if callable(obj):
        return SimpleStep(FunctionCompute(obj))
    raise StepDefinitionError(
        f"Expected a Step, Compute or callable, got {type(obj).__name__}"
    )
