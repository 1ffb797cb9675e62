"""Monitors — judge whether the current job may keep running.

Manifesto:
The host kills a job that crosses a hard budget (CPU time, I/O
operations, memory, concurrent jobs). A monitor looks at one of those
budgets after every unit of work and answers "is it still safe to do
another one?". The first monitor to say no makes the Atom hand off.

ARCHITECTURE
────────────
::

    Monitor (Protocol)           ─ message + is_safe(state)
      └── ThresholdMonitor (ABC) ─ current(state) ≤ 0.9 × maximum(state)
            └── ResourceMonitor  ─ (ResourceKind, ResourceProbe) value object

    resource_monitors(probe)     ─ one ResourceMonitor per ResourceKind

The 90% margin is fixed (``SAFETY_MARGIN``) and evaluated with exact
rational arithmetic, so ``current=90, maximum=100`` is safe and
``current=91, maximum=100`` is not.

Related modules:
    monitor_registry.py   — process-wide ordered list of monitors
    execution/resources.py — ResourceKind and the probe implementations

Example::

    from baton.execution.resources import CounterProbe, ResourceKind
    from baton.orchestration.monitors import ResourceMonitor

    probe = CounterProbe(ceilings={ResourceKind.CPU_TIME: 10_000})
    monitor = ResourceMonitor(ResourceKind.CPU_TIME, probe)
    monitor.is_safe(state)

Tags:
    baton, orchestration, monitors, resource-budget, threshold

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from fractions import Fraction
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from baton.execution.resources import ResourceKind, ResourceProbe

if TYPE_CHECKING:
    from baton.orchestration.state import State

SAFETY_MARGIN = Fraction(9, 10)


@runtime_checkable
class Monitor(Protocol):
    """Protocol for budget monitors."""

    @property
    def message(self) -> str:
        """Human-readable reason, logged when the monitor is unsafe."""
        ...

    def is_safe(self, state: State) -> bool:
        """True while another unit of work fits in the budget."""
        ...


class ThresholdMonitor(ABC):
    """Template: safe while ``current(state) <= 0.9 * maximum(state)``."""

    message: str = "Resource usage above 90% of its limit"

    @abstractmethod
    def current(self, state: State) -> int | float:
        """Current usage."""

    @abstractmethod
    def maximum(self, state: State) -> int | float:
        """Usage ceiling."""

    def is_safe(self, state: State) -> bool:
        return Fraction(self.current(state)) <= SAFETY_MARGIN * Fraction(self.maximum(state))


@dataclass(frozen=True)
class ResourceMonitor(ThresholdMonitor):
    """Threshold monitor over one resource counter pair of a probe.

    Holds no state of its own; one instance can be shared by every Atom
    in the process.
    """

    kind: ResourceKind
    probe: ResourceProbe

    def current(self, state: State) -> int:
        return self.probe.current_usage(self.kind)

    def maximum(self, state: State) -> int:
        return self.probe.ceiling(self.kind)

    @property
    def message(self) -> str:  # type: ignore[override]
        return f"{self.kind.label} usage above 90% of its limit"

    @property
    def name(self) -> str:
        return self.kind.value


def resource_monitors(
    probe: ResourceProbe,
    kinds: Iterable[ResourceKind] | None = None,
) -> list[ResourceMonitor]:
    """Build one :class:`ResourceMonitor` per kind (default: every kind)."""
    return [ResourceMonitor(kind, probe) for kind in (kinds or ResourceKind)]
