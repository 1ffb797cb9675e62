"""Monitor Registry — the ordered list of monitors every Atom consults.

Manifesto:
Monitors are process-wide: the CPU budget of the job is the same no
matter which Atom is running in it. The registry is filled once at
startup, optionally frozen, and then only read. Registration order is
evaluation order, and evaluation stops at the first unsafe monitor.

ARCHITECTURE
────────────
::

    MonitorRegistry
      ├── .register(monitor)   ─ append (raises once frozen)
      ├── .freeze()            ─ end of initialisation
      └── iteration            ─ registration order

    get_monitor_registry()     ─ the process default instance
    register_monitor(m)        ─ append to the default instance
    install_resource_monitors(probe=None)
                               ─ register the ResourceKind catalogue
    clear_monitor_registry()   ─ reset (for testing)

An Atom uses the default registry unless it is given its own.

Example::

    from baton.orchestration.monitor_registry import (
        get_monitor_registry, install_resource_monitors,
    )

    install_resource_monitors()           # process probe, every ResourceKind
    get_monitor_registry().freeze()

Tags:
    baton, orchestration, registry, monitors

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from baton.core.errors import MonitorRegistryFrozenError
from baton.core.logging import get_logger
from baton.execution.resources import ResourceKind, ResourceProbe, get_process_probe
from baton.orchestration.monitors import Monitor, resource_monitors

logger = get_logger(__name__)


class MonitorRegistry:
    """Append-only, ordered collection of monitors."""

    def __init__(self, monitors: Iterable[Monitor] = ()) -> None:
        self._monitors: list[Monitor] = []
        self._frozen = False
        for monitor in monitors:
            self.register(monitor)

    def register(self, monitor: Monitor) -> Monitor:
        """Append ``monitor``; it is evaluated after those already registered.

        Raises:
            MonitorRegistryFrozenError: The registry has been frozen
            TypeError: ``monitor`` does not satisfy the Monitor protocol
        """
        if self._frozen:
            raise MonitorRegistryFrozenError(
                f"Cannot register {monitor!r}: monitor registry is frozen"
            )
        if not isinstance(monitor, Monitor):
            raise TypeError(
                f"Expected a Monitor (message + is_safe), got {type(monitor).__name__}"
            )
        self._monitors.append(monitor)
        logger.debug(
            "monitor_registered",
            monitor=type(monitor).__name__,
            position=len(self._monitors),
        )
        return monitor

    def freeze(self) -> None:
        """Mark initialisation as complete; later registrations fail."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def monitors(self) -> tuple[Monitor, ...]:
        return tuple(self._monitors)

    def __iter__(self) -> Iterator[Monitor]:
        return iter(tuple(self._monitors))

    def __len__(self) -> int:
        return len(self._monitors)

    def __repr__(self) -> str:
        return f"MonitorRegistry(monitors={len(self._monitors)}, frozen={self._frozen})"


# Global monitor registry
_registry = MonitorRegistry()


def get_monitor_registry() -> MonitorRegistry:
    """Return the process-wide default registry."""
    return _registry


def register_monitor(monitor: Monitor) -> Monitor:
    """Register ``monitor`` in the default registry."""
    return _registry.register(monitor)


def install_resource_monitors(
    probe: ResourceProbe | None = None,
    kinds: Iterable[ResourceKind] | None = None,
    registry: MonitorRegistry | None = None,
) -> list[Monitor]:
    """Register one resource monitor per kind (default: every kind, process probe)."""
    target = registry if registry is not None else _registry
    monitors = resource_monitors(probe if probe is not None else get_process_probe(), kinds)
    for monitor in monitors:
        target.register(monitor)
    return list(monitors)


def clear_monitor_registry() -> None:
    """Replace the default registry with an empty one (for testing)."""
    global _registry
    _registry = MonitorRegistry()
