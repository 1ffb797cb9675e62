"""Resource probes — the host's usage/ceiling counters.

Manifesto:
Monitors do not measure anything themselves. They ask a probe for two
numbers per resource kind: how much has been used, and where the hard
ceiling is. ``ResourceProbe`` is a ``typing.Protocol`` so any host
integration satisfies it without a base class.

ARCHITECTURE
────────────
::

    ResourceProbe (Protocol)
      ├── .current_usage(kind) ─ int
      └── .ceiling(kind)       ─ int

    Implementations:
      CounterProbe  ─ in-memory table the host feeds (tests, embedding)
      ProcessProbe  ─ this process (psutil), ceilings from settings

    get_process_probe()  ─ process default, reset before every job

Both calls must be cheap and synchronous; they run after every unit of
work. A probe's ``reset()`` starts a new job's budget; the job facilities
call it through their ``before_run`` hook.

Tags:
    baton, execution, resources, probe, protocol, psutil

Doc-Types:
    api-reference
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from enum import Enum
from typing import Protocol, runtime_checkable

import psutil

from baton.core.settings import BatonSettings, get_settings


class ResourceKind(str, Enum):
    """Resource budgets a host may enforce on a single job."""

    CPU_TIME = "cpu_time"  # milliseconds of CPU
    MEMORY = "memory"  # kilobytes resident
    IO_OPERATIONS = "io_operations"  # block reads + writes
    CONCURRENT_JOBS = "concurrent_jobs"  # jobs / threads alive at once
    QUERIES = "queries"  # queries issued to a data store
    QUERY_ROWS = "query_rows"  # rows returned by those queries
    CALLOUTS = "callouts"  # outbound requests

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ResourceKind.CPU_TIME: "CPU time",
    ResourceKind.MEMORY: "Memory",
    ResourceKind.IO_OPERATIONS: "I/O operations",
    ResourceKind.CONCURRENT_JOBS: "Concurrent jobs",
    ResourceKind.QUERIES: "Queries",
    ResourceKind.QUERY_ROWS: "Query rows",
    ResourceKind.CALLOUTS: "Callouts",
}


@runtime_checkable
class ResourceProbe(Protocol):
    """Host resource introspection: one usage/ceiling pair per kind."""

    def current_usage(self, kind: ResourceKind) -> int:
        ...

    def ceiling(self, kind: ResourceKind) -> int:
        ...


class CounterProbe:
    """In-memory usage table.

    The host (or a test) records usage as work happens; monitors read it.
    Kinds without a configured ceiling report ``0`` usage against an
    effectively unlimited ceiling.

    Example:
        >>> probe = CounterProbe(ceilings={ResourceKind.QUERIES: 100})
        >>> probe.record(ResourceKind.QUERIES, 3)
        >>> probe.current_usage(ResourceKind.QUERIES)
        3
    """

    UNLIMITED = 2**63 - 1

    def __init__(
        self,
        ceilings: Mapping[ResourceKind, int] | None = None,
        usage: Mapping[ResourceKind, int] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._ceilings: dict[ResourceKind, int] = dict(ceilings or {})
        self._usage: dict[ResourceKind, int] = dict(usage or {})

    def current_usage(self, kind: ResourceKind) -> int:
        with self._lock:
            return self._usage.get(kind, 0)

    def ceiling(self, kind: ResourceKind) -> int:
        with self._lock:
            return self._ceilings.get(kind, self.UNLIMITED)

    def record(self, kind: ResourceKind, amount: int = 1) -> int:
        """Add ``amount`` to the usage of ``kind``; returns the new total."""
        with self._lock:
            self._usage[kind] = self._usage.get(kind, 0) + amount
            return self._usage[kind]

    def set_usage(self, kind: ResourceKind, value: int) -> None:
        with self._lock:
            self._usage[kind] = value

    def set_ceiling(self, kind: ResourceKind, value: int) -> None:
        with self._lock:
            self._ceilings[kind] = value

    def reset(self, kind: ResourceKind | None = None) -> None:
        """Zero the usage of one kind, or of every kind (a new job's budget)."""
        with self._lock:
            if kind is None:
                self._usage.clear()
            else:
                self._usage.pop(kind, None)


class ProcessProbe:
    """Usage of the current process during the current job.

    CPU time and I/O operations are counted from a baseline that
    ``reset()`` moves to "now"; memory is the current resident set size,
    concurrency the live thread count. Kinds the process cannot observe
    (queries, rows, callouts) report zero. Ceilings come from
    :class:`~baton.core.settings.BatonSettings`.
    """

    def __init__(self, settings: BatonSettings | None = None) -> None:
        self._settings = settings or get_settings()
        self._process = psutil.Process()
        self._lock = threading.Lock()
        self._cpu_start = 0
        self._io_start = 0
        self.reset()

    def _cpu_ms(self) -> int:
        times = self._process.cpu_times()
        return int((times.user + times.system) * 1000)

    def _io_operations(self) -> int:
        # io_counters() is not available on macOS
        if not hasattr(self._process, "io_counters"):
            return 0
        counters = self._process.io_counters()
        return counters.read_count + counters.write_count

    def reset(self) -> None:
        """Start a new job's budget: CPU and I/O are measured from here on."""
        cpu, io = self._cpu_ms(), self._io_operations()
        with self._lock:
            self._cpu_start = cpu
            self._io_start = io

    def current_usage(self, kind: ResourceKind) -> int:
        if kind is ResourceKind.CPU_TIME:
            with self._lock:
                start = self._cpu_start
            return max(self._cpu_ms() - start, 0)
        if kind is ResourceKind.MEMORY:
            return self._process.memory_info().rss // 1024
        if kind is ResourceKind.IO_OPERATIONS:
            with self._lock:
                start = self._io_start
            return max(self._io_operations() - start, 0)
        if kind is ResourceKind.CONCURRENT_JOBS:
            return threading.active_count()
        return 0

    def ceiling(self, kind: ResourceKind) -> int:
        settings = self._settings
        return {
            ResourceKind.CPU_TIME: settings.cpu_time_limit_ms,
            ResourceKind.MEMORY: settings.memory_limit_kb,
            ResourceKind.IO_OPERATIONS: settings.io_operation_limit,
            ResourceKind.CONCURRENT_JOBS: settings.concurrent_job_limit,
        }.get(kind, CounterProbe.UNLIMITED)


# =============================================================================
# Process default
# =============================================================================

_process_probe: ProcessProbe | None = None


def get_process_probe() -> ProcessProbe:
    """Return the process default probe, creating it from settings."""
    global _process_probe
    if _process_probe is None:
        _process_probe = ProcessProbe()
    return _process_probe


def reset_process_probe() -> None:
    """Forget the process default probe (for testing)."""
    global _process_probe
    _process_probe = None
