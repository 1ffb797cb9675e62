"""Atom — the execute / monitor / hand-off engine.

An Atom owns one root :class:`~baton.orchestration.steps.CompositeStep`
and one :class:`~baton.orchestration.state.State`. Each cycle (one job)
it:

1. resets the interruption flag,
2. executes one unit of work on the root step,
3. asks every registered monitor, in order, whether another unit is
   safe; the first one that says no interrupts the cycle,
4. repeats until the root is finished or the state is interrupted.

An interrupted Atom resubmits itself to the job facility with its state
and step progress intact, unless it has already been interrupted more
than ``max_handoffs`` times, in which case it raises
:class:`~baton.core.errors.HandoffLimitExceededError`.

Lifecycle::

    IDLE ──start()──► RUNNING ──► FINISHED
                        │  ▲
                        ▼  │ resubmitted
                    INTERRUPTED ──► FATAL   (hand-off budget exceeded)

    RUNNING ──► FAILED   (a compute raised; the exception propagates)

``start()`` runs the cycles inline, one after another in a loop, when
``BATON_SYNC_MODE`` is set and no cycle has yet run through the job
facility; otherwise it submits the Atom and returns the job reference.

Example::

    from baton.orchestration import Atom, RangeStep

    def bump(values):
        return {"count": values.get("count", 0) + 1}

    atom = Atom(name="nightly.rollup")
    atom.chain(load_batch).chain(RangeStep("page", 1, 50, body=bump))
    atom.set_max_handoffs(20)
    job_id = atom.start()

Tags:
    baton, orchestration, engine, hand-off, checkpoint, resumable

Doc-Types:
    api-reference
"""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping
from enum import Enum
from typing import Any

from baton.core.errors import CheckpointError, HandoffLimitExceededError
from baton.core.logging import LogContext, get_logger
from baton.core.settings import get_settings
from baton.execution.jobs import JobContext, JobFacility, get_job_facility
from baton.orchestration.compute import Compute
from baton.orchestration.monitor_registry import MonitorRegistry, get_monitor_registry
from baton.orchestration.monitors import Monitor, ThresholdMonitor
from baton.orchestration.state import State
from baton.orchestration.steps import CompositeStep, Step

logger = get_logger(__name__)


class AtomStatus(str, Enum):
    """Where an Atom is in its lifecycle."""

    IDLE = "idle"
    RUNNING = "running"
    INTERRUPTED = "interrupted"
    FINISHED = "finished"
    FATAL = "fatal"
    FAILED = "failed"


class Atom:
    """Resumable execution of one step tree under resource monitors.

    Args:
        *steps: Initial steps (or computes / functions) for the root
        name: Human-readable name used in logs
        state: Initial state (a State or a plain mapping of values)
        max_handoffs: Hand-off budget (default: ``BATON_MAX_HANDOFFS``, 10)
        monitors: Registry or iterable of monitors (default: process registry)
        job_facility: Where to submit hand-offs (default: process facility)
    """

    def __init__(
        self,
        *steps: Step | Compute | Callable[..., Any],
        name: str | None = None,
        state: State | Mapping[str, Any] | None = None,
        max_handoffs: int | None = None,
        monitors: MonitorRegistry | Iterable[Monitor] | None = None,
        job_facility: JobFacility | None = None,
    ) -> None:
        self.atom_id = uuid.uuid4().hex
        self.name = name or f"atom-{self.atom_id[:8]}"
        self._root = CompositeStep(*steps, name="root")
        if isinstance(state, State):
            self._state = state
        else:
            self._state = State(state)
        self._max_handoffs = (
            max_handoffs if max_handoffs is not None else get_settings().max_handoffs
        )
        if monitors is None or isinstance(monitors, MonitorRegistry):
            self._monitors = monitors
        else:
            self._monitors = MonitorRegistry(monitors)
        self._job_facility = job_facility

        self._status = AtomStatus.IDLE
        self._units_executed = 0
        self._cycles = 0
        self._ran_async = False
        self._driving_inline = False
        self._last_job_id: str | None = None

    # =========================================================================
    # Builder surface
    # =========================================================================

    def chain(self, *items: Step | Compute | Callable[..., Any]) -> Atom:
        """Append steps, computes or functions to the root; returns ``self``."""
        for item in items:
            self._root.add(item)
        return self

    def set_max_handoffs(self, max_handoffs: int) -> Atom:
        self._max_handoffs = max_handoffs
        return self

    @property
    def state(self) -> State:
        return self._state

    @property
    def root(self) -> CompositeStep:
        return self._root

    @property
    def max_handoffs(self) -> int:
        return self._max_handoffs

    @property
    def monitors(self) -> MonitorRegistry:
        return self._monitors if self._monitors is not None else get_monitor_registry()

    @property
    def job_facility(self) -> JobFacility:
        return self._job_facility if self._job_facility is not None else get_job_facility()

    @property
    def status(self) -> AtomStatus:
        return self._status

    @property
    def units_executed(self) -> int:
        """Units of work executed across every cycle."""
        return self._units_executed

    @property
    def cycles(self) -> int:
        return self._cycles

    @property
    def handoffs(self) -> int:
        return self._state.interrupted_count()

    @property
    def last_job_id(self) -> str | None:
        return self._last_job_id

    def is_finished(self) -> bool:
        return self._root.is_finished(self._state)

    # =========================================================================
    # Execution
    # =========================================================================

    def start(self) -> str | None:
        """Run a cycle inline (sync mode) or submit the Atom to the job facility.

        Returns:
            The job reference when submitted, ``None`` when run inline
        """
        if get_settings().sync_mode and not self._ran_async:
            self._run_inline()
            return None

        job_id = self.job_facility.submit(self)
        self._last_job_id = job_id
        logger.info(
            "atom.submitted",
            atom=self.name,
            atom_id=self.atom_id,
            job_id=job_id,
            handoffs=self._state.interrupted_count(),
        )
        return job_id

    def _run_inline(self) -> None:
        """Run cycles back to back until the Atom stops handing off."""
        self._driving_inline = True
        try:
            self.on_run(None)
            while self._status is AtomStatus.INTERRUPTED and not self._ran_async:
                self.on_run(None)
        finally:
            self._driving_inline = False

    def on_run(self, context: JobContext | None = None) -> None:
        """Run one cycle; the re-entry point called by the job facility.

        Raises:
            HandoffLimitExceededError: Interrupted more than ``max_handoffs`` times
        """
        if context is not None:
            self._ran_async = True

        state = self._state
        state.set_interrupted(False)
        self._status = AtomStatus.RUNNING
        self._cycles += 1
        monitors = tuple(self.monitors)

        with LogContext(atom=self.name, atom_id=self.atom_id):
            logger.info(
                "atom.cycle.start",
                cycle=self._cycles,
                handoffs=state.interrupted_count(),
                job_id=context.job_id if context else None,
            )

            units = 0
            try:
                while not self._root.is_finished(state) and not state.is_interrupted():
                    self._root.execute(state)
                    units += 1
                    self._units_executed += 1
                    if state.is_interrupted():
                        logger.info("atom.interrupted_by_compute", units=units)
                    else:
                        self._check_monitors(state, monitors)
            except Exception as e:
                self._status = AtomStatus.FAILED
                logger.error(
                    "atom.failed",
                    units=units,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise

            if not state.is_interrupted():
                self._status = AtomStatus.FINISHED
                logger.info(
                    "atom.finished",
                    units=units,
                    units_total=self._units_executed,
                    cycles=self._cycles,
                    handoffs=state.interrupted_count(),
                )
                return

            self._status = AtomStatus.INTERRUPTED
            handoffs = state.interrupted_count()
            if handoffs > self._max_handoffs:
                self._status = AtomStatus.FATAL
                logger.error(
                    "atom.handoff_limit_exceeded",
                    handoffs=handoffs,
                    max_handoffs=self._max_handoffs,
                )
                raise HandoffLimitExceededError(
                    handoffs=handoffs,
                    max_handoffs=self._max_handoffs,
                ).with_context(atom=self.name, atom_id=self.atom_id)

            logger.info(
                "atom.handoff",
                units=units,
                handoffs=handoffs,
                max_handoffs=self._max_handoffs,
            )

        if not self._driving_inline:
            self.start()

    def _check_monitors(self, state: State, monitors: tuple[Monitor, ...]) -> None:
        """Interrupt on the first unsafe monitor; later ones are not consulted."""
        for monitor in monitors:
            if not monitor.is_safe(state):
                state.set_interrupted(True)
                usage = {}
                if isinstance(monitor, ThresholdMonitor):
                    usage = {"current": monitor.current(state), "maximum": monitor.maximum(state)}
                logger.warning(
                    "atom.monitor.unsafe",
                    monitor=getattr(monitor, "name", type(monitor).__name__),
                    message=monitor.message,
                    **usage,
                )
                return

    # =========================================================================
    # Checkpointing
    # =========================================================================

    def checkpoint(self) -> dict[str, Any]:
        """Snapshot of state and step progress (for out-of-process resume)."""
        return {
            "atom_id": self.atom_id,
            "name": self.name,
            "max_handoffs": self._max_handoffs,
            "units_executed": self._units_executed,
            "state": self._state.to_dict(),
            "root": self._root.snapshot(),
        }

    def restore(self, checkpoint: Mapping[str, Any]) -> Atom:
        """Reapply a ``checkpoint()`` onto an Atom built with the same step tree.

        Raises:
            CheckpointError: The checkpoint is incomplete or its step tree
                does not match this Atom's
        """
        missing = [key for key in ("state", "root") if key not in checkpoint]
        if missing:
            raise CheckpointError(
                f"Checkpoint is missing {', '.join(missing)}",
                field=missing[0],
            ).with_context(atom=self.name)

        self._root.restore(checkpoint["root"])
        self._state = State.from_dict(checkpoint["state"])
        self.atom_id = checkpoint.get("atom_id", self.atom_id)
        self.name = checkpoint.get("name", self.name)
        self._max_handoffs = checkpoint.get("max_handoffs", self._max_handoffs)
        self._units_executed = checkpoint.get("units_executed", self._units_executed)
        return self

    def __repr__(self) -> str:
        return (
            f"Atom(name={self.name!r}, status={self._status.value}, "
            f"steps={len(self._root)}, handoffs={self.handoffs})"
        )
