"""Job facilities — how an Atom is scheduled for its next cycle.

Manifesto:
When an Atom hands off, it does not loop: it submits *itself* to a job
facility and returns. The facility runs it later, on a fresh budget, by
calling ``job.on_run(context)``. ``JobFacility`` is a ``typing.Protocol``:
Any scheduler with a ``submit`` method satisfies it.

ARCHITECTURE
────────────
::

    JobFacility (Protocol)
      └── .submit(job) ─ schedule job.on_run(JobContext), return a ref

    Implementations:
      MemoryJobQueue    ─ FIFO, runs on drain()      (testing / embedding)
      LocalJobFacility  ─ ThreadPoolExecutor         (dev / small prod)

    get_job_facility()  ─ process default, from BATON_JOB_BACKEND; resets the
                          process probe before every job

Failures raised by a job (including the fatal hand-off overflow) land on
the facility's failure channel: the run is recorded as ``failed`` with
its exception, and a ``job.failed`` event is logged.

Related modules:
    orchestration/atom.py — the Atom, the only job type baton ships

Tags:
    baton, execution, job-facility, executor, thread-pool, queue

Doc-Types:
    api-reference
"""

from __future__ import annotations

import itertools
import threading
import uuid
from collections import deque
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import UTC, datetime
from time import monotonic
from typing import Any, Protocol, runtime_checkable

from baton.core.logging import get_logger
from baton.core.settings import get_settings
from baton.execution.resources import get_process_probe

logger = get_logger(__name__)


@dataclass(frozen=True)
class JobContext:
    """Handed to ``on_run`` by the facility that scheduled the job."""

    job_id: str
    facility: str
    sequence: int = 0
    submitted_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@runtime_checkable
class Resumable(Protocol):
    """Anything a job facility can run."""

    def on_run(self, context: JobContext) -> None:
        ...


@runtime_checkable
class JobFacility(Protocol):
    """Host asynchronous job submission."""

    def submit(self, job: Resumable) -> str:
        """Schedule ``job`` for later execution; return a job reference."""
        ...


# =============================================================================
# In-memory queue
# =============================================================================


class MemoryJobQueue:
    """FIFO job queue driven explicitly with ``run_next()`` / ``drain()``.

    Perfect for:
    - Unit tests (deterministic, single-threaded)
    - Embedding the engine in a host that owns its own loop

    NOT for production (no persistence, nothing runs until drained).

    Example:
        >>> queue = MemoryJobQueue()
        >>> ref = queue.submit(atom)
        >>> queue.drain()
        >>> queue.get_status(ref)
        'completed'
    """

    name = "memory"

    def __init__(
        self,
        before_run: Callable[[JobContext], None] | None = None,
        history_limit: int = 1000,
    ) -> None:
        """Initialize an empty queue.

        Args:
            before_run: Host hook called before each job starts, e.g. to give
                the job a fresh resource budget (``probe.reset()``).
            history_limit: Finished runs kept for ``get_status`` lookups;
                the oldest are dropped first. Queued jobs are always kept.
        """
        self._queue: deque[tuple[str, Resumable, JobContext]] = deque()
        self._runs: dict[str, dict[str, Any]] = {}
        self._sequence = itertools.count(1)
        self._before_run = before_run
        self._history_limit = history_limit

    def submit(self, job: Resumable) -> str:
        job_id = f"mem-{uuid.uuid4().hex[:8]}"
        context = JobContext(job_id=job_id, facility=self.name, sequence=next(self._sequence))
        self._queue.append((job_id, job, context))
        self._runs[job_id] = {"status": "queued", "error": None, "exception": None}
        logger.debug("job.submitted", job_id=job_id, facility=self.name, sequence=context.sequence)
        return job_id

    @property
    def pending(self) -> int:
        return len(self._queue)

    def run_next(self, *, raise_errors: bool = False) -> str | None:
        """Run the oldest queued job; returns its ref, or None when empty."""
        if not self._queue:
            return None
        job_id, job, context = self._queue.popleft()
        run = self._runs[job_id]
        run["status"] = "running"
        try:
            if self._before_run is not None:
                self._before_run(context)
            job.on_run(context)
        except Exception as e:
            run.update(status="failed", error=str(e), exception=e)
            logger.error(
                "job.failed",
                job_id=job_id,
                facility=self.name,
                error_type=type(e).__name__,
                error=str(e),
            )
            if raise_errors:
                raise
        else:
            run["status"] = "completed"
        finally:
            self._prune_history()
        return job_id

    def _prune_history(self) -> None:
        excess = len(self._runs) - self._history_limit
        if excess <= 0:
            return
        finished = [job_id for job_id, run in self._runs.items() if run["status"] in ("completed", "failed")]
        for job_id in finished[:excess]:
            del self._runs[job_id]

    def drain(self, max_jobs: int | None = None, *, raise_errors: bool = False) -> list[str]:
        """Run queued jobs (including ones they submit) until the queue is empty.

        Args:
            max_jobs: Stop after this many jobs
            raise_errors: Re-raise a job's exception instead of only recording it

        Returns:
            Refs of the jobs that ran, in order
        """
        ran: list[str] = []
        while self._queue and (max_jobs is None or len(ran) < max_jobs):
            job_id = self.run_next(raise_errors=raise_errors)
            if job_id is not None:
                ran.append(job_id)
        return ran

    def get_status(self, job_id: str) -> str | None:
        run = self._runs.get(job_id)
        return run["status"] if run else None

    def get_error(self, job_id: str) -> str | None:
        run = self._runs.get(job_id)
        return run["error"] if run else None

    def get_exception(self, job_id: str) -> BaseException | None:
        run = self._runs.get(job_id)
        return run["exception"] if run else None

    @property
    def failed(self) -> list[str]:
        return [job_id for job_id, run in self._runs.items() if run["status"] == "failed"]

    def clear(self) -> None:
        """Drop queued jobs and run history (for testing)."""
        self._queue.clear()
        self._runs.clear()


# =============================================================================
# Thread pool
# =============================================================================


class LocalJobFacility:
    """ThreadPoolExecutor-based job facility.

    With the default single worker, a resubmitted Atom cannot start its next
    cycle before the current one has returned, which is the serialized
    re-entry the engine relies on.

    Example:
        >>> with LocalJobFacility() as jobs:
        ...     atom = Atom(job_facility=jobs).chain(step)
        ...     atom.start()
        ...     jobs.wait_idle(timeout=30)
    """

    name = "local"

    def __init__(
        self,
        max_workers: int = 1,
        before_run: Callable[[JobContext], None] | None = None,
        history_limit: int = 1000,
    ) -> None:
        """Initialize with worker pool.

        Args:
            max_workers: ThreadPool size (default: 1)
            before_run: Host hook called in the worker before each job starts
            history_limit: Finished futures kept for ``get_status`` lookups
        """
        self.pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="baton-job")
        self._lock = threading.Lock()
        self._futures: dict[str, Future] = {}
        self._sequence = itertools.count(1)
        self._before_run = before_run
        self._history_limit = history_limit

    def submit(self, job: Resumable) -> str:
        job_id = f"local-{uuid.uuid4().hex[:8]}"
        with self._lock:
            context = JobContext(job_id=job_id, facility=self.name, sequence=next(self._sequence))

        def run() -> None:
            try:
                if self._before_run is not None:
                    self._before_run(context)
                job.on_run(context)
            except Exception as e:
                logger.error(
                    "job.failed",
                    job_id=job_id,
                    facility=self.name,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise

        with self._lock:
            self._futures[job_id] = self.pool.submit(run)
            self._prune_history()
        logger.debug("job.submitted", job_id=job_id, facility=self.name, sequence=context.sequence)
        return job_id

    def _prune_history(self) -> None:
        # caller holds self._lock
        excess = len(self._futures) - self._history_limit
        if excess <= 0:
            return
        done = [job_id for job_id, future in self._futures.items() if future.done()]
        for job_id in done[:excess]:
            del self._futures[job_id]

    def get_status(self, job_id: str) -> str | None:
        """Status from future state."""
        with self._lock:
            future = self._futures.get(job_id)
        if not future:
            return None

        if future.cancelled():
            return "cancelled"
        elif future.done():
            return "completed" if not future.exception() else "failed"
        elif future.running():
            return "running"
        else:
            return "queued"

    def get_exception(self, job_id: str) -> BaseException | None:
        with self._lock:
            future = self._futures.get(job_id)
        if not future or not future.done() or future.cancelled():
            return None
        return future.exception()

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until every submitted job (and any it resubmits) is done.

        Returns:
            True when idle, False when ``timeout`` elapsed first
        """
        deadline = None if timeout is None else monotonic() + timeout
        while True:
            with self._lock:
                pending = [f for f in self._futures.values() if not f.done()]
            if not pending:
                return True
            remaining = None if deadline is None else deadline - monotonic()
            if remaining is not None and remaining <= 0:
                return False
            wait(pending, timeout=remaining)

    def shutdown(self, wait: bool = True) -> None:
        self.pool.shutdown(wait=wait)

    def __enter__(self) -> LocalJobFacility:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown(wait=True)


# =============================================================================
# Process default
# =============================================================================

_facility: JobFacility | None = None


def fresh_process_budget(context: JobContext) -> None:
    """``before_run`` hook: restart the default process probe's CPU and I/O budget."""
    get_process_probe().reset()


def get_job_facility() -> JobFacility:
    """Return the process default facility, creating it from settings.

    Every job it runs starts with a fresh budget on the default process probe.
    """
    global _facility
    if _facility is None:
        settings = get_settings()
        if settings.job_backend == "local":
            _facility = LocalJobFacility(
                max_workers=settings.local_max_workers,
                before_run=fresh_process_budget,
                history_limit=settings.job_history_limit,
            )
        else:
            _facility = MemoryJobQueue(
                before_run=fresh_process_budget,
                history_limit=settings.job_history_limit,
            )
    return _facility


def set_job_facility(facility: JobFacility) -> None:
    global _facility
    _facility = facility


def reset_job_facility() -> None:
    """Forget the process default (shutting down a thread pool); for testing."""
    global _facility
    if isinstance(_facility, LocalJobFacility):
        _facility.shutdown(wait=False)
    _facility = None
