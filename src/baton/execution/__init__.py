"""
Baton Execution — host-side collaborators of the engine.

The Atom needs two things from its host: somewhere to submit itself when
it hands off (a job facility) and a way to read resource budgets (a
resource probe). Both are protocols; this package ships reference
implementations of each.

MODULE MAP
──────────
1. jobs.py       ─ JobFacility protocol, MemoryJobQueue, LocalJobFacility
2. resources.py  ─ ResourceKind, ResourceProbe protocol, CounterProbe, ProcessProbe
"""

from baton.execution.jobs import (
    JobContext,
    JobFacility,
    LocalJobFacility,
    MemoryJobQueue,
    Resumable,
    get_job_facility,
    reset_job_facility,
    fresh_process_budget,
    set_job_facility,
)
from baton.execution.resources import (
    CounterProbe,
    ProcessProbe,
    ResourceKind,
    ResourceProbe,
    get_process_probe,
    reset_process_probe,
)

__all__ = [
    # Jobs
    "JobContext",
    "JobFacility",
    "LocalJobFacility",
    "MemoryJobQueue",
    "Resumable",
    "get_job_facility",
    "reset_job_facility",
    "fresh_process_budget",
    "set_job_facility",
    # Resources
    "CounterProbe",
    "ProcessProbe",
    "ResourceKind",
    "ResourceProbe",
    "get_process_probe",
    "reset_process_probe",
]
