"""
Baton - resumable step execution under externally enforced resource budgets.

Packages:
- baton.core: errors, structured logging, settings
- baton.orchestration: State, steps, monitors, the Atom engine
- baton.execution: job facilities and resource probes (host collaborators)
"""

__version__ = "0.1.0"

from baton.core import *  # noqa
from baton.execution import (  # noqa: F401
    CounterProbe,
    LocalJobFacility,
    MemoryJobQueue,
    ProcessProbe,
    ResourceKind,
)
from baton.orchestration import *  # noqa
