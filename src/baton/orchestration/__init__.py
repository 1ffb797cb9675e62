"""
Baton Orchestration — resumable step trees under resource budgets.

WHY
───
A host that kills any job crossing a CPU / I/O / memory budget cannot
run a long computation in one go. Orchestration splits the computation
into a tree of small steps and runs it one unit at a time inside an
:class:`Atom`, which hands off to a fresh job whenever a monitor says
the budget is nearly spent.

ARCHITECTURE
────────────
::

    Atom (engine)
      ├── root: CompositeStep
      │     ├── SimpleStep(compute)       ─ one-shot
      │     ├── CompositeStep(...)        ─ ordered children
      │     └── ForEachStep / RangeStep / RepeatStep
      ├── State                           ─ shared values + interruption bookkeeping
      └── MonitorRegistry                 ─ ordered budget monitors

    Compute / FunctionCompute             ─ user business logic
    Monitor / ThresholdMonitor / ResourceMonitor

MODULE MAP (recommended reading order)
──────────────────────────────────────
1. state.py             ─ State container
2. compute.py           ─ Compute protocol + function adapter
3. steps.py             ─ Step variants + as_step coercion
4. monitors.py          ─ Monitor protocol + 90% threshold template
5. monitor_registry.py  ─ process-wide monitor list
6. atom.py              ─ the execute / monitor / hand-off engine

Example::

    from baton.orchestration import Atom, RangeStep

    def bump(values):
        return {"count": values.get("count", 0) + 1}

    atom = Atom(name="demo").chain(RangeStep("i", 1, 3, body=bump))
    atom.start()
"""

from baton.orchestration.atom import Atom, AtomStatus
from baton.orchestration.compute import Compute, ComputeFn, FunctionCompute
from baton.orchestration.monitor_registry import (
    MonitorRegistry,
    clear_monitor_registry,
    get_monitor_registry,
    install_resource_monitors,
    register_monitor,
)
from baton.orchestration.monitors import (
    SAFETY_MARGIN,
    Monitor,
    ResourceMonitor,
    ThresholdMonitor,
    resource_monitors,
)
from baton.orchestration.state import State
from baton.orchestration.steps import (
    CompositeStep,
    ForEachStep,
    RangeStep,
    RepeatStep,
    SimpleStep,
    Step,
    as_step,
)

__all__ = [
    # Engine
    "Atom",
    "AtomStatus",
    # State
    "State",
    # Computes
    "Compute",
    "ComputeFn",
    "FunctionCompute",
    # Steps
    "Step",
    "SimpleStep",
    "CompositeStep",
    "ForEachStep",
    "RangeStep",
    "RepeatStep",
    "as_step",
    # Monitors
    "SAFETY_MARGIN",
    "Monitor",
    "ThresholdMonitor",
    "ResourceMonitor",
    "resource_monitors",
    "MonitorRegistry",
    "get_monitor_registry",
    "register_monitor",
    "install_resource_monitors",
    "clear_monitor_registry",
]
