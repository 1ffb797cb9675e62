"""
CLI: ``baton demo`` — watch an Atom hand off between jobs.

Each item of a Repeat step issues one simulated query against a query
budget. The in-memory job queue gives every job a fresh budget, so the
Atom processes roughly 90% of the budget per job and hands off the rest.
"""

from __future__ import annotations

import typer
from rich.table import Table

from baton.cli.utils import console, err_console


def run_demo(
    items: int = typer.Option(25, "--items", "-n", help="Number of items to process"),
    budget: int = typer.Option(10, "--budget", "-b", help="Queries allowed per job"),
    max_handoffs: int = typer.Option(10, "--max-handoffs", help="Hand-off budget"),
) -> None:
    """Run a Repeat step under a query budget and report the hand-offs."""
    from baton.core.errors import HandoffLimitExceededError
    from baton.execution.jobs import MemoryJobQueue
    from baton.execution.resources import CounterProbe, ResourceKind
    from baton.orchestration import Atom, MonitorRegistry, RepeatStep, resource_monitors

    probe = CounterProbe(ceilings={ResourceKind.QUERIES: budget})
    queue = MemoryJobQueue(before_run=lambda context: probe.reset())
    registry = MonitorRegistry(resource_monitors(probe, [ResourceKind.QUERIES]))

    def process(values):
        probe.record(ResourceKind.QUERIES)
        return {"processed": values.get("processed", 0) + 1}

    atom = Atom(
        RepeatStep(items, body=process, item_key="index"),
        name="demo",
        monitors=registry,
        job_facility=queue,
        max_handoffs=max_handoffs,
    )
    queue.submit(atom)
    jobs = queue.drain()

    table = Table(title="baton demo")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Items processed", str(atom.state.get("processed", 0)))
    table.add_row("Jobs run", str(len(jobs)))
    table.add_row("Hand-offs", str(atom.handoffs))
    table.add_row("Status", atom.status.value)
    console.print(table)

    for job_id in queue.failed:
        error = queue.get_exception(job_id)
        if isinstance(error, HandoffLimitExceededError):
            err_console.print(f"[red]{error.message}[/red]")
            raise typer.Exit(code=1)
