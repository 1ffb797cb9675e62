"""
CLI: ``baton monitors`` — current resource usage against the hand-off threshold.
"""

from __future__ import annotations

import typer
from rich.table import Table

from baton.cli.utils import console, safe_marker


def show_monitors(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Read the process probe and show each resource monitor's verdict."""
    from baton.execution.resources import get_process_probe
    from baton.orchestration.monitors import resource_monitors
    from baton.orchestration.state import State

    probe = get_process_probe()
    state = State()
    rows = [
        {
            "resource": monitor.kind.value,
            "current": monitor.current(state),
            "ceiling": monitor.maximum(state),
            "safe": monitor.is_safe(state),
        }
        for monitor in resource_monitors(probe)
    ]

    if json_output:
        console.print_json(data=rows)
        return

    table = Table(title="Resource monitors (process probe)")
    table.add_column("Resource")
    table.add_column("Current", justify="right")
    table.add_column("Ceiling", justify="right")
    table.add_column("Safe")
    for row in rows:
        table.add_row(row["resource"], str(row["current"]), str(row["ceiling"]), safe_marker(row["safe"]))
    console.print(table)
