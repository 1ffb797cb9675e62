"""
CLI utility helpers — console output.
"""

from __future__ import annotations

from rich.console import Console

console = Console()
err_console = Console(stderr=True)


def safe_marker(safe: bool) -> str:
    """Coloured yes/no cell for rich tables."""
    return "[green]yes[/green]" if safe else "[red]no[/red]"
