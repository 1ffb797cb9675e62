"""
Root Typer application for the baton CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

app = Typer(
    name="baton",
    help="baton — resumable step execution under resource budgets.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        from baton import __version__

        typer.echo(f"baton {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """baton CLI — inspect settings and budgets, run the hand-off demo."""
    from baton.core.logging import configure_from_settings

    configure_from_settings()


# ── Sub-command registration ─────────────────────────────────────────────

from baton.cli.config import app as config_app  # noqa: E402
from baton.cli.demo import run_demo  # noqa: E402
from baton.cli.monitors import show_monitors  # noqa: E402

app.add_typer(config_app, name="config", help="Configuration inspection.")
app.command("monitors", help="Resource usage against the hand-off threshold.")(show_monitors)
app.command("demo", help="Run an Atom that hands off between jobs.")(run_demo)
