"""
CLI layer for baton.

A Typer application for inspecting configuration and resource budgets and
for running a demonstration Atom that hands off between jobs. It only
handles terminal transport; the engine lives in ``baton.orchestration``.

Entry point::

    baton --help
"""

from baton.cli.app import app

__all__ = ["app"]
