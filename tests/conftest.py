"""
Shared pytest fixtures and configuration for baton tests.

This module provides:
- Monitor registry / settings / job facility cleanup for test isolation
- Synchronous-mode toggling
- A fresh in-memory job queue

Compute and monitor helpers live in ``tests/_support/computes.py``.
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure baton package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from baton.core.settings import clear_settings_cache
from baton.execution.jobs import MemoryJobQueue, reset_job_facility
from baton.execution.resources import reset_process_probe
from baton.orchestration import clear_monitor_registry


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_process_state(monkeypatch) -> Generator[None, None, None]:
    """
    Reset every process-wide singleton before and after each test.

    Monitor registry, cached settings, the default job facility and the
    default process probe are all global; no test may leak them into another.
    """
    for name in ("BATON_SYNC_MODE", "BATON_MAX_HANDOFFS", "BATON_JOB_BACKEND"):
        monkeypatch.delenv(name, raising=False)
    clear_monitor_registry()
    clear_settings_cache()
    reset_job_facility()
    reset_process_probe()
    yield
    clear_monitor_registry()
    clear_settings_cache()
    reset_job_facility()
    reset_process_probe()


@pytest.fixture
def sync_mode(monkeypatch) -> None:
    """Run ``Atom.start()`` inline."""
    monkeypatch.setenv("BATON_SYNC_MODE", "true")
    clear_settings_cache()


@pytest.fixture
def job_queue() -> MemoryJobQueue:
    return MemoryJobQueue()
