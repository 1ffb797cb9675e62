"""Centralized settings for baton.

Manifesto:
    The engine has exactly one process-wide switch that changes control
    flow (synchronous mode) plus a handful of defaults: the hand-off budget,
    which job facility backs ``Atom.start()``, and the resource ceilings the
    process probe reports. They are all read from ``BATON_*`` environment
    variables (or a ``.env`` file) and validated once.

    - **Pydantic validation:** Type-checked at startup, not at first use
    - **Environment-driven:** ``BATON_SYNC_MODE=true`` for tests
    - **Cached:** ``get_settings()`` returns the same object until
      ``clear_settings_cache()`` is called

Examples:
    >>> from baton.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.max_handoffs
    10

Tags:
    settings, configuration, pydantic, environment, baton

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BatonSettings(BaseSettings):
    """Baton configuration.

    All fields can be set via ``BATON_*`` environment variables (e.g.
    ``BATON_MAX_HANDOFFS=25``) or through a ``.env`` file.

    Fields
    ──────
    sync_mode            : Run ``Atom.start()`` inline instead of submitting
    max_handoffs         : Default hand-off budget for new Atoms
    job_backend          : Default job facility (memory queue or thread pool)
    local_max_workers    : Thread pool size for the local job facility
    job_history_limit    : Finished jobs a facility remembers for status lookups
    log_level            : Structlog log level
    log_json             : JSON logs (None = auto-detect from tty)
    service_name         : ``service.name`` field on every log event
    *_limit              : Ceilings reported by the process resource probe
    """

    model_config = SettingsConfigDict(
        env_prefix="BATON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Engine ───────────────────────────────────────────────────
    sync_mode: bool = False
    max_handoffs: int = 10

    # ── Job facility ─────────────────────────────────────────────
    job_backend: Literal["memory", "local"] = "memory"
    local_max_workers: int = Field(default=1, ge=1)
    job_history_limit: int = Field(default=1000, ge=1)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None
    service_name: str = "baton"

    # ── Resource ceilings (process probe) ────────────────────────
    cpu_time_limit_ms: int = Field(default=10_000, ge=0)
    memory_limit_kb: int = Field(default=6 * 1024 * 1024, ge=0)
    io_operation_limit: int = Field(default=100_000, ge=0)
    concurrent_job_limit: int = Field(default=50, ge=0)


_settings_cache: dict[str, BatonSettings] = {}


def get_settings(*, _force_reload: bool = False) -> BatonSettings:
    """Load, validate, and cache a :class:`BatonSettings` instance."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = BatonSettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "BatonSettings",
    "get_settings",
    "clear_settings_cache",
]
