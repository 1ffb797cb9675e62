"""
Baton Logging - structured logging for the engine and its host adapters.

Manifesto:
    A hand-off is invisible to the caller: the only trace of an Atom being
    interrupted, resubmitted and resumed is what it logs. Every cycle
    therefore emits structured events that can be correlated by atom_id.

    - **Structures:** JSON output for log aggregation
    - **Correlates:** atom_id / atom name propagation through contextvars
    - **Flexes:** Console output for development, JSON for production

Architecture:
    ::

        configure_logging(level="INFO", json_format=True, service="baton")
            ↓
        structlog processor chain:
          1. TimeStamper (iso)
          2. merge_contextvars
          3. add_log_level / add_logger_name
          4. service metadata
          5. ECS field names (JSON only)
          6. JSONRenderer (or ConsoleRenderer for dev)
            ↓
        stdlib "baton" logger → one stdout handler

        logger = get_logger(__name__)
        logger.warning("atom.monitor.unsafe", monitor="cpu_time", current=9100)

    ``LogContext`` binds keys for the duration of a block and restores
    whatever those keys held before, so Atoms driven from inside another
    Atom's cycle keep their own ``atom_id``.

Examples:
    >>> from baton.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", service="nightly-rollup")
    >>> logger = get_logger(__name__)
    >>> with LogContext(atom_id="abc123"):
    ...     logger.info("atom.cycle.start")

Tags:
    logging, structlog, observability, ecs, json-logging, baton

Doc-Types:
    - API Reference
    - Observability Guide
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_ECS_RENAMES = {"timestamp": "@timestamp", "level": "log.level"}

_handler: logging.Handler | None = None


def _service_metadata(service: str) -> Processor:
    """Processor stamping ``service.name`` on every event."""

    def add_service(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("service.name", service)
        return event_dict

    return add_service


def _ecs_field_names(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Rename structlog's default keys to their Elasticsearch/ECS names."""
    for key, ecs_key in _ECS_RENAMES.items():
        if key in event_dict:
            event_dict[ecs_key] = event_dict.pop(key)
    return event_dict


def _build_processors(service: str, json_format: bool) -> list[Processor]:
    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _service_metadata(service),
    ]
    if json_format:
        processors.append(_ecs_field_names)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    return processors


def _install_handler(level: int) -> None:
    """Route the ``baton`` stdlib logger to stdout exactly once."""
    global _handler
    baton_logger = logging.getLogger("baton")
    if _handler is not None:
        baton_logger.removeHandler(_handler)
    _handler = logging.StreamHandler(sys.stdout)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    baton_logger.addHandler(_handler)
    baton_logger.setLevel(level)


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "baton",
) -> None:
    """Configure structured logging for the engine.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Value of the ``service.name`` field
    """
    if json_format is None:
        json_format = not sys.stdout.isatty()
    numeric_level = getattr(logging, level.upper())

    structlog.configure(
        processors=_build_processors(service, json_format),
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _install_handler(numeric_level)


def configure_from_settings() -> None:
    """Configure logging from ``BATON_LOG_*`` settings."""
    from baton.core.settings import get_settings

    settings = get_settings()
    configure_logging(
        level=settings.log_level,
        json_format=settings.log_json,
        service=settings.service_name,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (usually ``get_logger(__name__)``)."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs of this context.

    Example:
        bind_context(atom="nightly.rollup", atom_id="abc123")
        logger.info("atom.cycle.start")  # Includes atom and atom_id
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    structlog.contextvars.unbind_contextvars(*keys)


class LogContext:
    """Context manager binding log keys for the duration of a block.

    On exit each key goes back to the value it had on entry (or is unbound
    if it had none).

    Example:
        with LogContext(atom="nightly.rollup", atom_id="abc123"):
            logger.info("atom.cycle.start")
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self._tokens = dict(structlog.contextvars.bind_contextvars(**self._context))
        return self

    def __exit__(self, *args) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = {}


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "LogContext",
]
