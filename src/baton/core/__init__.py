"""Baton core primitives: errors, logging, settings."""

from baton.core.errors import (
    BatonError,
    CheckpointError,
    ConfigError,
    ErrorCategory,
    ErrorContext,
    HandoffLimitExceededError,
    MonitorRegistryFrozenError,
    StateTypeError,
    StepDefinitionError,
    ValidationError,
)
from baton.core.logging import (
    LogContext,
    bind_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from baton.core.settings import BatonSettings, clear_settings_cache, get_settings

__all__ = [
    # Errors
    "BatonError",
    "CheckpointError",
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "HandoffLimitExceededError",
    "MonitorRegistryFrozenError",
    "StateTypeError",
    "StepDefinitionError",
    "ValidationError",
    # Logging
    "LogContext",
    "bind_context",
    "configure_logging",
    "get_logger",
    "unbind_context",
    # Settings
    "BatonSettings",
    "clear_settings_cache",
    "get_settings",
]
