"""
Structured error types for the baton engine.

Provides a small hierarchy of typed errors with metadata for categorisation,
logging and root cause analysis through error chaining.

Instead of generic exceptions that lose context, BatonError and its
subclasses carry:
- **Category:** What kind of error (config, validation, orchestration, ...)
- **Retryable:** Whether the host scheduler may run the job again
- **Context:** Structured metadata (atom, step, hand-off number, custom fields)
- **Cause:** Chained underlying exception

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different concerns
    - **Explicit Retry Semantics:** A fatal hand-off overflow is never retried
    - **Rich Context:** Errors carry metadata for structured logs
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        BatonError                                │
        │  (category, retryable, context, cause)                           │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  ConfigError                     ValidationError                 │
        │  (CONFIG, never retryable)       (VALIDATION)                    │
        │       │                               │                          │
        │  HandoffLimitExceededError       StateTypeError                  │
        │  StepDefinitionError             CheckpointError                 │
        │  MonitorRegistryFrozenError                                      │
        └─────────────────────────────────────────────────────────────────┘

    Errors raised by user computes are deliberately NOT part of this
    hierarchy: the engine lets them propagate unchanged.

Examples:
    >>> error = HandoffLimitExceededError(handoffs=11, max_handoffs=10)
    >>> error.retryable
    False
    >>> error.category
    <ErrorCategory.CONFIG: 'CONFIG'>

    >>> error = StateTypeError("count", expected=int, actual="three")
    >>> error.to_dict()["field"]
    'count'

Tags:
    error-handling, exception-hierarchy, error-context, baton, observability

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    # Configuration errors (never retryable)
    CONFIG = "CONFIG"  # Hand-off budget, step definition, registry lifecycle

    # Data errors
    VALIDATION = "VALIDATION"  # State type mismatch, checkpoint shape

    # Internal errors
    INTERNAL = "INTERNAL"  # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata context for errors.

    Only non-None fields end up in ``to_dict()``; anything that does not have
    a dedicated field goes into ``metadata``.

    Attributes:
        atom: Name of the Atom (engine instance)
        atom_id: Unique id of the Atom
        step: Step description, when the error relates to one
        handoff: Interruption count at the time of the error
        metadata: Additional key-value pairs
    """

    atom: str | None = None
    atom_id: str | None = None
    step: str | None = None
    handoff: int | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["atom", "atom_id", "step", "handoff"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class BatonError(Exception):
    """
    Base exception for all baton errors.

    Subclasses set ``default_category`` and ``default_retryable`` to give
    sensible defaults for their concern.
    """

    # Default category for this error type
    default_category: ErrorCategory = ErrorCategory.INTERNAL

    # Default retryable setting
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> BatonError:
        """
        Add context to this error (fluent API).

        Usage:
            raise CheckpointError("Shape mismatch").with_context(
                atom="nightly.rollup",
                step="CompositeStep[3]",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(BatonError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class HandoffLimitExceededError(ConfigError):
    """
    The Atom was interrupted more times than its hand-off budget allows.

    This is the only error the engine itself raises. It is terminal: the job
    facility records it on its failure channel and nothing resubmits the Atom.
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        handoffs: int,
        max_handoffs: int,
        **kwargs: Any,
    ):
        super().__init__(
            message
            or f"Hand-off limit exceeded: interrupted {handoffs} times, maximum is {max_handoffs}",
            **kwargs,
        )
        self.handoffs = handoffs
        self.max_handoffs = max_handoffs
        self.context.handoff = handoffs

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["handoffs"] = self.handoffs
        result["max_handoffs"] = self.max_handoffs
        return result


class StepDefinitionError(ConfigError):
    """A step tree was assembled from something that is not a step."""

    pass


class MonitorRegistryFrozenError(ConfigError):
    """A monitor was registered after the registry finished initialising."""

    pass


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(BatonError):
    """
    Data validation error.

    Never retryable - data must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class StateTypeError(ValidationError):
    """A state value does not have the type the caller asked for."""

    def __init__(self, key: str, *, expected: type | tuple[type, ...], actual: Any, **kwargs: Any):
        if isinstance(expected, tuple):
            expected_name = " | ".join(t.__name__ for t in expected)
        else:
            expected_name = expected.__name__
        super().__init__(
            f"State key '{key}' holds {type(actual).__name__}, expected {expected_name}",
            field=key,
            value=actual,
            constraint=expected_name,
            **kwargs,
        )
        self.key = key
        self.expected = expected
        self.actual = actual


class CheckpointError(ValidationError):
    """A checkpoint does not match the step tree it is restored onto."""

    pass


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "BatonError",
    "ConfigError",
    "HandoffLimitExceededError",
    "StepDefinitionError",
    "MonitorRegistryFrozenError",
    "ValidationError",
    "StateTypeError",
    "CheckpointError",
]
