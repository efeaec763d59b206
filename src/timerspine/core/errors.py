"""
Structured error types for timer-spine.

Every failure the timer engine can run into is one of a handful of kinds:
a bad timer entry in the device file, a cron expression that does not parse,
an offset with the wrong number of fields, a queue entry that cannot be
scheduled, or a solar event the sun never reaches. Each kind is a typed
subclass of ``TimerSpineError`` carrying a category and structured context so
the engine can log it with the device and timer it belongs to, then move on.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                     TimerSpineError                          │
        │            (category, context, cause, to_dict)               │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  ConfigurationError            ScheduleError                 │
        │  (CONFIG)                      (SCHEDULE)                    │
        │       │                             │                        │
        │  MissingConfigError            InvalidCronExpression         │
        │  InvalidConfigError            MalformedOffset               │
        │                                SolarEventUnavailable (SOLAR) │
        │                                InvalidQueueEntry (QUEUE)     │
        └─────────────────────────────────────────────────────────────┘

Handling policy:
    - ``ConfigurationError``: caught per timer spec at startup, spec skipped
    - ``InvalidCronExpression``: fatal to that one timer, logged
    - ``MalformedOffset``: logged only, parsing degrades field by field
    - ``InvalidQueueEntry``: rejected at ``TimerQueue.insert``, logged
    - ``SolarEventUnavailable``: that timer (or that re-arm) is dropped

Usage:
    from timerspine.core.errors import InvalidCronExpression

    try:
        resolve_cron_time(expression, now)
    except InvalidCronExpression as e:
        logger.error("timer.invalid_cron", **e.to_dict())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    CONFIG = "CONFIG"
    SCHEDULE = "SCHEDULE"
    SOLAR = "SOLAR"
    QUEUE = "QUEUE"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured context attached to a ``TimerSpineError``.

    Attributes:
        device: Device display id the failing timer belongs to
        plugin: Plugin id of the device
        timer: Timer key (``<device>#<index>``)
        expression: The offending expression (cron string, offset, event name)
        metadata: Additional key-value pairs
    """

    device: str | None = None
    plugin: str | None = None
    timer: str | None = None
    expression: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["device", "plugin", "timer", "expression"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class TimerSpineError(Exception):
    """
    Base exception for all timer-spine errors.

    Subclasses set ``default_category``; instances carry the message, the
    category, an ``ErrorContext`` and an optional chained ``cause``.

    Examples:
        >>> error = TimerSpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> error = InvalidCronExpression("bad").with_context(timer="lamp#0")
        >>> error.context.timer
        'lamp#0'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> TimerSpineError:
        """
        Add context to this error (fluent API).

        Usage:
            raise InvalidConfigError("state", "dim").with_context(
                device="living-room-lamp", timer="living-room-lamp#2"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
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


class ConfigurationError(TimerSpineError):
    """
    Configuration error.

    Raised for a timer spec or device file that cannot be used as written.
    The engine skips the offending spec; sibling specs keep going.
    """

    default_category = ErrorCategory.CONFIG


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


class InvalidConfigError(ConfigurationError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# SCHEDULING ERRORS
# =============================================================================


class ScheduleError(TimerSpineError):
    """Timer resolution or scheduling error."""

    default_category = ErrorCategory.SCHEDULE


class InvalidCronExpression(ScheduleError):
    """Cron expression could not be parsed."""

    def __init__(self, expression: str, message: str | None = None, **kwargs: Any):
        self.expression = expression
        super().__init__(message or f"Invalid cron expression: {expression!r}", **kwargs)
        self.context.expression = expression


class MalformedOffset(ScheduleError):
    """Offset string does not have exactly six whitespace-separated fields."""

    def __init__(self, offset: str, field_count: int):
        self.offset = offset
        self.field_count = field_count
        super().__init__(f"Offset {offset!r} has {field_count} field(s), expected 6")
        self.context.expression = offset


class SolarEventUnavailable(ScheduleError):
    """The sun does not reach the elevation of the requested event on that day."""

    default_category = ErrorCategory.SOLAR

    def __init__(self, event_name: str, day: Any, message: str | None = None):
        self.event_name = event_name
        self.day = day
        super().__init__(message or f"Solar event {event_name!r} does not occur on {day}")
        self.context.expression = event_name


class InvalidQueueEntry(ScheduleError):
    """A pending timer was refused by the queue."""

    default_category = ErrorCategory.QUEUE


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "TimerSpineError",
    "ConfigurationError",
    "MissingConfigError",
    "InvalidConfigError",
    "ScheduleError",
    "InvalidCronExpression",
    "MalformedOffset",
    "SolarEventUnavailable",
    "InvalidQueueEntry",
]
