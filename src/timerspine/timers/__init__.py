"""Timer scheduling engine.

    offset     six-field offset arithmetic
    solar      solar event tables and next-occurrence resolution
    cron       next cron occurrence
    reactive   device-state triggered timers
    queue      pending timer queue and expiry sweep
    engine     TimerEngine tying it together
"""

from __future__ import annotations

from .cron import resolve_cron_time, validate_cron_expression
from .engine import EngineHealth, EngineStats, TimerEngine
from .models import (
    DEVICE_STATES,
    REACTIVE_TRIGGERS,
    SOLAR_EVENTS,
    Coordinate,
    PendingTimer,
    TimerSpec,
    TimeSourceKind,
)
from .offset import OffsetFields, apply_offset, parse_offset
from .queue import TimerQueue
from .reactive import ReactiveTrigger
from .solar import compute_solar_events, resolve_solar_time

__all__ = [
    "SOLAR_EVENTS",
    "DEVICE_STATES",
    "REACTIVE_TRIGGERS",
    "TimeSourceKind",
    "Coordinate",
    "TimerSpec",
    "PendingTimer",
    "OffsetFields",
    "parse_offset",
    "apply_offset",
    "compute_solar_events",
    "resolve_solar_time",
    "resolve_cron_time",
    "validate_cron_expression",
    "ReactiveTrigger",
    "TimerQueue",
    "TimerEngine",
    "EngineStats",
    "EngineHealth",
]
