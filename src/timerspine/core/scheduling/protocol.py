"""Sweep backend protocol.

The timer engine is a poller: a backend only decides WHEN the next sweep
runs, and ``TimerEngine.sweep`` decides what a sweep does. Any object with
``name``, ``start``, ``stop`` and ``health`` can drive the engine.

    AsyncioSchedulerBackend ─┐
    ThreadSchedulerBackend  ─┼── tick() ──►  TimerEngine.sweep()
    APSchedulerBackend      ─┘                 fire due timers, re-arm, publish
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

TickCallback = Callable[[], Awaitable[Any]]


@runtime_checkable
class SchedulerBackend(Protocol):
    """Calls an async tick callback every ``interval_seconds``."""

    name: str

    def start(self, tick_callback: TickCallback, interval_seconds: float = 60.0) -> None:
        """Begin ticking. The first tick comes one interval after ``start``."""
        ...

    def stop(self) -> None:
        """Stop ticking. Safe to call when not started."""
        ...

    def health(self) -> dict[str, Any]:
        """At least ``healthy``, ``backend``, ``tick_count`` and ``last_tick`` (ISO or None)."""
        ...


@dataclass
class BackendHealth:
    """Health snapshot of a backend."""

    healthy: bool
    backend: str
    tick_count: int = 0
    last_tick: datetime | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "backend": self.backend,
            "tick_count": self.tick_count,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            **self.extra,
        }
