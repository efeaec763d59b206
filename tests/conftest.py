"""
Shared pytest fixtures for timer-spine tests.

This module provides:
- A controllable clock for the engine and reactive triggers
- A fixed solar table so solar tests do not depend on astronomy
- An in-memory bus that records everything published on it
- structlog reset between tests so ``capture_logs`` always sees events
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo

import pytest
import structlog

from timerspine.core.events import Event
from timerspine.core.events.memory import InMemoryEventBus
from timerspine.timers.models import Coordinate

TZ = timezone(timedelta(hours=2), "CEST")


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now

    def set(self, when: datetime) -> datetime:
        self.now = when
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock starting at 2026-06-21 10:00 in a fixed +02:00 zone."""
    return FakeClock(datetime(2026, 6, 21, 10, 0, tzinfo=TZ))


# =============================================================================
# Solar table
# =============================================================================


class FakeSolarTable:
    """Same event times every day, with per-day holes for unreachable events."""

    def __init__(self) -> None:
        self.times: dict[str, time] = {
            "nadir": time(1, 30),
            "nightEnd": time(4, 0),
            "nauticalDawn": time(4, 45),
            "dawn": time(5, 30),
            "sunrise": time(6, 0),
            "sunriseEnd": time(6, 5),
            "goldenHourEnd": time(6, 45),
            "solarNoon": time(13, 30),
            "goldenHour": time(17, 15),
            "sunsetStart": time(17, 55),
            "sunset": time(18, 0),
            "dusk": time(18, 30),
            "nauticalDusk": time(19, 15),
            "night": time(20, 0),
        }
        self.missing: dict[date, set[str]] = {}
        self.calls: list[date] = []

    def remove(self, day: date, *events: str) -> None:
        self.missing.setdefault(day, set()).update(events)

    def __call__(self, day: date, coordinate: Coordinate, tz: tzinfo) -> dict[str, datetime]:
        self.calls.append(day)
        holes = self.missing.get(day, set())
        return {
            name: datetime.combine(day, at, tzinfo=tz)
            for name, at in self.times.items()
            if name not in holes
        }


@pytest.fixture
def solar_table() -> FakeSolarTable:
    return FakeSolarTable()


@pytest.fixture
def coordinate() -> Coordinate:
    """Amsterdam."""
    return Coordinate(52.37, 4.89)


# =============================================================================
# Event bus
# =============================================================================


class RecordingBus(InMemoryEventBus):
    """In-memory bus that keeps a list of every published event."""

    def __init__(self) -> None:
        super().__init__()
        self.published: list[Event] = []

    async def publish(self, event: Event) -> None:
        self.published.append(event)
        await super().publish(event)

    def of_type(self, event_type: str) -> list[Event]:
        return [event for event in self.published if event.event_type == event_type]


@pytest.fixture
def bus() -> RecordingBus:
    return RecordingBus()


# =============================================================================
# Logging isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo any ``configure_logging`` call and clear bound context."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
