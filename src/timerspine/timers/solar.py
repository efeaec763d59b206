"""Solar event times.

Computes the fourteen named solar events for one calendar day at a
coordinate, and resolves "the next occurrence of <event> + <offset>" with a
single day of look-ahead.

Events follow SunCalc's naming and sun-elevation angles:

    ┌─────────────────┬──────────────────┬───────────┐
    │ morning         │ evening          │ elevation │
    ├─────────────────┼──────────────────┼───────────┤
    │ sunrise         │ sunset           │  -0.833°  │
    │ sunriseEnd      │ sunsetStart      │  -0.3°    │
    │ dawn            │ dusk             │  -6°      │
    │ nauticalDawn    │ nauticalDusk     │  -12°     │
    │ nightEnd        │ night            │  -18°     │
    │ goldenHourEnd   │ goldenHour       │  +6°      │
    └─────────────────┴──────────────────┴───────────┘
    solarNoon = solar transit, nadir = solarNoon - 12h

Events the sun never reaches on a given day (polar summer and winter) are
left out of that day's table.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timedelta, tzinfo

from astral import Observer, SunDirection
from astral.sun import noon, time_at_elevation

from timerspine.core.errors import InvalidConfigError, SolarEventUnavailable
from timerspine.core.logging import get_logger
from timerspine.timers.models import SOLAR_EVENTS, Coordinate
from timerspine.timers.offset import apply_offset

logger = get_logger(__name__)

SolarTable = dict[str, datetime]
SolarTableProvider = Callable[[date, Coordinate, tzinfo], SolarTable]

_ELEVATION_EVENTS: tuple[tuple[float, str, str], ...] = (
    (-0.833, "sunrise", "sunset"),
    (-0.3, "sunriseEnd", "sunsetStart"),
    (-6.0, "dawn", "dusk"),
    (-12.0, "nauticalDawn", "nauticalDusk"),
    (-18.0, "nightEnd", "night"),
    (6.0, "goldenHourEnd", "goldenHour"),
)


def compute_solar_events(day: date, coordinate: Coordinate, tz: tzinfo) -> SolarTable:
    """Solar event table for ``day`` at ``coordinate``, in timezone ``tz``."""
    observer = Observer(latitude=coordinate.latitude, longitude=coordinate.longitude)

    solar_noon = noon(observer, day, tzinfo=tz)
    table: SolarTable = {
        "solarNoon": solar_noon,
        "nadir": solar_noon - timedelta(hours=12),
    }

    for elevation, morning, evening in _ELEVATION_EVENTS:
        for name, direction in ((morning, SunDirection.RISING), (evening, SunDirection.SETTING)):
            try:
                table[name] = time_at_elevation(
                    observer,
                    elevation,
                    day,
                    direction,
                    tzinfo=tz,
                    with_refraction=False,
                )
            except ValueError:
                logger.debug("solar.event_unreachable", solar_event=name, day=day.isoformat())

    return table


def _event_time(
    event_name: str,
    offset: str | None,
    coordinate: Coordinate,
    day: date,
    tz: tzinfo,
    table_provider: SolarTableProvider,
) -> datetime | None:
    table = table_provider(day, coordinate, tz)
    event_time = table.get(event_name)
    if event_time is None:
        return None
    return apply_offset(event_time, offset)


def resolve_solar_time(
    event_name: str,
    offset: str | None,
    coordinate: Coordinate,
    now: datetime,
    table_provider: SolarTableProvider = compute_solar_events,
) -> datetime:
    """Next occurrence of ``event_name`` shifted by ``offset``.

    Today's event is used unless it (after the offset) is already before
    ``now``, in which case the event of the day after is used. There is no
    further look-ahead: a strongly negative offset can still yield a time
    before ``now``, which is returned as-is.

    Raises:
        InvalidConfigError: If ``event_name`` is not a solar event
        SolarEventUnavailable: If the event occurs neither today nor tomorrow
    """
    if event_name not in SOLAR_EVENTS:
        raise InvalidConfigError("time", event_name, f"Unknown solar event: {event_name!r}")

    if now.tzinfo is None:
        now = now.astimezone()
    tz = now.tzinfo

    due = _event_time(event_name, offset, coordinate, now.date(), tz, table_provider)
    if due is None or due < now:
        tomorrow = (now + timedelta(hours=24)).date()
        due = _event_time(event_name, offset, coordinate, tomorrow, tz, table_provider)
        if due is None:
            raise SolarEventUnavailable(event_name, tomorrow)

    return due


__all__ = [
    "SolarTable",
    "SolarTableProvider",
    "compute_solar_events",
    "resolve_solar_time",
]
