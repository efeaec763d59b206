"""Timer data model.

A ``TimerSpec`` is one validated timer entry from the device file. Its
``time`` field is classified exactly once, at construction, into a
``TimeSourceKind``:

    time = "sunset"           → SOLAR     (one of the 14 solar event names)
    time = "on"               → REACTIVE  (one of the device state names)
    time = "0 30 7 * * 1-5"   → CRON      (anything else)

A ``PendingTimer`` is the engine-owned queue entry for one upcoming firing
of a spec. Recurrence is a property of the spec's kind, never of the entry.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from timerspine.core.errors import InvalidConfigError, MissingConfigError
from timerspine.core.timestamps import generate_ulid

SOLAR_EVENTS: tuple[str, ...] = (
    "sunrise",
    "sunriseEnd",
    "goldenHourEnd",
    "solarNoon",
    "goldenHour",
    "sunsetStart",
    "sunset",
    "dusk",
    "nauticalDusk",
    "night",
    "nadir",
    "nightEnd",
    "nauticalDawn",
    "dawn",
)

DEVICE_STATES: tuple[str, ...] = ("on", "off", "trigger")

# A device reporting one of these states can start a reactive timer
REACTIVE_TRIGGERS: tuple[str, ...] = DEVICE_STATES


class TimeSourceKind(str, Enum):
    """Where a timer's due time comes from."""

    CRON = "cron"
    SOLAR = "solar"
    REACTIVE = "reactive"

    @property
    def recurring(self) -> bool:
        """Cron and solar timers re-arm after firing; reactive timers are one-shot."""
        return self is not TimeSourceKind.REACTIVE

    @classmethod
    def classify(cls, time: str) -> TimeSourceKind:
        if time in SOLAR_EVENTS:
            return cls.SOLAR
        if time in REACTIVE_TRIGGERS:
            return cls.REACTIVE
        return cls.CRON


@dataclass(frozen=True)
class Coordinate:
    """Observer position used for every solar computation."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90 <= self.latitude <= 90:
            raise InvalidConfigError("latitude", self.latitude)
        if not -180 <= self.longitude <= 180:
            raise InvalidConfigError("longitude", self.longitude)


@dataclass(frozen=True)
class TimerSpec:
    """One timer entry for one device.

    Attributes:
        device_id: Device id as known to its plugin (target of set-state events)
        plugin_id: Plugin that owns the device
        time: Cron expression, solar event name, or triggering device state
        state: Target state to request when the timer fires
        enabled: Disabled specs are never scheduled
        offset: Six-field offset "s m h D M Y", applied to solar and reactive times
        device_name: Display id used in logs (defaults to ``device_id``)
        index: Position in the device's timer list
        kind: Derived from ``time``; never set by callers

    Raises:
        MissingConfigError: If an identifying field is empty
        InvalidConfigError: If ``state`` is outside the device state set
    """

    device_id: str
    plugin_id: str
    time: str
    state: str
    enabled: bool = True
    offset: str | None = None
    device_name: str = ""
    index: int = 0
    kind: TimeSourceKind = field(init=False)

    def __post_init__(self) -> None:
        for name in ("device_id", "plugin_id", "time", "state"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise MissingConfigError(name).with_context(device=self.device_name or None)
        if self.state not in DEVICE_STATES:
            raise InvalidConfigError(
                "state",
                self.state,
                f"Invalid state {self.state!r}; expected one of {', '.join(DEVICE_STATES)}",
            ).with_context(device=self.device_name or self.device_id)

        if not self.device_name:
            object.__setattr__(self, "device_name", self.device_id)
        object.__setattr__(self, "time", self.time.strip())
        object.__setattr__(self, "kind", TimeSourceKind.classify(self.time))

    @property
    def key(self) -> str:
        """Display id ``<device>#<index>`` used in logs and error context."""
        return f"{self.device_name}#{self.index}"

    @property
    def label(self) -> str:
        return f"{self.device_name} -> {self.state}"


TimerAction = Callable[["PendingTimer"], None]


@dataclass(eq=False)
class PendingTimer:
    """A queued firing of a ``TimerSpec``.

    Compared by identity: two entries are never "equal" just because they
    share a spec and due time.
    """

    spec: TimerSpec
    due_at: int  # epoch milliseconds
    action: TimerAction
    id: str = field(default_factory=generate_ulid)
    label: str = ""

    def __post_init__(self) -> None:
        if not self.label:
            self.label = self.spec.label

    @property
    def key(self) -> str:
        return self.spec.key

    def remaining_ms(self, now_ms: int) -> int:
        return self.due_at - now_ms


__all__ = [
    "SOLAR_EVENTS",
    "DEVICE_STATES",
    "REACTIVE_TRIGGERS",
    "TimeSourceKind",
    "Coordinate",
    "TimerSpec",
    "TimerAction",
    "PendingTimer",
]
