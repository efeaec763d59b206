"""Device signals carried over the event bus.

Two event types cross the seam:

``device.state``      inbound; a device reports its current state
``device.set_state``  outbound; a client asks a device to change state

Both carry the same payload shape::

    {"pluginId": "KAKU", "deviceId": "A1", "state": "on", "origin": "device"}
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from timerspine.core.events import Event

DEVICE_STATE = "device.state"
SET_STATE = "device.set_state"


class SignalSender(str, Enum):
    """Who produced a signal: the device itself or a client command."""

    DEVICE = "device"
    CLIENT = "client"


@dataclass(frozen=True)
class DeviceSignal:
    """A device state report or state request."""

    plugin_id: str
    device_id: str
    state: str
    origin: SignalSender = SignalSender.DEVICE

    def to_payload(self) -> dict[str, str]:
        return {
            "pluginId": self.plugin_id,
            "deviceId": self.device_id,
            "state": self.state,
            "origin": self.origin.value,
        }

    def to_event(self, event_type: str, source: str = "timerspine", timestamp: datetime | None = None) -> Event:
        event = Event(event_type=event_type, source=source, payload=self.to_payload())
        if timestamp is not None:
            event.timestamp = timestamp
        return event

    @classmethod
    def from_event(cls, event: Event) -> DeviceSignal:
        """Build a signal from an event payload.

        Raises:
            KeyError: If a required payload field is missing
            ValueError: If ``origin`` is not a known sender
        """
        payload = event.payload
        return cls(
            plugin_id=str(payload["pluginId"]),
            device_id=str(payload["deviceId"]),
            state=str(payload["state"]),
            origin=SignalSender(payload.get("origin", SignalSender.DEVICE.value)),
        )


def set_state_event(plugin_id: str, device_id: str, state: str) -> Event:
    """Outbound request for a device to switch to ``state`` (origin = client)."""
    return DeviceSignal(plugin_id, device_id, state, SignalSender.CLIENT).to_event(SET_STATE)


def device_state_event(
    plugin_id: str,
    device_id: str,
    state: str,
    origin: SignalSender = SignalSender.DEVICE,
    timestamp: datetime | None = None,
) -> Event:
    """Inbound report that a device is now in ``state`` (at ``timestamp``, default now)."""
    return DeviceSignal(plugin_id, device_id, state, origin).to_event(
        DEVICE_STATE, source=plugin_id, timestamp=timestamp
    )


__all__ = [
    "DEVICE_STATE",
    "SET_STATE",
    "SignalSender",
    "DeviceSignal",
    "set_state_event",
    "device_state_event",
]
