"""Reactive triggers: timers started by a device's own state change.

A spec such as ``{time: "on", state: "off", offset: "0 10 0 0 0 0"}`` reads
"ten minutes after this device reports *on*, switch it *off*". The trigger
subscribes to ``device.state`` events once and stays armed for the life of
the engine; every qualifying report produces one one-shot firing.

A report qualifies only when all four hold:

    plugin id  == spec.plugin_id
    device id  == spec.device_id
    state      == spec.time
    origin     == device      (a client command echo never triggers)

The due time is the report's own ``timestamp`` plus the offset, not the
time the report was handled.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from timerspine.core.events import Event, EventBus
from timerspine.core.events.device import DEVICE_STATE, DeviceSignal, SignalSender
from timerspine.core.logging import get_logger
from timerspine.core.timestamps import local_now
from timerspine.timers.models import TimerSpec, TimeSourceKind
from timerspine.timers.offset import apply_offset

logger = get_logger(__name__)

ReactiveFireCallback = Callable[[TimerSpec, datetime], None]


class ReactiveTrigger:
    """Long-lived subscription that turns matching device reports into timers."""

    def __init__(
        self,
        spec: TimerSpec,
        on_fire: ReactiveFireCallback,
        clock: Callable[[], datetime] = local_now,
    ) -> None:
        if spec.kind is not TimeSourceKind.REACTIVE:
            raise ValueError(f"Timer {spec.key} is a {spec.kind.value} timer, not reactive")
        self.spec = spec
        self._on_fire = on_fire
        self._clock = clock
        self._bus: EventBus | None = None
        self._subscription_id: str | None = None

    @property
    def armed(self) -> bool:
        return self._subscription_id is not None

    async def arm(self, bus: EventBus) -> str:
        """Subscribe to device state reports. Arming twice is a no-op."""
        if self._subscription_id is None:
            self._bus = bus
            self._subscription_id = await bus.subscribe(DEVICE_STATE, self.handle)
            logger.info(
                "reactive.armed",
                timer=self.spec.key,
                device=self.spec.device_id,
                trigger_state=self.spec.time,
            )
        return self._subscription_id

    async def disarm(self) -> None:
        """Drop the subscription; only used when the engine shuts down."""
        if self._bus is not None and self._subscription_id is not None:
            await self._bus.unsubscribe(self._subscription_id)
        self._subscription_id = None
        self._bus = None

    def matches(self, signal: DeviceSignal) -> bool:
        return (
            signal.plugin_id == self.spec.plugin_id
            and signal.device_id == self.spec.device_id
            and signal.state == self.spec.time
            and signal.origin is SignalSender.DEVICE
        )

    async def handle(self, event: Event) -> None:
        try:
            signal = DeviceSignal.from_event(event)
        except (KeyError, ValueError) as e:
            logger.debug("reactive.unreadable_event", event_id=event.event_id, error=str(e))
            return

        if not self.matches(signal):
            return

        # offsets apply on the local wall clock of the report time
        reported_at = event.timestamp.astimezone(self._clock().tzinfo)
        due = apply_offset(reported_at, self.spec.offset)
        logger.info(
            "reactive.triggered",
            timer=self.spec.key,
            device=self.spec.device_id,
            reported_state=signal.state,
            due=due.isoformat(),
        )
        self._on_fire(self.spec, due)


__all__ = ["ReactiveTrigger", "ReactiveFireCallback"]
