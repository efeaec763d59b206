"""Timer engine - registers timer specs, sweeps the queue, re-arms.

┌──────────────────────────────────────────────────────────────────────────────┐
│  TIMER ENGINE                                                                 │
│                                                                               │
│   start(specs)                                                                │
│     ├── register(spec) for each spec        (errors isolated per spec)       │
│     │     ├── disabled  → logged, skipped                                    │
│     │     ├── CRON      → resolve_cron_time   → queue.insert                 │
│     │     ├── SOLAR     → resolve_solar_time  → queue.insert                 │
│     │     └── REACTIVE  → ReactiveTrigger (armed on the bus)                 │
│     ├── sweep()                              (overdue timers fire at once)   │
│     └── backend.start(sweep, interval)                                       │
│                                                                               │
│   sweep()                                                                     │
│     ├── queue.sweep_expired(now)                                             │
│     │     └── _fire(timer)                                                    │
│     │           ├── outbox ← device.set_state                                │
│     │           └── recurring? resolve_next(spec) → queue.insert             │
│     └── bus.publish(outbox)                                                  │
│                                                                               │
│  Per-spec lifecycle:                                                          │
│     CRON / SOLAR   Scheduled → Fired → Scheduled → ...   (Terminated if the  │
│                    next occurrence cannot be resolved)                        │
│     REACTIVE       Armed forever; each qualifying report → one-shot timer    │
└──────────────────────────────────────────────────────────────────────────────┘

Fire times are honored to within one sweep interval (default 60 s).
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from timerspine.core.errors import MissingConfigError, TimerSpineError
from timerspine.core.events import Event, EventBus
from timerspine.core.events.device import set_state_event
from timerspine.core.logging import LogContext, get_logger
from timerspine.core.scheduling import AsyncioSchedulerBackend, BackendHealth, SchedulerBackend
from timerspine.core.settings import DEFAULT_SWEEP_INTERVAL_MS
from timerspine.core.timestamps import format_remaining, from_epoch_ms, local_now, to_epoch_ms
from timerspine.timers.cron import resolve_cron_time
from timerspine.timers.models import Coordinate, PendingTimer, TimerSpec, TimeSourceKind
from timerspine.timers.offset import apply_offset
from timerspine.timers.queue import TimerQueue
from timerspine.timers.reactive import ReactiveTrigger
from timerspine.timers.solar import SolarTableProvider, compute_solar_events, resolve_solar_time

logger = get_logger(__name__)

Clock = Callable[[], datetime]

# Re-arming resolves from just after the fired occurrence
_REARM_STEP = timedelta(seconds=1)


@dataclass
class EngineStats:
    """Counters for the timer engine."""

    tick_count: int = 0
    timers_scheduled: int = 0
    timers_fired: int = 0
    timers_rearmed: int = 0
    timers_failed: int = 0
    specs_disabled: int = 0
    specs_rejected: int = 0
    last_tick: datetime | None = None
    last_error: str | None = None


@dataclass
class EngineHealth:
    """Health status for the timer engine."""

    healthy: bool
    backend: BackendHealth | dict
    pending: int = 0
    reactive_armed: int = 0
    next_due: datetime | None = None
    stats: EngineStats = field(default_factory=EngineStats)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "backend": self.backend.to_dict() if isinstance(self.backend, BackendHealth) else self.backend,
            "pending": self.pending,
            "reactive_armed": self.reactive_armed,
            "next_due": self.next_due.isoformat() if self.next_due else None,
            "stats": {
                "tick_count": self.stats.tick_count,
                "timers_scheduled": self.stats.timers_scheduled,
                "timers_fired": self.stats.timers_fired,
                "timers_rearmed": self.stats.timers_rearmed,
                "timers_failed": self.stats.timers_failed,
                "specs_disabled": self.stats.specs_disabled,
                "specs_rejected": self.stats.specs_rejected,
            },
        }


class TimerEngine:
    """Schedules device state changes from cron, solar and reactive timers.

    Example:
        >>> bus = InMemoryEventBus()
        >>> engine = TimerEngine(bus, Coordinate(52.37, 4.89))
        >>> await engine.start(specs)
        >>> # ... device.set_state events appear on the bus ...
        >>> await engine.stop()
    """

    def __init__(
        self,
        bus: EventBus,
        coordinate: Coordinate | None = None,
        *,
        backend: SchedulerBackend | None = None,
        queue: TimerQueue | None = None,
        clock: Clock = local_now,
        sweep_interval_ms: int = DEFAULT_SWEEP_INTERVAL_MS,
        solar_table_provider: SolarTableProvider = compute_solar_events,
    ) -> None:
        if sweep_interval_ms <= 0:
            raise ValueError(f"sweep_interval_ms must be positive, got {sweep_interval_ms}")
        self.bus = bus
        self.coordinate = coordinate
        self.backend = backend or AsyncioSchedulerBackend()
        self.queue = queue if queue is not None else TimerQueue()
        self.sweep_interval_ms = sweep_interval_ms

        self._clock = clock
        self._solar_table_provider = solar_table_provider
        self._triggers: list[ReactiveTrigger] = []
        self._outbox: list[Event] = []
        self._outbox_lock = threading.Lock()
        self._stats = EngineStats()
        self._running = False

    # === Lifecycle ===

    async def start(self, specs: Iterable[TimerSpec] = ()) -> None:
        """Register ``specs``, run one sweep right away, then start ticking."""
        if self._running:
            logger.warning("engine.already_running")
            return

        for spec in specs:
            self.try_register(spec)

        for trigger in self._triggers:
            await trigger.arm(self.bus)

        self._running = True
        await self.sweep()

        logger.info(
            "engine.started",
            backend=self.backend.name,
            interval_ms=self.sweep_interval_ms,
            pending=len(self.queue),
            reactive=len(self._triggers),
        )
        self.backend.start(self.sweep, self.sweep_interval_ms / 1000)

    async def stop(self) -> None:
        """Stop ticking, disarm reactive triggers and discard the queue."""
        if not self._running:
            return
        self.backend.stop()
        for trigger in self._triggers:
            await trigger.disarm()
        dropped = self.queue.clear()
        self._running = False
        logger.info("engine.stopped", discarded=dropped)

    @property
    def is_running(self) -> bool:
        return self._running

    # === Registration ===

    def try_register(self, spec: TimerSpec) -> PendingTimer | None:
        """``register`` with errors logged instead of raised."""
        try:
            return self.register(spec)
        except TimerSpineError as e:
            self._stats.specs_rejected += 1
            e.with_context(device=spec.device_name, plugin=spec.plugin_id, timer=spec.key)
            logger.error("timer.rejected", **e.to_dict())
            return None
        except Exception as e:
            self._stats.specs_rejected += 1
            self._stats.last_error = str(e)
            logger.exception(
                "timer.rejected",
                error_type=type(e).__name__,
                message=str(e),
                context={"device": spec.device_name, "plugin": spec.plugin_id, "timer": spec.key},
            )
            return None

    def register(self, spec: TimerSpec) -> PendingTimer | None:
        """Schedule the first occurrence of ``spec``.

        Disabled specs are logged and skipped. Reactive specs get a trigger
        instead of a queue entry; it is armed on ``start`` (or immediately,
        when the engine is already running, via ``add``).

        Returns:
            The queued timer, or None for disabled and reactive specs

        Raises:
            ConfigurationError: Solar timer without a coordinate, bad event name
            InvalidCronExpression: Cron timer that does not parse
            SolarEventUnavailable: Solar event that occurs neither today nor tomorrow
        """
        if not spec.enabled:
            self._stats.specs_disabled += 1
            logger.warning(
                "timer.disabled",
                kind=spec.kind.value,
                device=spec.device_name,
                state=spec.state,
                time=spec.time,
            )
            return None

        if spec.kind is TimeSourceKind.REACTIVE:
            self._triggers.append(ReactiveTrigger(spec, self._on_reactive, clock=self._clock))
            logger.info(
                "timer.enabled",
                kind=spec.kind.value,
                device=spec.device_name,
                state=spec.state,
                trigger_state=spec.time,
                offset=spec.offset,
            )
            return None

        if spec.kind is TimeSourceKind.CRON and spec.offset:
            logger.warning("timer.offset_ignored", timer=spec.key, offset=spec.offset)

        due = self.resolve_next(spec, self._clock())
        timer = self._schedule(spec, due)
        if timer is not None:
            logger.info(
                "timer.enabled",
                kind=spec.kind.value,
                device=spec.device_name,
                state=spec.state,
                time=spec.time,
                due=due.isoformat(),
            )
        return timer

    async def add(self, spec: TimerSpec) -> PendingTimer | None:
        """Register a spec on a running engine, arming it if it is reactive."""
        timer = self.register(spec)
        if self._running and spec.enabled and spec.kind is TimeSourceKind.REACTIVE:
            await self._triggers[-1].arm(self.bus)
        return timer

    def resolve_next(self, spec: TimerSpec, now: datetime) -> datetime:
        """Next due time of ``spec`` relative to ``now``."""
        if spec.kind is TimeSourceKind.CRON:
            return resolve_cron_time(spec.time, now)
        if spec.kind is TimeSourceKind.SOLAR:
            if self.coordinate is None:
                raise MissingConfigError(
                    "location", "Solar timers need a latitude and longitude"
                )
            return resolve_solar_time(
                spec.time,
                spec.offset,
                self.coordinate,
                now,
                table_provider=self._solar_table_provider,
            )
        return apply_offset(now, spec.offset)

    def _schedule(self, spec: TimerSpec, due: datetime) -> PendingTimer | None:
        timer = PendingTimer(spec=spec, due_at=to_epoch_ms(due), action=self._fire)
        if not self.queue.insert(timer):
            return None
        self._stats.timers_scheduled += 1
        return timer

    def _on_reactive(self, spec: TimerSpec, due: datetime) -> None:
        if self.queue.has_pending(spec):
            logger.info("timer.reactive_ignored", timer=spec.key, reason="already pending")
            return
        self._schedule(spec, due)

    # === Sweep ===

    def _fire(self, timer: PendingTimer) -> None:
        spec = timer.spec
        logger.info(
            "timer.fired",
            kind=spec.kind.value,
            device=spec.device_name,
            state=spec.state,
            timer_id=timer.id,
        )
        with self._outbox_lock:
            self._outbox.append(set_state_event(spec.plugin_id, spec.device_id, spec.state))
        self._stats.timers_fired += 1

        if not spec.kind.recurring:
            return

        now = self._clock()
        reference = max(now, from_epoch_ms(timer.due_at, now.tzinfo) + _REARM_STEP)
        try:
            due = self.resolve_next(spec, reference)
        except TimerSpineError as e:
            self._stats.timers_failed += 1
            self._stats.last_error = e.message
            e.with_context(device=spec.device_name, plugin=spec.plugin_id, timer=spec.key)
            logger.error("timer.terminated", **e.to_dict())
            return
        except Exception as e:
            self._stats.timers_failed += 1
            self._stats.last_error = str(e)
            logger.exception("timer.terminated", error_type=type(e).__name__, timer=spec.key)
            return

        if self._schedule(spec, due) is not None:
            self._stats.timers_rearmed += 1
            logger.info("timer.rearmed", timer=spec.key, due=due.isoformat())

    async def sweep(self) -> list[PendingTimer]:
        """Fire every due timer and publish the resulting events.

        Returns:
            The timers fired by this sweep
        """
        self._stats.tick_count += 1
        now = self._clock()
        self._stats.last_tick = now
        now_ms = to_epoch_ms(now)

        with LogContext(tick=self._stats.tick_count):
            fired = list(self.queue.sweep_expired(now_ms))

            with self._outbox_lock:
                outbox, self._outbox = self._outbox, []
            for event in outbox:
                try:
                    await self.bus.publish(event)
                except Exception as e:
                    self._stats.last_error = str(e)
                    logger.exception("engine.publish_failed", event_type=event.event_type)

            for timer in self.queue.pending():
                logger.debug(
                    "sweep.pending",
                    timer=timer.key,
                    label=timer.label,
                    remaining=format_remaining(timer.remaining_ms(now_ms)),
                )

        return fired

    # === Introspection ===

    def pending(self) -> list[PendingTimer]:
        return self.queue.pending()

    @property
    def triggers(self) -> list[ReactiveTrigger]:
        return list(self._triggers)

    def health(self) -> EngineHealth:
        backend_health = self.backend.health()
        next_timer = self.queue.next_due()
        tz = self._clock().tzinfo
        return EngineHealth(
            healthy=self._running and backend_health.get("healthy", False),
            backend=backend_health,
            pending=len(self.queue),
            reactive_armed=sum(1 for trigger in self._triggers if trigger.armed),
            next_due=from_epoch_ms(next_timer.due_at, tz) if next_timer else None,
            stats=self._stats,
        )

    def get_stats(self) -> EngineStats:
        return self._stats


__all__ = ["Clock", "EngineStats", "EngineHealth", "TimerEngine"]
