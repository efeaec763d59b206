"""Bookkeeping shared by the sweep timing backends."""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Any

from .protocol import BackendHealth


class TickingBackend:
    """Tick counter, last-tick time and health report for a backend.

    Subclasses set ``name``, implement ``start``/``stop`` and ``is_running``,
    and call ``_record_tick()`` right before each tick callback.
    """

    name: str = "base"

    def __init__(self) -> None:
        self._tick_count = 0
        self._last_tick: datetime | None = None
        self._interval: float | None = None
        self._counter_lock = threading.Lock()

    def _record_tick(self) -> int:
        with self._counter_lock:
            self._tick_count += 1
            self._last_tick = datetime.now(UTC)
            return self._tick_count

    def _health_extra(self) -> dict[str, Any]:
        return {"interval_seconds": self._interval}

    @property
    def is_running(self) -> bool:
        raise NotImplementedError

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def last_tick(self) -> datetime | None:
        return self._last_tick

    def get_health(self) -> BackendHealth:
        return BackendHealth(
            healthy=self.is_running,
            backend=self.name,
            tick_count=self._tick_count,
            last_tick=self._last_tick,
            extra=self._health_extra(),
        )

    def health(self) -> dict[str, Any]:
        return self.get_health().to_dict()
