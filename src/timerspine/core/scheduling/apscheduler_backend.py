"""APScheduler sweep backend.

For hosts that already run APScheduler 3.x and want the sweep to be one more
job there. The sweep is a single interval job; a tick that is still running
when the next one comes due is coalesced rather than stacked.

Requires the ``[apscheduler]`` extra::

    pip install timer-spine[apscheduler]
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .base import TickingBackend
from .protocol import TickCallback

logger = logging.getLogger(__name__)

JOB_ID = "timerspine_sweep"


def _require_apscheduler():
    try:
        from apscheduler.schedulers.background import BackgroundScheduler
    except ImportError:
        raise ImportError(
            "APScheduler is required for APSchedulerBackend. "
            "Install it with: pip install timer-spine[apscheduler]"
        ) from None
    return BackgroundScheduler


class APSchedulerBackend(TickingBackend):
    """Sweep as an APScheduler interval job, run with ``asyncio.run``.

    Pass an existing ``BackgroundScheduler`` to share it; otherwise the
    backend owns a private one and shuts it down on ``stop``.
    """

    name = "apscheduler"

    def __init__(self, scheduler: Any | None = None) -> None:
        super().__init__()
        if scheduler is None:
            scheduler = _require_apscheduler()()
            self._owns_scheduler = True
        else:
            self._owns_scheduler = False
        self._scheduler = scheduler
        self._job = None

    def start(self, tick_callback: TickCallback, interval_seconds: float = 60.0) -> None:
        def run_tick() -> None:
            tick = self._record_tick()
            try:
                asyncio.run(tick_callback())
            except Exception:
                logger.exception("sweep tick %d failed", tick)

        self._interval = interval_seconds
        self._job = self._scheduler.add_job(
            run_tick,
            "interval",
            seconds=interval_seconds,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        logger.info("sweep job %s scheduled (interval=%.3fs)", JOB_ID, interval_seconds)

    def stop(self) -> None:
        if self._job is None:
            return
        if self._owns_scheduler:
            self._scheduler.shutdown(wait=True)
        else:
            self._scheduler.remove_job(JOB_ID)
        self._job = None
        logger.info("sweep job %s removed", JOB_ID)

    @property
    def is_running(self) -> bool:
        return self._job is not None and self._scheduler.running

    def _health_extra(self) -> dict[str, Any]:
        extra = super()._health_extra()
        extra["scheduled_jobs"] = len(self._scheduler.get_jobs()) if self._scheduler.running else 0
        return extra
