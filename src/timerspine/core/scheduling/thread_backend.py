"""Daemon-thread sweep backend.

For hosts without an asyncio loop of their own (a plain script, a worker
embedded in a sync application). Each sweep runs to completion on a private
event loop inside the thread; the timer queue's lock keeps it from
interleaving with reactive callbacks delivered on other threads.

    start()  ──► Thread("timerspine-sweep", daemon)
                    while not stopped.wait(interval):
                        asyncio.run(tick_callback())
    stop()   ──► stopped.set(); join(5 s)
"""

from __future__ import annotations

import asyncio
import logging
import threading

from .base import TickingBackend
from .protocol import TickCallback

logger = logging.getLogger(__name__)

_JOIN_TIMEOUT = 5.0


class ThreadSchedulerBackend(TickingBackend):
    """Runs the sweep on a daemon thread.

    Example:
        >>> backend = ThreadSchedulerBackend()
        >>> backend.start(engine.sweep, interval_seconds=60.0)
        >>> # ... later ...
        >>> backend.stop()
    """

    name = "thread"

    def __init__(self) -> None:
        super().__init__()
        self._stopped = threading.Event()
        self._thread: threading.Thread | None = None

    def _run(self, tick_callback: TickCallback, interval_seconds: float) -> None:
        logger.info("sweep thread started (interval=%.3fs)", interval_seconds)
        while not self._stopped.wait(interval_seconds):
            tick = self._record_tick()
            try:
                asyncio.run(tick_callback())
            except Exception:
                logger.exception("sweep tick %d failed", tick)
        logger.info("sweep thread stopped after %d ticks", self.tick_count)

    def start(self, tick_callback: TickCallback, interval_seconds: float = 60.0) -> None:
        if self._thread is not None:
            logger.warning("ThreadSchedulerBackend already started")
            return

        self._interval = interval_seconds
        self._stopped.clear()
        self._thread = threading.Thread(
            target=self._run,
            args=(tick_callback, interval_seconds),
            name="timerspine-sweep",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the thread and wait for the running sweep to finish."""
        if self._thread is None:
            return
        self._stopped.set()
        self._thread.join(timeout=_JOIN_TIMEOUT)
        if self._thread.is_alive():
            logger.warning("sweep thread still busy after %.0fs, leaving it to exit", _JOIN_TIMEOUT)
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
