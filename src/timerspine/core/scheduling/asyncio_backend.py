"""Cooperative asyncio sweep backend (the default).

The sweep runs as a task on the caller's event loop, so sweeps and bus
handlers (reactive triggers) take turns and never run at the same time.

    start()  ──► loop.create_task(_loop())
                    while True:
                        await asyncio.sleep(interval)
                        await tick_callback()
    stop()   ──► task.cancel()

``start()`` must be called from inside a running event loop.
"""

from __future__ import annotations

import asyncio
import logging

from .base import TickingBackend
from .protocol import TickCallback

logger = logging.getLogger(__name__)


class AsyncioSchedulerBackend(TickingBackend):
    """Sweep backend driven by a task on the running loop.

    Example:
        >>> async def main():
        ...     backend = AsyncioSchedulerBackend()
        ...     backend.start(engine.sweep, interval_seconds=60.0)
        ...     ...
        ...     backend.stop()
    """

    name = "asyncio"

    def __init__(self) -> None:
        super().__init__()
        self._task: asyncio.Task | None = None

    async def _loop(self, tick_callback: TickCallback, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            tick = self._record_tick()
            try:
                await tick_callback()
            except Exception:
                logger.exception("sweep tick %d failed", tick)

    def start(self, tick_callback: TickCallback, interval_seconds: float = 60.0) -> None:
        """Schedule the sweep task.

        Raises:
            RuntimeError: If no event loop is running.
        """
        if self.is_running:
            logger.warning("AsyncioSchedulerBackend already started")
            return

        loop = asyncio.get_running_loop()
        self._interval = interval_seconds
        self._task = loop.create_task(self._loop(tick_callback, interval_seconds), name="timerspine-sweep")
        logger.info("sweep task started (interval=%.3fs)", interval_seconds)

    def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.info("sweep task stopped after %d ticks", self.tick_count)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()
