"""Timing backends for the timer engine's expiry sweep.

Backends decide WHEN a sweep runs; ``timerspine.timers.engine.TimerEngine``
decides WHAT it does. Swap the backend to fit the host process:

    AsyncioSchedulerBackend   task on the running loop (default)
    ThreadSchedulerBackend    daemon thread for hosts without a loop
    APSchedulerBackend        interval job in APScheduler ([apscheduler] extra)
"""

from __future__ import annotations

from .asyncio_backend import AsyncioSchedulerBackend
from .base import TickingBackend
from .protocol import BackendHealth, SchedulerBackend, TickCallback
from .thread_backend import ThreadSchedulerBackend


def __getattr__(name: str):  # noqa: N807
    """Lazy import optional backends to avoid ImportError when extras are missing."""
    if name == "APSchedulerBackend":
        from .apscheduler_backend import APSchedulerBackend

        return APSchedulerBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "SchedulerBackend",
    "BackendHealth",
    "TickCallback",
    "TickingBackend",
    "AsyncioSchedulerBackend",
    "ThreadSchedulerBackend",
    "APSchedulerBackend",
]
