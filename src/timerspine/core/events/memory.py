"""
In-memory event bus.

Handlers run on the caller's event loop, one after another in subscription
order, before ``publish`` returns. That makes a published ``device.state``
report visible to every reactive trigger by the time the publisher resumes.
Nothing is persisted or replayed.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass

from timerspine.core.events import Event, EventHandler
from timerspine.core.logging import get_logger

__all__ = ["InMemoryEventBus"]

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Subscription:
    id: str
    pattern: str
    handler: EventHandler


class InMemoryEventBus:
    """Single-process bus; the default transport for the CLI and tests.

    Example::

        bus = InMemoryEventBus()

        async def on_set_state(event: Event):
            print(event.payload["deviceId"], event.payload["state"])

        await bus.subscribe("device.set_state", on_set_state)
        await bus.publish(set_state_event("KAKU", "A1", "on"))
        # Output: A1 on
    """

    def __init__(self) -> None:
        self._subscriptions: dict[str, _Subscription] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self._closed = False

    async def publish(self, event: Event) -> None:
        """Deliver ``event`` to every matching handler.

        A handler that raises is logged and skipped; later handlers still run.
        Publishing on a closed bus is a no-op.
        """
        if self._closed:
            return

        async with self._lock:
            targets = [sub for sub in self._subscriptions.values() if event.matches(sub.pattern)]

        for sub in targets:
            try:
                await sub.handler(event)
            except Exception as e:
                logger.warning(
                    "event_handler_error",
                    subscription_id=sub.id,
                    pattern=sub.pattern,
                    event_type=event.event_type,
                    event_id=event.event_id,
                    error=str(e),
                )

    async def subscribe(self, event_type: str, handler: EventHandler) -> str:
        """Register ``handler`` for an exact type, ``prefix.*`` or ``*``."""
        sub_id = f"sub-{next(self._ids)}"
        async with self._lock:
            self._subscriptions[sub_id] = _Subscription(sub_id, event_type, handler)
        return sub_id

    async def unsubscribe(self, subscription_id: str) -> None:
        async with self._lock:
            self._subscriptions.pop(subscription_id, None)

    async def close(self) -> None:
        """Drop every subscription and ignore later publishes."""
        self._closed = True
        async with self._lock:
            self._subscriptions.clear()

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)
