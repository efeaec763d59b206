"""Event bus seam between the timer engine and the device layer.

The engine never talks to devices. It publishes ``device.set_state`` when a
timer fires and listens for ``device.state`` to drive reactive timers. Any
transport can sit behind ``EventBus``; ``memory.InMemoryEventBus`` covers a
single process and the tests.

Modules
-------
memory      InMemoryEventBus, handlers run on the caller's loop
device      device signal payloads and the two device event types
"""

from __future__ import annotations

import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

__all__ = [
    "Event",
    "EventBus",
    "EventHandler",
]


@dataclass
class Event:
    """One message on the bus.

    Attributes:
        event_type: Dotted type, e.g. ``device.state``
        source: Who published it (plugin id, ``timerspine``, ...)
        payload: Type-specific body
        timestamp: Publication time (UTC)
        correlation_id: Optional id tying a request to its effects
        event_id: Unique id
    """

    event_type: str
    source: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    correlation_id: str | None = None
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def matches(self, pattern: str) -> bool:
        """``*`` matches all, ``device.*`` matches one namespace, else exact."""
        if pattern == "*":
            return True
        namespace, dot, rest = pattern.rpartition(".")
        if dot and rest == "*":
            return self.event_type.startswith(namespace + ".")
        return self.event_type == pattern


EventHandler = Callable[[Event], Awaitable[None]]


@runtime_checkable
class EventBus(Protocol):
    """What the engine needs from a transport."""

    async def publish(self, event: Event) -> None: ...

    async def subscribe(self, event_type: str, handler: EventHandler) -> str:
        """Returns a subscription id for ``unsubscribe``."""
        ...

    async def unsubscribe(self, subscription_id: str) -> None: ...

    async def close(self) -> None: ...
