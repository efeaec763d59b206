"""Pending timer queue.

┌──────────────────────────────────────────────────────────────────────────────┐
│  TimerQueue                                                                   │
│                                                                               │
│   insert(timer)                                                               │
│      ├── validate: int due_at, callable action, no other entry for the spec  │
│      └── insort by due_at (ties keep insertion order)                        │
│                                                                               │
│   sweep_expired(now_ms)        lazy, finite                                   │
│      ├── snapshot entries with due_at <= now_ms                              │
│      └── for each:                                                            │
│            with lock: remove it   (skip if someone else already did)         │
│            action(timer)          (may insert; not revisited this sweep)     │
│            yield timer                                                        │
└──────────────────────────────────────────────────────────────────────────────┘

Every mutation holds one ``threading.Lock``, so a sweep on a backend thread
and a reactive callback on the event loop never interleave inside the queue.
An entry is handed to exactly one sweep: whoever removes it fires it.
"""

from __future__ import annotations

import bisect
import threading
from collections.abc import Iterator

from timerspine.core.errors import InvalidQueueEntry
from timerspine.core.logging import get_logger
from timerspine.timers.models import PendingTimer, TimerSpec

logger = get_logger(__name__)


def _due(timer: PendingTimer) -> int:
    return timer.due_at


class TimerQueue:
    """Time-ordered collection of pending timers, at most one per spec.

    Specs are matched by value, so two specs for one device that differ in
    any field (time, state, offset, index) each get their own entry.
    """

    def __init__(self) -> None:
        self._entries: list[PendingTimer] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def _validate(self, timer: PendingTimer) -> None:
        if not isinstance(timer, PendingTimer):
            raise InvalidQueueEntry(f"Not a PendingTimer: {timer!r}")
        if isinstance(timer.due_at, bool) or not isinstance(timer.due_at, int):
            raise InvalidQueueEntry(
                f"due_at must be epoch milliseconds, got {timer.due_at!r}"
            ).with_context(timer=timer.key)
        if not callable(timer.action):
            raise InvalidQueueEntry("action is not callable").with_context(timer=timer.key)

    def insert(self, timer: PendingTimer) -> bool:
        """Add a timer. Invalid entries are logged and refused, never raised.

        Returns:
            True if the timer entered the queue
        """
        try:
            self._validate(timer)
            with self._lock:
                if any(entry.spec == timer.spec for entry in self._entries):
                    raise InvalidQueueEntry(
                        "Timer already has a pending entry"
                    ).with_context(timer=timer.key)
                bisect.insort_right(self._entries, timer, key=_due)
        except InvalidQueueEntry as e:
            logger.warning("queue.rejected", **e.to_dict())
            return False
        return True

    def sweep_expired(self, now_ms: int) -> Iterator[PendingTimer]:
        """Fire every entry due at or before ``now_ms``, earliest first.

        Each entry is removed, then its action is invoked once before the
        next entry is looked at. An action that raises is logged and the
        sweep carries on.
        """
        with self._lock:
            due = [entry for entry in self._entries if entry.due_at <= now_ms]

        for timer in due:
            with self._lock:
                try:
                    self._entries.remove(timer)
                except ValueError:
                    continue

            try:
                timer.action(timer)
            except Exception:
                logger.exception("queue.action_failed", timer=timer.key, timer_id=timer.id)
            yield timer

    def pending(self) -> list[PendingTimer]:
        """Snapshot of pending entries, earliest first."""
        with self._lock:
            return list(self._entries)

    def has_pending(self, spec: TimerSpec) -> bool:
        with self._lock:
            return any(entry.spec == spec for entry in self._entries)

    def next_due(self) -> PendingTimer | None:
        with self._lock:
            return self._entries[0] if self._entries else None

    def clear(self) -> int:
        """Discard every pending entry; returns how many were dropped."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        return dropped


__all__ = ["TimerQueue"]
