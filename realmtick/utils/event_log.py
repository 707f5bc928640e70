"""Fire-and-forget event emission backed by a thread-safe ring buffer."""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)

Subscriber = Callable[["TickEvent"], None]


@dataclass(frozen=True, slots=True)
class TickEvent:
    """A single named event with its payload."""

    name: str
    payload: dict[str, Any] = field(default_factory=dict)
    game_day: int | None = None
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc).replace(tzinfo=None))


class EventLog:
    """Bounded event log. Writers append; readers snapshot a slice.

    Thread-safe via a simple lock. The API reads from it while the
    scheduler thread writes.
    """

    __slots__ = ("_buffer", "_lock")

    def __init__(self, maxlen: int = 2000) -> None:
        self._buffer: deque[TickEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def append(self, event: TickEvent) -> None:
        with self._lock:
            self._buffer.append(event)

    def named(self, name: str) -> list[TickEvent]:
        """Return all retained events called *name*."""
        with self._lock:
            return [e for e in self._buffer if e.name == name]

    def latest(self, count: int = 50) -> list[TickEvent]:
        """Return the *count* most recent events."""
        with self._lock:
            items = list(self._buffer)
        return items[-count:]

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)


class EventBus:
    """Fire-and-forget ``emit(name, payload)``.

    Delivery is never awaited or retried. A failing subscriber is logged and
    skipped; ``emit`` itself never raises, so callers inside a step cannot
    fail because a notification could not be delivered.
    """

    __slots__ = ("_log", "_subscribers", "_lock", "game_day")

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()
        self.game_day: int | None = None

    @property
    def log(self) -> EventLog:
        return self._log

    def subscribe(self, fn: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(fn)

    def unsubscribe(self, fn: Subscriber) -> None:
        with self._lock:
            if fn in self._subscribers:
                self._subscribers.remove(fn)

    def batch(self) -> EventBatch:
        """Start an outbox for one unit of work; see ``EventBatch``."""
        return EventBatch(self)

    def emit(self, name: str, payload: dict[str, Any] | None = None) -> None:
        try:
            event = TickEvent(name=name, payload=dict(payload or {}), game_day=self.game_day)
            self._log.append(event)
            with self._lock:
                subscribers = list(self._subscribers)
        except Exception:
            logger.exception("Failed to record event %s", name)
            return

        for fn in subscribers:
            try:
                fn(event)
            except Exception:
                logger.warning("Subscriber failed for event %s", name, exc_info=True)


class EventBatch:
    """Notifications queued during a unit of work, sent once it commits.

    Accepts the same ``emit`` calls as ``EventBus``. Nothing reaches the bus
    until ``flush``; a batch dropped after a rollback is simply discarded.

    Usage:
        outbox = ctx.events.batch()
        with ctx.session_factory() as session:
            process_laws(session, outbox, ctx.now)
            session.commit()
        outbox.flush()
    """

    __slots__ = ("_bus", "_pending")

    def __init__(self, bus: EventBus) -> None:
        self._bus = bus
        self._pending: list[tuple[str, dict[str, Any]]] = []

    def emit(self, name: str, payload: dict[str, Any] | None = None) -> None:
        self._pending.append((name, dict(payload or {})))

    def flush(self) -> int:
        """Deliver every queued event in order. Returns how many were sent."""
        pending, self._pending = self._pending, []
        for name, payload in pending:
            self._bus.emit(name, payload)
        return len(pending)

    def __len__(self) -> int:
        return len(self._pending)
