"""Game day clock: the universal time reference for the daily economy.

Day numbers count whole days since the configured epoch. An operator may
fast-forward through days with the manual trigger; the resulting day offset
is persisted by the orchestrator and restored on startup.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

DAY = timedelta(days=1)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the store persists."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GameClock:
    """Offset-aware wall clock shared by the scheduler, steps and API."""

    __slots__ = ("_epoch", "_offset_days", "_lock", "_source")

    def __init__(self, epoch: datetime, source: Callable[[], datetime] = utcnow) -> None:
        self._epoch = epoch
        self._offset_days = 0
        self._lock = threading.Lock()
        self._source = source

    @property
    def epoch(self) -> datetime:
        return self._epoch

    @property
    def offset_days(self) -> int:
        return self._offset_days

    def now(self) -> datetime:
        return self._source() + self._offset_days * DAY

    def game_day(self, at: datetime | None = None) -> int:
        """Sequential day number since the epoch."""
        moment = at if at is not None else self.now()
        return (moment - self._epoch) // DAY

    def advance(self, days: int = 1) -> int:
        """Advance the offset by *days*. Returns the new offset."""
        with self._lock:
            self._offset_days += days
            return self._offset_days

    def set_offset(self, days: int) -> None:
        with self._lock:
            self._offset_days = days

    def reset(self) -> None:
        self.set_offset(0)

    def next_tick_time(self, tick_hour_utc: int = 0) -> datetime:
        """The next daily boundary at *tick_hour_utc*."""
        now = self.now()
        boundary = now.replace(hour=tick_hour_utc, minute=0, second=0, microsecond=0)
        if boundary <= now:
            boundary += DAY
        return boundary
