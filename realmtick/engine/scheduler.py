"""DailyScheduler: background thread that fires the tick once per game day."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from realmtick.engine.orchestrator import TickOrchestrator, TickRun

logger = logging.getLogger(__name__)


class DailyScheduler:
    """Polls the game clock and calls ``run_if_due`` after the tick hour.

    The persisted last-tick-day marker is the once-per-day guard, so a
    restart in the middle of the day does not advance the world twice.
    """

    __slots__ = ("_orchestrator", "_poll_seconds", "_tick_hour", "_thread", "_stop")

    def __init__(self, orchestrator: TickOrchestrator, poll_seconds: float = 30.0, tick_hour_utc: int = 0) -> None:
        self._orchestrator = orchestrator
        self._poll_seconds = poll_seconds
        self._tick_hour = tick_hour_utc
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="daily-tick", daemon=True)
        self._thread.start()
        logger.info("Daily scheduler started (poll every %.0fs)", self._poll_seconds)

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None
        logger.info("Daily scheduler stopped")

    def poll_once(self) -> TickRun | None:
        if self._orchestrator.clock.now().hour < self._tick_hour:
            return None
        try:
            return self._orchestrator.run_if_due()
        except Exception:
            # Orchestrator-level failure: report and retry on the next poll
            logger.exception("Daily tick invocation failed")
            return None

    def _loop(self) -> None:
        self.poll_once()
        while not self._stop.wait(self._poll_seconds):
            self.poll_once()
