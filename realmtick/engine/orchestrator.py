"""TickOrchestrator: the daily world-advancement run.

A tick walks a fixed, ordered step registry. Each step runs inside
``run_step``, which times it and converts any exception into a failed
``StepResult``, so one broken step never stops the others. Failures outside
the steps (store unreachable, marker write failing) are orchestrator-level
and propagate to the caller.

Phase cycle:
  1. Preflight: ping the store, freeze ``now`` / ``game_day`` into a TickContext
  2. Steps: every registered step, in order, failure-isolated
  3. Completion: emit ``tickComplete`` with every StepResult, then record the
     last-success marker used by health checks
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from realmtick.engine.context import TickContext
from realmtick.engine.steps import Step, default_steps
from realmtick.store.database import MetaStore, ping
from realmtick.systems.rng import DeterministicRNG

if TYPE_CHECKING:
    from realmtick.config import TickConfig
    from realmtick.engine.steps import StepFn
    from realmtick.store.database import SessionFactory
    from realmtick.systems.game_day import GameClock
    from realmtick.utils.event_log import EventBus

logger = logging.getLogger(__name__)

TICK_COMPLETE = "tickComplete"
ALREADY_RUNNING = "A daily tick is already running"


@dataclass(slots=True)
class StepResult:
    name: str
    succeeded: bool
    error: str | None = None
    duration_ms: float = 0.0
    summary: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "succeeded": self.succeeded,
            "error": self.error,
            "duration_ms": round(self.duration_ms, 2),
            "summary": self.summary,
        }


@dataclass(slots=True)
class TickRun:
    """One execution of the orchestrator. Ephemeral; never persisted."""

    game_day: int
    started_at: datetime
    finished_at: datetime | None = None
    steps: list[StepResult] = field(default_factory=list)

    @property
    def failed_steps(self) -> list[StepResult]:
        return [s for s in self.steps if not s.succeeded]

    @property
    def succeeded(self) -> bool:
        return not self.failed_steps

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_day": self.game_day,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "steps": [s.to_dict() for s in self.steps],
            "failed": [s.name for s in self.failed_steps],
        }


@dataclass(frozen=True, slots=True)
class TickHealth:
    last_success_at: datetime | None
    last_tick_day: int | None
    game_day: int
    stale: bool


class TickOrchestrator:
    """Runs the step registry once per invocation. Not re-entrant."""

    __slots__ = (
        "_config",
        "_session_factory",
        "_clock",
        "_events",
        "_rng",
        "_steps",
        "_meta",
        "_lock",
    )

    def __init__(
        self,
        config: TickConfig,
        session_factory: SessionFactory,
        clock: GameClock,
        events: EventBus,
        steps: list[Step] | tuple[Step, ...] | None = None,
        rng: DeterministicRNG | None = None,
    ) -> None:
        self._config = config
        self._session_factory = session_factory
        self._clock = clock
        self._events = events
        self._rng = rng or DeterministicRNG(config.world_seed)
        self._steps: tuple[Step, ...] = tuple(steps) if steps is not None else default_steps()
        self._meta = MetaStore(session_factory)
        self._lock = threading.Lock()
        self._clock.set_offset(self._meta.clock_offset_days())

    @property
    def steps(self) -> tuple[Step, ...]:
        return self._steps

    @property
    def clock(self) -> GameClock:
        return self._clock

    def build_context(self) -> TickContext:
        now = self._clock.now()
        return TickContext(
            config=self._config,
            session_factory=self._session_factory,
            clock=self._clock,
            rng=self._rng,
            events=self._events,
            now=now,
            game_day=self._clock.game_day(now),
        )

    # -- execution --

    def run_step(self, run: TickRun, name: str, fn: StepFn, ctx: TickContext) -> StepResult:
        """Run one step; record, log and swallow any failure."""
        t0 = time.perf_counter()
        try:
            summary = fn(ctx)
        except Exception as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            logger.exception("Step '%s' FAILED after %.1fms", name, elapsed)
            result = StepResult(name, False, error=f"{type(exc).__name__}: {exc}", duration_ms=elapsed)
        else:
            elapsed = (time.perf_counter() - t0) * 1000
            logger.info("Step '%s' completed in %.1fms", name, elapsed)
            result = StepResult(name, True, duration_ms=elapsed, summary=dict(summary or {}))
        run.steps.append(result)
        return result

    def run_daily_tick(self) -> TickRun:
        """Execute every step in order and emit ``tickComplete`` exactly once.

        Running it twice in one game day advances the world twice; use
        ``run_if_due`` for the once-per-day guarded entry point.
        """
        if not self._lock.acquire(blocking=False):
            raise RuntimeError(ALREADY_RUNNING)
        try:
            return self._run_locked(advance_day=False)
        finally:
            self._lock.release()

    def _run_locked(self, advance_day: bool) -> TickRun:
        ping(self._session_factory)
        if advance_day:
            offset = self._clock.advance(1)
            self._meta.set_clock_offset_days(offset)
            logger.info("Game clock fast-forwarded: offset now %d day(s)", offset)

        ctx = self.build_context()
        self._events.game_day = ctx.game_day
        run = TickRun(game_day=ctx.game_day, started_at=ctx.now)
        logger.info("=== Daily tick started (day %d, %d steps) ===", ctx.game_day, len(self._steps))

        for step in self._steps:
            self.run_step(run, step.name, step.fn, ctx)

        run.finished_at = self._clock.now()
        self._events.emit(TICK_COMPLETE, run.to_dict())
        self._meta.record_success(run.finished_at, run.game_day)
        logger.info(
            "=== Daily tick finished (day %d): %d/%d steps succeeded ===",
            run.game_day, len(run.steps) - len(run.failed_steps), len(run.steps),
        )
        return run

    def run_if_due(self) -> TickRun | None:
        """Run only if no tick has been recorded for the current game day.

        The check and the run share the tick lock, so a concurrent manual
        trigger cannot slip in between them.
        """
        if not self._lock.acquire(blocking=False):
            logger.debug("Tick already running; skipping due check")
            return None
        try:
            last = self._meta.last_tick_day()
            today = self._clock.game_day()
            if last is not None and last >= today:
                logger.debug("Tick for day %d already done", today)
                return None
            return self._run_locked(advance_day=False)
        finally:
            self._lock.release()

    def trigger_manual_tick(self, advance_day: bool = False) -> dict[str, Any]:
        """Operator entry point: run the daily sequence now, on the real clock.

        With ``advance_day`` the game clock is first fast-forwarded one day and
        the new offset is persisted, so day markers stay consistent across
        restarts. Step failures still count as success here; only an
        orchestrator-level failure yields ``success: False``.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Manual tick refused: %s", ALREADY_RUNNING)
            return {"success": False, "error": ALREADY_RUNNING}
        try:
            run = self._run_locked(advance_day=advance_day)
        except Exception as exc:
            logger.exception("Manual tick failed")
            return {"success": False, "error": str(exc)}
        finally:
            self._lock.release()
        return {"success": True, "result": run.to_dict()}

    # -- health --

    def last_success_at(self) -> datetime | None:
        return self._meta.last_success_at()

    def is_stale(self, now: datetime | None = None) -> bool:
        """No marker, a marker ahead of the clock, or one older than the window."""
        last = self._meta.last_success_at()
        if last is None:
            return True
        now = now if now is not None else self._clock.now()
        return last > now or now - last > timedelta(hours=self._config.staleness_hours)

    def health(self) -> TickHealth:
        now = self._clock.now()
        return TickHealth(
            last_success_at=self._meta.last_success_at(),
            last_tick_day=self._meta.last_tick_day(),
            game_day=self._clock.game_day(now),
            stale=self.is_stale(now),
        )
