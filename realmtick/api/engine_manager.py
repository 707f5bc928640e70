"""EngineManager: singleton wrapper that owns the store, clock and tick machinery.

The daily scheduler runs the orchestrator on its own background thread; API
handlers call the manager from request threads. Shared pieces (event log,
game clock, adjacency cache) are lock-guarded.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from realmtick.engine.orchestrator import TickHealth, TickOrchestrator
from realmtick.engine.scheduler import DailyScheduler
from realmtick.store.database import create_db_engine, init_schema, make_session_factory
from realmtick.systems.game_day import GameClock
from realmtick.systems.location_graph import LocationGraph, Route, route_between_towns
from realmtick.systems.rng import DeterministicRNG
from realmtick.systems.timed_actions import CollectResult, TimedActionResolver
from realmtick.utils.event_log import EventBus, EventLog, TickEvent

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from realmtick.config import TickConfig
    from realmtick.core.enums import ActionKind
    from realmtick.engine.steps import Step
    from realmtick.store.database import SessionFactory

logger = logging.getLogger(__name__)


class EngineManager:
    """Manages the tick engine lifecycle.

    Provides thread-safe access to:
      - the manual trigger and health marker
      - the atomic collect operation
      - the event feed (lock-guarded ring buffer)
      - gate-to-gate routing over the cached location graph
    """

    def __init__(
        self,
        config: TickConfig,
        engine: Engine | None = None,
        steps: list[Step] | tuple[Step, ...] | None = None,
    ) -> None:
        self.config = config

        self._engine = engine if engine is not None else create_db_engine(config.database_url, config.database_echo)
        init_schema(self._engine)
        self._session_factory = make_session_factory(self._engine)

        self._event_log = EventLog()
        self._events = EventBus(self._event_log)
        self._clock = GameClock(config.epoch)
        self._rng = DeterministicRNG(config.world_seed)

        self._orchestrator = TickOrchestrator(
            config, self._session_factory, self._clock, self._events, steps=steps, rng=self._rng,
        )
        self._scheduler = DailyScheduler(
            self._orchestrator,
            poll_seconds=config.scheduler_poll_seconds,
            tick_hour_utc=config.tick_hour_utc,
        )
        self._resolver = TimedActionResolver(self._session_factory, self._clock, self._events)
        self._graph = LocationGraph(self._session_factory)

    # -- public properties --

    @property
    def session_factory(self) -> SessionFactory:
        return self._session_factory

    @property
    def orchestrator(self) -> TickOrchestrator:
        return self._orchestrator

    @property
    def clock(self) -> GameClock:
        return self._clock

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def running(self) -> bool:
        return self._scheduler.running

    # -- lifecycle --

    def start(self) -> None:
        if self.config.scheduler_enabled:
            self._scheduler.start()
        logger.info("EngineManager started (game day %d)", self._clock.game_day())

    def stop(self) -> None:
        self._scheduler.stop()
        logger.info("EngineManager stopped.")

    # -- operations --

    def trigger_manual_tick(self, advance_day: bool = False) -> dict:
        return self._orchestrator.trigger_manual_tick(advance_day=advance_day)

    def health(self) -> TickHealth:
        return self._orchestrator.health()

    def collect(self, character_id: int, kind: ActionKind) -> CollectResult:
        return self._resolver.collect(character_id, kind)

    def route(self, from_town_id: int, to_town_id: int) -> Route | None:
        return route_between_towns(self._graph.index(), from_town_id, to_town_id)

    def rebuild_graph(self) -> None:
        self._graph.rebuild()

    def latest_events(self, count: int = 50) -> list[TickEvent]:
        return self._event_log.latest(count)
