"""Per-tick context handed to every step."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from realmtick.config import TickConfig
    from realmtick.store.database import SessionFactory
    from realmtick.systems.game_day import GameClock
    from realmtick.systems.rng import DeterministicRNG
    from realmtick.utils.event_log import EventBus


@dataclass(frozen=True, slots=True)
class TickContext:
    """Everything a step needs. ``now`` and ``game_day`` are frozen at tick start
    so every step sees the same moment."""

    config: TickConfig
    session_factory: SessionFactory
    clock: GameClock
    rng: DeterministicRNG
    events: EventBus
    now: datetime
    game_day: int
