"""Daily systems: sustenance, timed actions, travel, structures, governance, economy."""

from realmtick.systems.game_day import GameClock
from realmtick.systems.rng import DeterministicRNG

__all__ = ["DeterministicRNG", "GameClock"]
