"""Tick engine configuration with sensible defaults."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class TickConfig:
    """Immutable configuration for the daily world-advancement engine."""

    # Database
    database_url: str = "sqlite:///realmtick.db"
    database_echo: bool = False

    # World
    world_seed: int = 42

    # Clock
    epoch: datetime = datetime(2026, 1, 1)   # naive UTC; game day 0
    staleness_hours: float = 25.0            # health check flags no success within this window

    # Scheduler
    scheduler_enabled: bool = True
    scheduler_poll_seconds: float = 30.0
    tick_hour_utc: int = 0                   # daily tick fires at/after this hour

    # Sustenance
    rest_heal_fraction: float = 0.15         # FED characters recover this share of max HP

    # Travel & encounters
    war_encounter_multiplier: float = 1.25
    encounter_level_below: int = 3           # monster level window: [lvl - below, lvl + above + danger]
    encounter_level_above: int = 3
    monster_fallback_limit: int = 10
    pvp_guard_requires_war: bool = True      # GUARD orders only engage enemies at war
    encounter_xp_per_level: int = 10

    # Structures
    seizure_grace_days: int = 7
    condition_low_threshold: int = 50
    default_tax_rate: float = 0.10
    max_abundance: int = 100

    # Governance
    election_nomination_days: int = 3
    election_voting_days: int = 3
    mayor_term_days: int = 30

    # Economy
    reputation_idle_days: int = 7
    reputation_decay_amount: int = 1

    # Logging
    log_level: str = "INFO"
