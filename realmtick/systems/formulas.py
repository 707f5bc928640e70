"""Pure numeric formulas used by the daily systems.

Everything here is a side-effect-free function of its arguments so that
balance can be tuned and tested in isolation.
"""

from __future__ import annotations

import math

from realmtick.core.enums import HungerState, ProfessionTier
from realmtick.core.rules import (
    HUNGER_MODIFIERS,
    NPC_INCOME_BY_TIER,
    REPUTATION_BONUS_THRESHOLDS,
)


def hunger_modifier(state: HungerState) -> float:
    return HUNGER_MODIFIERS.get(state, 1.0)


def xp_to_next_level(level: int) -> int:
    """XP needed to advance from *level* to *level + 1*."""
    return int(100 * level * 1.5 ** (level - 1))


def apply_xp(level: int, xp: int, gained: int) -> tuple[int, int, int]:
    """Add *gained* XP. Returns (new_level, new_xp, levels_gained)."""
    xp += gained
    levels = 0
    while xp >= xp_to_next_level(level):
        xp -= xp_to_next_level(level)
        level += 1
        levels += 1
    return level, xp, levels


def gather_yield(base: int, abundance: int, tool_bonus: float, hunger_mod: float) -> int:
    """Units produced by a finished gathering action.

    Abundance (0-100) scales the base between 50% and 150%; a tool adds its
    bonus on top. Hunger multiplies the whole. Never below 1 unless the
    gatherer is incapacitated or the node is exhausted.
    """
    if abundance <= 0 or hunger_mod <= 0:
        return 0
    abundance_factor = 0.5 + min(abundance, 100) / 100
    raw = base * abundance_factor * (1.0 + tool_bonus) * hunger_mod
    return max(1, math.floor(raw))


def encounter_win_chance(character_level: int, monster_level: int, hunger_mod: float) -> float:
    """Probability a traveler beats a road monster, clamped to [0.05, 0.95]."""
    chance = (0.6 + 0.08 * (character_level - monster_level)) * max(hunger_mod, 0.25)
    return min(0.95, max(0.05, chance))


def daily_property_tax(base_rate: int, level: int, tax_rate: float) -> int:
    return math.floor(base_rate * level * (1 + tax_rate))


def reputation_bonus(reputation: int) -> float:
    for minimum, bonus in REPUTATION_BONUS_THRESHOLDS:
        if reputation >= minimum:
            return bonus
    return 0.0


def npc_daily_income(tier: ProfessionTier, reputation: int) -> int:
    clients, gold_per = NPC_INCOME_BY_TIER.get(tier, (0, 0))
    if clients == 0:
        return 0
    return math.floor(clients * gold_per * (1 + reputation_bonus(reputation)))
