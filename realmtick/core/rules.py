"""Static rule tables read by the daily systems.

Kept in one place so balance changes touch data, not step logic.
"""

from __future__ import annotations

from dataclasses import dataclass

from realmtick.core.enums import (
    BuildingType,
    HungerState,
    ProfessionTier,
    ProfessionType,
    Race,
)

# ---------------------------------------------------------------------------
# Sustenance
# ---------------------------------------------------------------------------

# (max days since last meal, state) checked in order; anything beyond is INCAPACITATED
HUNGER_THRESHOLDS: tuple[tuple[int, HungerState], ...] = (
    (0, HungerState.FED),
    (2, HungerState.HUNGRY),
    (4, HungerState.STARVING),
)

# Multiplicative penalty applied by combat / gathering formulas
HUNGER_MODIFIERS: dict[HungerState, float] = {
    HungerState.FED: 1.0,
    HungerState.HUNGRY: 0.85,
    HungerState.STARVING: 0.60,
    HungerState.INCAPACITATED: 0.0,
}

# Decay-counter stage -> equivalent hunger state
STAGE_TO_HUNGER: tuple[HungerState, ...] = (
    HungerState.FED,
    HungerState.HUNGRY,
    HungerState.STARVING,
    HungerState.INCAPACITATED,
)

NO_EXPIRY_SORT_KEY = 9999


@dataclass(frozen=True, slots=True)
class SustenanceProfile:
    """Parameters for a race that does not eat ordinary food."""

    race: Race
    consumables: tuple[str, ...]   # template names, most preferred first
    counter_field: str             # Character attribute holding the decay stage
    cap: int = 3


ALT_SUSTENANCE: dict[Race, SustenanceProfile] = {
    Race.REVENANT: SustenanceProfile(
        race=Race.REVENANT,
        consumables=("Refined Soul Essence", "Soul Essence"),
        counter_field="soul_fade_stage",
    ),
    Race.FORGEBORN: SustenanceProfile(
        race=Race.FORGEBORN,
        consumables=("Precision Maintenance Kit", "Maintenance Kit"),
        counter_field="structural_decay_stage",
    ),
}

# ---------------------------------------------------------------------------
# Travel
# ---------------------------------------------------------------------------

RACIAL_ENCOUNTER_MODIFIERS: dict[Race, float] = {
    Race.BEASTFOLK: -0.15,
}

RACES_WITH_SKIP: frozenset[Race] = frozenset({Race.FAEFOLK})

PROFESSIONS_WITH_DOUBLE_MOVE: frozenset[ProfessionType] = frozenset({ProfessionType.COURIER})

# ---------------------------------------------------------------------------
# Structures
# ---------------------------------------------------------------------------

BASE_PROPERTY_TAX_RATES: dict[BuildingType, int] = {
    BuildingType.HOUSE_SMALL: 5,
    BuildingType.HOUSE_MEDIUM: 10,
    BuildingType.HOUSE_LARGE: 20,
    BuildingType.SHOP: 15,
    BuildingType.WORKSHOP: 15,
    BuildingType.WAREHOUSE: 12,
    BuildingType.INN: 25,
}
DEFAULT_PROPERTY_TAX_RATE = 10

# ---------------------------------------------------------------------------
# Economy
# ---------------------------------------------------------------------------

SERVICE_PROFESSIONS: frozenset[ProfessionType] = frozenset({
    ProfessionType.MERCHANT,
    ProfessionType.INNKEEPER,
    ProfessionType.HEALER,
    ProfessionType.STABLE_MASTER,
    ProfessionType.BANKER,
    ProfessionType.COURIER,
    ProfessionType.MERCENARY_CAPTAIN,
})

# tier -> (npc clients per day, gold per client)
NPC_INCOME_BY_TIER: dict[ProfessionTier, tuple[int, int]] = {
    ProfessionTier.APPRENTICE: (0, 0),
    ProfessionTier.JOURNEYMAN: (1, 5),
    ProfessionTier.CRAFTSMAN: (2, 8),
    ProfessionTier.EXPERT: (3, 10),
    ProfessionTier.MASTER: (5, 12),
    ProfessionTier.GRANDMASTER: (10, 10),
}

# (minimum reputation, bonus) checked highest first
REPUTATION_BONUS_THRESHOLDS: tuple[tuple[int, float], ...] = (
    (81, 0.20),
    (61, 0.15),
    (41, 0.10),
    (21, 0.05),
)
