"""Enumerations used throughout the engine.

String-valued so they persist readably in the database and serialize
directly through the API.
"""

from __future__ import annotations

from enum import Enum, IntEnum, unique


@unique
class Domain(IntEnum):
    """RNG domains for deterministic randomness isolation."""

    ENCOUNTER = 0
    MONSTER_PICK = 1
    COMBAT = 2
    GATHER = 3


@unique
class Race(str, Enum):
    """Playable races. Only a few carry mechanics this engine cares about."""

    HUMAN = "HUMAN"
    ELF = "ELF"
    DWARF = "DWARF"
    HALFLING = "HALFLING"
    ORC = "ORC"
    BEASTFOLK = "BEASTFOLK"   # lower road encounter chance
    FAEFOLK = "FAEFOLK"       # may skip one node per move
    REVENANT = "REVENANT"     # sustained by soul essence, not food
    FORGEBORN = "FORGEBORN"   # sustained by maintenance kits, not food


@unique
class HungerState(str, Enum):
    """Escalating sustenance penalty state."""

    FED = "FED"
    HUNGRY = "HUNGRY"
    STARVING = "STARVING"
    INCAPACITATED = "INCAPACITATED"


@unique
class FoodPriority(str, Enum):
    """How a character picks what to eat each day."""

    EXPIRING_FIRST = "EXPIRING_FIRST"
    BEST_FIRST = "BEST_FIRST"
    SPECIFIC_ITEM = "SPECIFIC_ITEM"
    CATEGORY_ONLY = "CATEGORY_ONLY"


@unique
class ActionKind(str, Enum):
    """Timed action variants."""

    GATHERING = "GATHERING"
    CRAFTING = "CRAFTING"


@unique
class ActionStatus(str, Enum):
    """Timed action lifecycle. COLLECTED is terminal."""

    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    COLLECTED = "COLLECTED"


@unique
class NodeType(str, Enum):
    """Location graph node kinds."""

    TOWN_GATE = "TOWN_GATE"
    WAYPOINT = "WAYPOINT"
    CROSSROADS = "CROSSROADS"
    WILDERNESS = "WILDERNESS"


@unique
class TravelStatus(str, Enum):
    TRAVELING = "TRAVELING"
    ARRIVED = "ARRIVED"
    ABORTED = "ABORTED"


@unique
class OrderType(str, Enum):
    """Standing daily orders a character can hold on a node."""

    NONE = "NONE"
    GUARD = "GUARD"
    AMBUSH = "AMBUSH"
    PATROL = "PATROL"


@unique
class ProfessionType(str, Enum):
    # Gathering / crafting
    MINER = "MINER"
    HERBALIST = "HERBALIST"
    LUMBERJACK = "LUMBERJACK"
    FARMER = "FARMER"
    COOK = "COOK"
    SMITH = "SMITH"
    # Service
    MERCHANT = "MERCHANT"
    INNKEEPER = "INNKEEPER"
    HEALER = "HEALER"
    STABLE_MASTER = "STABLE_MASTER"
    BANKER = "BANKER"
    COURIER = "COURIER"
    MERCENARY_CAPTAIN = "MERCENARY_CAPTAIN"


@unique
class ProfessionTier(str, Enum):
    APPRENTICE = "APPRENTICE"
    JOURNEYMAN = "JOURNEYMAN"
    CRAFTSMAN = "CRAFTSMAN"
    EXPERT = "EXPERT"
    MASTER = "MASTER"
    GRANDMASTER = "GRANDMASTER"


@unique
class BuildingType(str, Enum):
    HOUSE_SMALL = "HOUSE_SMALL"
    HOUSE_MEDIUM = "HOUSE_MEDIUM"
    HOUSE_LARGE = "HOUSE_LARGE"
    SHOP = "SHOP"
    WORKSHOP = "WORKSHOP"
    WAREHOUSE = "WAREHOUSE"
    INN = "INN"


@unique
class ConstructionStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETE = "COMPLETE"


@unique
class ElectionKind(str, Enum):
    MAYOR = "MAYOR"
    RULER = "RULER"


@unique
class ElectionPhase(str, Enum):
    NOMINATIONS = "NOMINATIONS"
    VOTING = "VOTING"
    COMPLETED = "COMPLETED"


@unique
class ImpeachmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    RESOLVED = "RESOLVED"


@unique
class ImpeachmentOutcome(str, Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"


@unique
class LawStatus(str, Enum):
    PROPOSED = "PROPOSED"
    ACTIVE = "ACTIVE"
    REJECTED = "REJECTED"
    EXPIRED = "EXPIRED"


@unique
class LawType(str, Enum):
    TAX_RATE = "TAX_RATE"
    GENERAL = "GENERAL"


@unique
class WarStatus(str, Enum):
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"


@unique
class LoanStatus(str, Enum):
    ACTIVE = "ACTIVE"
    REPAID = "REPAID"
    DEFAULTED = "DEFAULTED"
