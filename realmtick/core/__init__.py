"""Core enumerations, rule tables and domain errors."""

from realmtick.core.enums import (
    ActionKind,
    ActionStatus,
    Domain,
    FoodPriority,
    HungerState,
    Race,
)
from realmtick.core.errors import (
    ActionNotReadyError,
    AlreadyCollectedError,
    NoActiveActionError,
    RealmTickError,
)

__all__ = [
    "ActionKind",
    "ActionNotReadyError",
    "ActionStatus",
    "AlreadyCollectedError",
    "Domain",
    "FoodPriority",
    "HungerState",
    "NoActiveActionError",
    "Race",
    "RealmTickError",
]
