"""Sustenance: spoilage, daily consumption and rest recovery.

Food-eating races walk the 4-state hunger machine driven by days since the
last meal. Races listed in ``ALT_SUSTENANCE`` share one parametrized decay
counter machine instead (consumable names, counter field, cap), and their
counter is mirrored into ``hunger_state`` so downstream readers see one field.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Sequence

from sqlalchemy.orm import Session

from realmtick.core.enums import FoodPriority, HungerState
from realmtick.core.rules import (
    ALT_SUSTENANCE,
    HUNGER_THRESHOLDS,
    NO_EXPIRY_SORT_KEY,
    STAGE_TO_HUNGER,
    SustenanceProfile,
)
from realmtick.store.models import Character, Item, ItemTemplate, MarketListing

if TYPE_CHECKING:
    from realmtick.engine.context import TickContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SpoilageReport:
    decremented: int = 0
    spoiled: int = 0
    by_town: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ConsumptionResult:
    character_id: int
    consumed: str | None            # template name eaten, None if nothing
    buff: dict[str, Any] | None
    hunger_state: HungerState
    days_since_last_meal: int


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

def hunger_state_for(days_since_last_meal: int) -> HungerState:
    for max_days, state in HUNGER_THRESHOLDS:
        if days_since_last_meal <= max_days:
            return state
    return HungerState.INCAPACITATED


def _expiry_key(item: Item) -> int:
    return item.days_remaining if item.days_remaining is not None else NO_EXPIRY_SORT_KEY


def _is_buffed(item: Item) -> bool:
    return bool(item.template.food_buff)


def select_food(
    foods: Sequence[Item],
    policy: FoodPriority,
    preferred_template_id: int | None = None,
    preferred_category: str | None = None,
) -> Item | None:
    """Pick the single food item a character eats today, or None."""
    if not foods:
        return None

    expiring_first = sorted(foods, key=lambda i: (_expiry_key(i), _is_buffed(i), i.id))

    match policy:
        case FoodPriority.EXPIRING_FIRST:
            return expiring_first[0]

        case FoodPriority.BEST_FIRST:
            return sorted(foods, key=lambda i: (not _is_buffed(i), _expiry_key(i), i.id))[0]

        case FoodPriority.SPECIFIC_ITEM:
            if preferred_template_id is not None:
                for item in expiring_first:
                    if item.template_id == preferred_template_id:
                        return item
            return expiring_first[0]

        case FoodPriority.CATEGORY_ONLY:
            if preferred_category is None:
                return None
            for item in expiring_first:
                if item.template.food_category == preferred_category:
                    return item
            return None

    return expiring_first[0]


def _consume_one(session: Session, item: Item) -> dict[str, Any] | None:
    """Eat one unit; delete the item when its last unit is used."""
    buff = item.template.food_buff
    if item.quantity > 1:
        item.quantity -= 1
    else:
        session.query(MarketListing).filter(MarketListing.item_id == item.id).delete(synchronize_session=False)
        session.delete(item)
    return dict(buff) if buff else None


# ---------------------------------------------------------------------------
# Spoilage
# ---------------------------------------------------------------------------

def process_spoilage(session: Session) -> SpoilageReport:
    """Age every perishable item by one day; destroy what reaches zero."""
    report = SpoilageReport()
    perishables = session.query(Item).filter(Item.days_remaining.is_not(None)).all()
    if not perishables:
        return report

    owner_towns = dict(session.query(Character.id, Character.current_town_id).all())
    spoiled: list[Item] = []
    by_town: Counter[str] = Counter()

    for item in perishables:
        item.days_remaining -= 1
        if item.days_remaining <= 0:
            spoiled.append(item)
            town_id = owner_towns.get(item.owner_id)
            by_town[str(town_id) if town_id is not None else "unknown"] += 1
        else:
            report.decremented += 1

    if spoiled:
        session.query(MarketListing).filter(MarketListing.item_id.in_([i.id for i in spoiled])).delete(
            synchronize_session=False
        )
        for item in spoiled:
            session.delete(item)

    report.spoiled = len(spoiled)
    report.by_town = dict(by_town)
    return report


# ---------------------------------------------------------------------------
# Consumption
# ---------------------------------------------------------------------------

def _food_inventory(session: Session, character_id: int) -> list[Item]:
    return (
        session.query(Item)
        .join(ItemTemplate, Item.template_id == ItemTemplate.id)
        .filter(Item.owner_id == character_id)
        .filter(ItemTemplate.is_food.is_(True))
        .filter(Item.quantity > 0)
        .all()
    )


def process_consumption(session: Session, character: Character) -> ConsumptionResult:
    """Feed a food-eating character for one day."""
    food = select_food(
        _food_inventory(session, character.id),
        character.food_priority,
        preferred_template_id=character.preferred_food_template_id,
        preferred_category=character.preferred_food_category,
    )

    if food is not None:
        name = food.template.name
        buff = _consume_one(session, food)
        character.days_since_last_meal = 0
        character.hunger_state = HungerState.FED
        return ConsumptionResult(character.id, name, buff, HungerState.FED, 0)

    character.days_since_last_meal += 1
    character.hunger_state = hunger_state_for(character.days_since_last_meal)
    return ConsumptionResult(
        character.id, None, None, character.hunger_state, character.days_since_last_meal,
    )


def process_alt_sustenance(session: Session, character: Character, profile: SustenanceProfile) -> ConsumptionResult:
    """Same shape as food, but a capped 0..cap decay counter stands in for hunger."""
    candidates = (
        session.query(Item)
        .join(ItemTemplate, Item.template_id == ItemTemplate.id)
        .filter(Item.owner_id == character.id)
        .filter(ItemTemplate.name.in_(profile.consumables))
        .filter(Item.quantity > 0)
        .all()
    )
    candidates.sort(key=lambda i: (profile.consumables.index(i.template.name), _expiry_key(i), i.id))

    stage: int = getattr(character, profile.counter_field)
    consumed: str | None = None
    buff: dict[str, Any] | None = None

    if candidates:
        item = candidates[0]
        consumed = item.template.name
        buff = _consume_one(session, item)
        stage = 0
    else:
        stage = min(profile.cap, stage + 1)

    setattr(character, profile.counter_field, stage)
    character.hunger_state = STAGE_TO_HUNGER[min(stage, len(STAGE_TO_HUNGER) - 1)]
    return ConsumptionResult(character.id, consumed, buff, character.hunger_state, character.days_since_last_meal)


def sustain(session: Session, character: Character) -> ConsumptionResult:
    """Dispatch to the sustenance variant for the character's race."""
    profile = ALT_SUSTENANCE.get(character.race)
    if profile is not None:
        return process_alt_sustenance(session, character, profile)
    return process_consumption(session, character)


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------

def spoilage_step(ctx: TickContext) -> dict[str, Any]:
    with ctx.session_factory() as session:
        report = process_spoilage(session)
        session.commit()
    logger.info("Spoilage: %d items aged, %d spoiled", report.decremented, report.spoiled)
    return {"decremented": report.decremented, "spoiled": report.spoiled, "by_town": report.by_town}


def consumption_step(ctx: TickContext) -> dict[str, Any]:
    fed = hungry = 0
    with ctx.session_factory() as session:
        for character in session.query(Character).order_by(Character.id).all():
            result = sustain(session, character)
            if result.consumed is not None:
                fed += 1
            else:
                hungry += 1
        session.commit()
    return {"fed": fed, "missed": hungry}


def rest_step(ctx: TickContext) -> dict[str, Any]:
    """FED characters recover a share of max HP and wake well rested."""
    rested = 0
    fraction = ctx.config.rest_heal_fraction
    with ctx.session_factory() as session:
        for character in session.query(Character).all():
            if character.hunger_state == HungerState.FED:
                heal = math.ceil(character.max_hp * fraction)
                character.hp = min(character.max_hp, character.hp + heal)
                character.well_rested = True
                rested += 1
            else:
                character.well_rested = False
        session.commit()
    return {"rested": rested}
