"""Timed actions: completion detection and the atomic collect guard.

Lifecycle: IN_PROGRESS -> COMPLETED (tick or lazy check on collect)
-> COLLECTED (exactly once, inside the collect transaction).

The flip to COLLECTED is a single conditional UPDATE whose affected-row
count decides the winner of concurrent collects. A loser gets
``AlreadyCollectedError`` and its transaction is rolled back, so rewards
are granted at most once per action.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from realmtick.core.enums import ActionKind, ActionStatus, ProfessionType
from realmtick.core.errors import (
    ActionInProgressError,
    ActionNotReadyError,
    AlreadyCollectedError,
    CharacterNotFoundError,
    NoActiveActionError,
)
from realmtick.store.models import (
    Character,
    CharacterProfession,
    Item,
    ItemTemplate,
    TimedAction,
    TownResource,
)
from realmtick.systems.formulas import apply_xp, gather_yield, hunger_modifier

if TYPE_CHECKING:
    from realmtick.engine.context import TickContext
    from realmtick.store.database import SessionFactory
    from realmtick.systems.game_day import GameClock
    from realmtick.utils.event_log import EventBatch, EventBus

logger = logging.getLogger(__name__)

OUTSTANDING = (ActionStatus.IN_PROGRESS, ActionStatus.COMPLETED)


@dataclass(frozen=True, slots=True)
class CollectedItem:
    template_id: int
    name: str
    quantity: int


@dataclass(slots=True)
class CollectResult:
    action_id: int
    kind: ActionKind
    items: list[CollectedItem] = field(default_factory=list)
    xp_gained: int = 0
    level: int = 1
    levels_gained: int = 0
    tool_broken: bool = False
    resource_depleted: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "action_id": self.action_id,
            "kind": self.kind.value,
            "items": [{"template_id": i.template_id, "name": i.name, "quantity": i.quantity} for i in self.items],
            "xp_gained": self.xp_gained,
            "level": self.level,
            "levels_gained": self.levels_gained,
            "tool_broken": self.tool_broken,
            "resource_depleted": self.resource_depleted,
        }


# ---------------------------------------------------------------------------
# Start / complete
# ---------------------------------------------------------------------------

def start_timed_action(
    session: Session,
    character_id: int,
    kind: ActionKind,
    *,
    now: datetime,
    duration: timedelta,
    result_template_id: int,
    base_quantity: int = 1,
    xp_reward: int = 0,
    profession_type: ProfessionType | None = None,
    town_resource_id: int | None = None,
    tool_item_id: int | None = None,
) -> TimedAction:
    """Create an IN_PROGRESS action; at most one outstanding per kind per character."""
    outstanding = (
        session.query(TimedAction)
        .filter(TimedAction.character_id == character_id)
        .filter(TimedAction.kind == kind)
        .filter(TimedAction.status.in_(OUTSTANDING))
        .first()
    )
    if outstanding is not None:
        raise ActionInProgressError(f"Character {character_id} already has a {kind.value.lower()} action outstanding")

    action = TimedAction(
        character_id=character_id,
        kind=kind,
        status=ActionStatus.IN_PROGRESS,
        started_at=now,
        completes_at=now + duration,
        result_template_id=result_template_id,
        base_quantity=base_quantity,
        xp_reward=xp_reward,
        profession_type=profession_type,
        town_resource_id=town_resource_id,
        tool_item_id=tool_item_id,
    )
    session.add(action)
    session.flush()
    return action


def complete_elapsed_actions(session: Session, now: datetime) -> int:
    """Flip every elapsed IN_PROGRESS action to COMPLETED. No rewards yet."""
    result = session.execute(
        update(TimedAction)
        .where(TimedAction.status == ActionStatus.IN_PROGRESS)
        .where(TimedAction.completes_at <= now)
        .values(status=ActionStatus.COMPLETED)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


def completion_step(ctx: TickContext) -> dict[str, Any]:
    with ctx.session_factory() as session:
        completed = complete_elapsed_actions(session, ctx.now)
        session.commit()
    logger.info("Timed actions: %d completed", completed)
    return {"completed": completed}


# ---------------------------------------------------------------------------
# Collect
# ---------------------------------------------------------------------------

class TimedActionResolver:
    """Player-facing collect with an exactly-once reward guarantee."""

    __slots__ = ("_session_factory", "_clock", "_events")

    def __init__(self, session_factory: SessionFactory, clock: GameClock, events: EventBus) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._events = events

    def collect(self, character_id: int, kind: ActionKind) -> CollectResult:
        now = self._clock.now()
        with self._session_factory() as session:
            if session.get(Character, character_id) is None:
                raise CharacterNotFoundError(f"Character {character_id} not found")
            action_id = self.find_collectable(session, character_id, kind, now)

        notifications = self._events.batch()
        with self._session_factory() as session:
            with session.begin():
                self.claim(session, action_id, now)
                result = self._materialize(session, action_id, notifications)

        notifications.flush()
        logger.info("Character %d collected %s action %d", character_id, kind.value, action_id)
        return result

    def find_collectable(self, session: Session, character_id: int, kind: ActionKind, now: datetime) -> int:
        """Return the id of the action to collect, completing an elapsed one lazily."""
        completed = (
            session.query(TimedAction)
            .filter(TimedAction.character_id == character_id)
            .filter(TimedAction.kind == kind)
            .filter(TimedAction.status == ActionStatus.COMPLETED)
            .order_by(TimedAction.completes_at)
            .first()
        )
        if completed is not None:
            return completed.id

        pending = (
            session.query(TimedAction)
            .filter(TimedAction.character_id == character_id)
            .filter(TimedAction.kind == kind)
            .filter(TimedAction.status == ActionStatus.IN_PROGRESS)
            .first()
        )
        if pending is None:
            raise NoActiveActionError(f"No active {kind.value.lower()} action")
        if pending.completes_at > now:
            raise ActionNotReadyError(f"{kind.value.title()} action is not yet complete")

        # Timer elapsed before the tick noticed; a concurrent flip is harmless
        session.execute(
            update(TimedAction)
            .where(TimedAction.id == pending.id)
            .where(TimedAction.status == ActionStatus.IN_PROGRESS)
            .values(status=ActionStatus.COMPLETED)
            .execution_options(synchronize_session=False)
        )
        session.commit()
        return pending.id

    @staticmethod
    def claim(session: Session, action_id: int, now: datetime) -> None:
        """Conditionally flip COMPLETED -> COLLECTED; lose the race loudly."""
        result = session.execute(
            update(TimedAction)
            .where(TimedAction.id == action_id)
            .where(TimedAction.status == ActionStatus.COMPLETED)
            .values(status=ActionStatus.COLLECTED, collected_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise AlreadyCollectedError(f"Action {action_id} was already collected")

    def _materialize(
        self,
        session: Session,
        action_id: int,
        notifications: EventBatch,
    ) -> CollectResult:
        action = session.get(TimedAction, action_id)
        character = session.get(Character, action.character_id)
        template = session.get(ItemTemplate, action.result_template_id)
        result = CollectResult(action_id=action.id, kind=action.kind, level=character.level)

        quantity = action.base_quantity
        if action.kind == ActionKind.GATHERING:
            quantity = self._gather(session, action, character, result, notifications)

        if quantity > 0:
            session.add(Item(
                template_id=template.id,
                owner_id=character.id,
                quantity=quantity,
                days_remaining=template.shelf_life_days,
                durability=template.max_durability,
            ))
            result.items.append(CollectedItem(template.id, template.name, quantity))

        if action.xp_reward > 0:
            self._grant_xp(session, action, character, result, notifications)
        return result

    @staticmethod
    def _gather(
        session: Session,
        action: TimedAction,
        character: Character,
        result: CollectResult,
        notifications: EventBatch,
    ) -> int:
        resource = session.get(TownResource, action.town_resource_id) if action.town_resource_id else None
        tool = session.get(Item, action.tool_item_id) if action.tool_item_id else None
        if tool is not None and tool.owner_id != character.id:
            tool = None

        abundance = resource.abundance if resource is not None else 100
        tool_bonus = tool.template.tool_bonus if tool is not None else 0.0
        quantity = gather_yield(action.base_quantity, abundance, tool_bonus, hunger_modifier(character.hunger_state))

        if resource is not None and quantity > 0:
            resource.abundance = max(0, resource.abundance - quantity)
            if resource.abundance == 0:
                result.resource_depleted = True
                notifications.emit("resource:depleted", {
                    "character_id": character.id,
                    "town_resource_id": resource.id,
                    "resource_type": resource.resource_type,
                })

        if tool is not None and tool.durability is not None:
            tool.durability -= 1
            if tool.durability <= 0:
                result.tool_broken = True
                notifications.emit("tool:broken", {
                    "character_id": character.id,
                    "item_id": tool.id,
                    "name": tool.template.name,
                })
                session.delete(tool)
        return quantity

    @staticmethod
    def _grant_xp(
        session: Session,
        action: TimedAction,
        character: Character,
        result: CollectResult,
        notifications: EventBatch,
    ) -> None:
        if action.profession_type is not None:
            profession = (
                session.query(CharacterProfession)
                .filter(CharacterProfession.character_id == character.id)
                .filter(CharacterProfession.profession_type == action.profession_type)
                .first()
            )
            if profession is not None:
                profession.xp += action.xp_reward

        level, xp, gained = apply_xp(character.level, character.xp, action.xp_reward)
        character.level, character.xp = level, xp
        result.xp_gained = action.xp_reward
        result.level = level
        result.levels_gained = gained
        if gained:
            notifications.emit("character:level_up", {"character_id": character.id, "level": level})
