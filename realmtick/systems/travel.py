"""Daily travel: advance every traveler along its planned route.

Each traveler moves up to ``moves_per_tick`` times. A skip-capable race covers
two route nodes per move. Every arrival outside a settlement checks PvP first
(a hostile halts the traveler for the day), then rolls a PvE encounter. Losing
a fight sends the traveler home hurt; winning grants XP and the journey goes on.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from realmtick.core.enums import Domain, HungerState, TravelStatus
from realmtick.store.models import Character, TravelState
from realmtick.systems.formulas import apply_xp, encounter_win_chance, hunger_modifier
from realmtick.systems.location_graph import (
    AdjacencyIndex,
    check_node_encounter,
    find_pvp_hostiles,
    is_at_war,
    kingdom_of,
    movement_capabilities,
    resolve_move,
)

if TYPE_CHECKING:
    from realmtick.engine.context import TickContext
    from realmtick.utils.event_log import EventBatch

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TravelSummary:
    travelers: int = 0
    moves: int = 0
    arrived: int = 0
    encounters_won: int = 0
    encounters_lost: int = 0
    pvp_halts: int = 0
    incapacitated: int = 0
    rejected: int = 0


def advance_traveler(
    ctx: TickContext,
    session: Session,
    index: AdjacencyIndex,
    state: TravelState,
    character: Character,
    summary: TravelSummary,
    events: EventBatch,
) -> None:
    if character.hunger_state == HungerState.INCAPACITATED:
        summary.incapacitated += 1
        return

    caps = movement_capabilities(session, character)
    war_active = is_at_war(session, kingdom_of(session, character))
    route = list(state.route)
    last = len(route) - 1

    for _ in range(caps.moves_per_tick):
        remaining = last - state.route_index
        if remaining <= 0:
            break
        stride = 2 if caps.can_skip and remaining >= 2 else 1
        target = route[state.route_index + stride]

        move = resolve_move(session, index, character, target)
        if not move.accepted:
            summary.rejected += 1
            logger.warning(
                "Traveler %d cannot move %s -> %s: %s",
                character.id, move.from_node_id, target, move.reason,
            )
            return
        state.route_index += stride
        summary.moves += 1

        if state.route_index >= last:
            state.status = TravelStatus.ARRIVED
            summary.arrived += 1
            events.emit("travel:arrived", {
                "character_id": character.id,
                "town_id": state.destination_town_id,
            })
            return

        node = index.node(target)
        if node is None or node.is_gate:
            continue

        hostiles = find_pvp_hostiles(session, ctx.config, character, node.id, ctx.game_day)
        if hostiles:
            summary.pvp_halts += 1
            events.emit("travel:pvp_encounter", {
                "character_id": character.id,
                "node_id": node.id,
                "hostiles": [{"character_id": h.character_id, "order": h.order_type.value} for h in hostiles],
            })
            return

        encounter = check_node_encounter(
            session, ctx.rng, ctx.config, character, node, ctx.game_day, war_active=war_active,
        )
        if encounter is None:
            continue

        win_chance = encounter_win_chance(character.level, encounter.level, hunger_modifier(character.hunger_state))
        won = ctx.rng.next_bool(Domain.COMBAT, character.id, ctx.game_day, win_chance, salt=node.id)
        payload = {"character_id": character.id, "node_id": node.id, "monster": asdict(encounter)}

        if won:
            xp = encounter.level * ctx.config.encounter_xp_per_level
            level, character.xp, gained = apply_xp(character.level, character.xp, xp)
            character.level = level
            summary.encounters_won += 1
            events.emit("travel:encounter_won", {**payload, "xp": xp})
            if gained:
                events.emit("character:level_up", {"character_id": character.id, "level": level})
            continue

        character.hp = max(1, character.hp // 2)
        character.current_location_node_id = index.gate_for_town(state.origin_town_id)
        character.current_town_id = state.origin_town_id
        state.status = TravelStatus.ABORTED
        summary.encounters_lost += 1
        events.emit("travel:encounter_lost", payload)
        return


def travel_step(ctx: TickContext) -> dict[str, Any]:
    summary = TravelSummary()
    outbox = ctx.events.batch()
    with ctx.session_factory() as session:
        travelers = (
            session.query(TravelState, Character)
            .join(Character, Character.id == TravelState.character_id)
            .filter(TravelState.status == TravelStatus.TRAVELING)
            .order_by(TravelState.id)
            .all()
        )
        if travelers:
            index = AdjacencyIndex.from_session(session)
            for state, character in travelers:
                summary.travelers += 1
                advance_traveler(ctx, session, index, state, character, summary, outbox)
        session.commit()
    outbox.flush()
    logger.info(
        "Travel: %d travelers, %d arrived, %d won, %d lost, %d halted",
        summary.travelers, summary.arrived, summary.encounters_won,
        summary.encounters_lost, summary.pvp_halts,
    )
    return asdict(summary)
