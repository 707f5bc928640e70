"""Location graph: adjacency index, BFS routing, move legality and encounters.

The full node/edge set is small (tens to hundreds of nodes), so it is loaded
once into an ``AdjacencyIndex`` and reused for every BFS and legality check
in a tick. ``LocationGraph`` owns the cached index and rebuilds it on demand.

Usage:
    index = AdjacencyIndex.from_session(session)
    route = route_between_towns(index, from_town, to_town)   # Route or None
    move = resolve_move(session, index, character, target)   # MoveResult
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import or_
from sqlalchemy.orm import Session

from realmtick.core.enums import Domain, NodeType, OrderType, Race, WarStatus
from realmtick.core.rules import (
    PROFESSIONS_WITH_DOUBLE_MOVE,
    RACES_WITH_SKIP,
    RACIAL_ENCOUNTER_MODIFIERS,
)
from realmtick.store.models import (
    Character,
    CharacterProfession,
    DailyOrder,
    LocationNode,
    Monster,
    NodeConnection,
    Town,
    War,
)

if TYPE_CHECKING:
    from realmtick.config import TickConfig
    from realmtick.store.database import SessionFactory
    from realmtick.systems.rng import DeterministicRNG

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class NodeInfo:
    """Detached, immutable view of a location node."""

    id: int
    name: str
    node_type: NodeType
    region_id: int | None
    danger_level: int
    base_encounter_chance: float
    town_id: int | None

    @property
    def is_gate(self) -> bool:
        return self.node_type == NodeType.TOWN_GATE


@dataclass(frozen=True, slots=True)
class Route:
    path: tuple[int, ...]   # node ids, origin gate first
    distance: int           # edge count


@dataclass(frozen=True, slots=True)
class MovementCapabilities:
    can_skip: bool = False
    moves_per_tick: int = 1


@dataclass(frozen=True, slots=True)
class MoveResult:
    accepted: bool
    from_node_id: int | None
    to_node_id: int
    town_id: int | None = None
    skipped: bool = False
    reason: str = ""


@dataclass(frozen=True, slots=True)
class MonsterEncounter:
    monster_id: int
    name: str
    level: int
    node_id: int
    chance: float
    roll: float


@dataclass(frozen=True, slots=True)
class Hostile:
    character_id: int
    name: str
    level: int
    order_type: OrderType


# ---------------------------------------------------------------------------
# Adjacency index
# ---------------------------------------------------------------------------

class AdjacencyIndex:
    """In-memory adjacency list. Bidirectional edges are indexed both ways."""

    __slots__ = ("_nodes", "_adjacency", "_gates")

    def __init__(self, nodes: Iterable[NodeInfo], edges: Iterable[tuple[int, int, bool]]) -> None:
        self._nodes: dict[int, NodeInfo] = {n.id: n for n in nodes}
        adjacency: dict[int, set[int]] = {nid: set() for nid in self._nodes}
        for src, dst, bidirectional in edges:
            if src not in self._nodes or dst not in self._nodes:
                logger.warning("Ignoring edge %d -> %d with unknown endpoint", src, dst)
                continue
            adjacency[src].add(dst)
            if bidirectional:
                adjacency[dst].add(src)
        # Sorted tuples keep BFS tie-breaking deterministic
        self._adjacency: dict[int, tuple[int, ...]] = {k: tuple(sorted(v)) for k, v in adjacency.items()}
        self._gates: dict[int, int] = {}
        for node in sorted(self._nodes.values(), key=lambda n: n.id):
            if node.is_gate and node.town_id is not None:
                self._gates.setdefault(node.town_id, node.id)

    @classmethod
    def from_session(cls, session: Session) -> AdjacencyIndex:
        nodes = [
            NodeInfo(
                id=n.id,
                name=n.name,
                node_type=n.node_type,
                region_id=n.region_id,
                danger_level=n.danger_level,
                base_encounter_chance=n.base_encounter_chance,
                town_id=n.town_id,
            )
            for n in session.query(LocationNode).all()
        ]
        edges = [
            (c.from_node_id, c.to_node_id, c.bidirectional)
            for c in session.query(NodeConnection).all()
        ]
        return cls(nodes, edges)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def node(self, node_id: int) -> NodeInfo | None:
        return self._nodes.get(node_id)

    def neighbors(self, node_id: int) -> tuple[int, ...]:
        return self._adjacency.get(node_id, ())

    def two_hop(self, node_id: int) -> set[int]:
        """Nodes exactly reachable through one intermediate neighbor."""
        result: set[int] = set()
        for mid in self.neighbors(node_id):
            result.update(self.neighbors(mid))
        result.discard(node_id)
        return result

    def gate_for_town(self, town_id: int | None) -> int | None:
        if town_id is None:
            return None
        return self._gates.get(town_id)


class LocationGraph:
    """Thread-safe holder of a rebuildable ``AdjacencyIndex``."""

    __slots__ = ("_session_factory", "_index", "_lock")

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory
        self._index: AdjacencyIndex | None = None
        self._lock = threading.Lock()

    def index(self) -> AdjacencyIndex:
        with self._lock:
            if self._index is None:
                self._index = self._build()
            return self._index

    def rebuild(self) -> AdjacencyIndex:
        with self._lock:
            self._index = self._build()
            return self._index

    def _build(self) -> AdjacencyIndex:
        with self._session_factory() as session:
            index = AdjacencyIndex.from_session(session)
        logger.debug("Location graph indexed: %d nodes", len(index))
        return index


# ---------------------------------------------------------------------------
# Pathfinding
# ---------------------------------------------------------------------------

def shortest_path(index: AdjacencyIndex, start: int, goal: int) -> list[int] | None:
    """Breadth-first search over the adjacency index."""
    if start not in index or goal not in index:
        return None
    if start == goal:
        return [start]

    came_from: dict[int, int] = {}
    visited = {start}
    frontier: deque[int] = deque([start])
    while frontier:
        current = frontier.popleft()
        for nxt in index.neighbors(current):
            if nxt in visited:
                continue
            visited.add(nxt)
            came_from[nxt] = current
            if nxt == goal:
                return _reconstruct(came_from, start, goal)
            frontier.append(nxt)
    return None


def _reconstruct(came_from: dict[int, int], start: int, goal: int) -> list[int]:
    path = [goal]
    current = goal
    while current != start:
        current = came_from[current]
        path.append(current)
    path.reverse()
    return path


def route_between_towns(index: AdjacencyIndex, from_town_id: int, to_town_id: int) -> Route | None:
    """Shortest gate-to-gate route, or None when unreachable."""
    start = index.gate_for_town(from_town_id)
    goal = index.gate_for_town(to_town_id)
    if start is None or goal is None:
        return None
    path = shortest_path(index, start, goal)
    if path is None:
        return None
    return Route(path=tuple(path), distance=len(path) - 1)


# ---------------------------------------------------------------------------
# Movement
# ---------------------------------------------------------------------------

def movement_capabilities(session: Session, character: Character) -> MovementCapabilities:
    """Race and active-profession capability checks."""
    double_move = (
        session.query(CharacterProfession.id)
        .filter(CharacterProfession.character_id == character.id)
        .filter(CharacterProfession.is_active.is_(True))
        .filter(CharacterProfession.profession_type.in_(list(PROFESSIONS_WITH_DOUBLE_MOVE)))
        .first()
        is not None
    )
    return MovementCapabilities(
        can_skip=character.race in RACES_WITH_SKIP,
        moves_per_tick=2 if double_move else 1,
    )


def current_node_id(index: AdjacencyIndex, character: Character) -> int | None:
    """Explicit node, else the gate of the character's settlement."""
    if character.current_location_node_id is not None:
        return character.current_location_node_id
    return index.gate_for_town(character.current_town_id)


def resolve_move(
    session: Session,
    index: AdjacencyIndex,
    character: Character,
    target_node_id: int,
) -> MoveResult:
    """Validate and apply one move. Illegal targets leave the character untouched.

    A neighbor is always legal; a neighbor-of-a-neighbor only for races with
    the one-node skip.
    """
    origin = current_node_id(index, character)
    if origin is None:
        return MoveResult(False, None, target_node_id, reason="character has no position on the graph")

    target = index.node(target_node_id)
    if target is None:
        return MoveResult(False, origin, target_node_id, reason="unknown target node")

    skipped = False
    if target_node_id not in index.neighbors(origin):
        if character.race in RACES_WITH_SKIP and target_node_id in index.two_hop(origin):
            skipped = True
        else:
            return MoveResult(False, origin, target_node_id, reason="target is not adjacent")

    character.current_location_node_id = target_node_id
    # Gate arrival re-enters the settlement; anywhere else is the wild
    character.current_town_id = target.town_id if target.is_gate else None
    return MoveResult(True, origin, target_node_id, town_id=character.current_town_id, skipped=skipped)


# ---------------------------------------------------------------------------
# Encounters
# ---------------------------------------------------------------------------

def kingdom_of(session: Session, character: Character) -> int | None:
    town_id = character.home_town_id or character.current_town_id
    if town_id is None:
        return None
    town = session.get(Town, town_id)
    return town.kingdom_id if town is not None else None


def is_at_war(session: Session, kingdom_id: int | None) -> bool:
    if kingdom_id is None:
        return False
    return (
        session.query(War.id)
        .filter(War.status == WarStatus.ACTIVE)
        .filter(or_(War.attacker_kingdom_id == kingdom_id, War.defender_kingdom_id == kingdom_id))
        .first()
        is not None
    )


def kingdoms_at_war(session: Session, a: int | None, b: int | None) -> bool:
    if a is None or b is None or a == b:
        return False
    return (
        session.query(War.id)
        .filter(War.status == WarStatus.ACTIVE)
        .filter(or_(
            (War.attacker_kingdom_id == a) & (War.defender_kingdom_id == b),
            (War.attacker_kingdom_id == b) & (War.defender_kingdom_id == a),
        ))
        .first()
        is not None
    )


def encounter_chance(node: NodeInfo, race: Race, war_active: bool, war_multiplier: float) -> float:
    chance = max(0.0, node.base_encounter_chance + RACIAL_ENCOUNTER_MODIFIERS.get(race, 0.0))
    if war_active:
        chance = min(1.0, chance * war_multiplier)
    return chance


def check_node_encounter(
    session: Session,
    rng: DeterministicRNG,
    config: TickConfig,
    character: Character,
    node: NodeInfo,
    game_day: int,
    war_active: bool = False,
) -> MonsterEncounter | None:
    """Roll for a PvE encounter on arrival. No eligible monster is a non-event."""
    chance = encounter_chance(node, character.race, war_active, config.war_encounter_multiplier)
    roll = rng.next_float(Domain.ENCOUNTER, character.id, game_day, salt=node.id)
    if roll >= chance:
        return None

    low = max(1, character.level - config.encounter_level_below)
    high = character.level + config.encounter_level_above + node.danger_level
    in_range = session.query(Monster).filter(Monster.level >= low).filter(Monster.level <= high)

    pool: list[Monster] = []
    if node.region_id is not None:
        pool = in_range.filter(Monster.region_id == node.region_id).order_by(Monster.id).all()
    if not pool:
        pool = in_range.order_by(Monster.id).limit(config.monster_fallback_limit).all()
    if not pool:
        logger.debug("No monster fits level %d-%d at node %d", low, high, node.id)
        return None

    monster = rng.choice(Domain.MONSTER_PICK, character.id, game_day, pool, salt=node.id)
    return MonsterEncounter(
        monster_id=monster.id,
        name=monster.name,
        level=monster.level,
        node_id=node.id,
        chance=chance,
        roll=roll,
    )


def find_pvp_hostiles(
    session: Session,
    config: TickConfig,
    traveler: Character,
    node_id: int,
    game_day: int,
) -> list[Hostile]:
    """Characters stationed on *node_id* with a GUARD or AMBUSH order today.

    AMBUSH always engages. GUARD engages only travelers whose kingdom is at
    war with the guard's, unless ``pvp_guard_requires_war`` is off.
    """
    rows = (
        session.query(Character, DailyOrder.order_type)
        .join(DailyOrder, DailyOrder.character_id == Character.id)
        .filter(Character.current_location_node_id == node_id)
        .filter(Character.id != traveler.id)
        .filter(DailyOrder.game_day == game_day)
        .filter(DailyOrder.order_type.in_([OrderType.GUARD, OrderType.AMBUSH]))
        .order_by(Character.id)
        .all()
    )
    if not rows:
        return []

    traveler_kingdom = kingdom_of(session, traveler)
    hostiles: list[Hostile] = []
    for other, order_type in rows:
        if order_type == OrderType.GUARD and config.pvp_guard_requires_war:
            if not kingdoms_at_war(session, kingdom_of(session, other), traveler_kingdom):
                continue
        hostiles.append(Hostile(other.id, other.name, other.level, order_type))
    return hostiles
