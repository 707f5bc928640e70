"""WorldBuilder — test fixture for the daily tick systems.

Creates an in-memory store, a frozen game clock and an event bus, with small
``add_*`` helpers for the records each test needs.

Usage:
    world = WorldBuilder()
    town = world.add_town("Highford")
    hero = world.add_character("Aldric", town=town)
    world.give(hero, "Bread", days_remaining=1)
    result = world.run_step(sustenance.consumption_step)
    assert world.get(Character, hero.id).hunger_state == HungerState.FED
"""

from __future__ import annotations

import os
import sys
from datetime import datetime
from typing import Any, Callable

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from realmtick.config import TickConfig
from realmtick.core.enums import NodeType, Race
from realmtick.engine.context import TickContext
from realmtick.store.database import create_db_engine, init_schema, make_session_factory
from realmtick.store.models import (
    Character,
    Item,
    ItemTemplate,
    Kingdom,
    LocationNode,
    NodeConnection,
    Region,
    Town,
)
from realmtick.systems.game_day import GameClock
from realmtick.systems.rng import DeterministicRNG
from realmtick.utils.event_log import EventBus, EventLog, TickEvent

FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0)


class FrozenSource:
    """Callable time source tests can move by hand."""

    def __init__(self, at: datetime = FIXED_NOW) -> None:
        self.at = at

    def __call__(self) -> datetime:
        return self.at


class WorldBuilder:
    """Minimal world with a full store and tick context.

    Records added through the helpers are committed immediately and returned
    detached (``expire_on_commit=False``), so their ids and columns stay
    readable. Re-read with ``get`` to observe what a step changed.
    """

    def __init__(self, seed: int = 42, now: datetime = FIXED_NOW, **config_overrides: Any) -> None:
        defaults: dict[str, Any] = dict(
            database_url="sqlite://",
            world_seed=seed,
            scheduler_enabled=False,
        )
        defaults.update(config_overrides)
        self.config = TickConfig(**defaults)

        self.engine = create_db_engine(self.config.database_url)
        init_schema(self.engine)
        self.session_factory = make_session_factory(self.engine)

        self.source = FrozenSource(now)
        self.clock = GameClock(self.config.epoch, source=self.source)
        self.event_log = EventLog()
        self.events = EventBus(self.event_log)
        self.rng = DeterministicRNG(seed)
        self._templates: dict[str, ItemTemplate] = {}

    # ------------------------------------------------------------------
    # Store helpers
    # ------------------------------------------------------------------

    def add(self, *records: Any) -> Any:
        with self.session_factory() as session:
            session.add_all(records)
            session.commit()
        return records[0] if len(records) == 1 else records

    def get(self, model: type, pk: Any) -> Any:
        with self.session_factory() as session:
            return session.get(model, pk)

    def all(self, model: type) -> list[Any]:
        with self.session_factory() as session:
            return session.query(model).order_by(model.id).all()

    def add_kingdom(self, name: str = "Northmarch") -> Kingdom:
        return self.add(Kingdom(name=name))

    def add_region(self, name: str = "Greyvale") -> Region:
        return self.add(Region(name=name))

    def add_town(self, name: str = "Highford", kingdom: Kingdom | None = None, **fields: Any) -> Town:
        return self.add(Town(name=name, kingdom_id=kingdom.id if kingdom else None, **fields))

    def add_character(self, name: str = "Aldric", town: Town | None = None, race: Race = Race.HUMAN, **fields: Any) -> Character:
        town_id = town.id if town else None
        fields.setdefault("home_town_id", town_id)
        fields.setdefault("current_town_id", town_id)
        return self.add(Character(name=name, race=race, **fields))

    def template(self, name: str, **fields: Any) -> ItemTemplate:
        """Get-or-create an item template by name."""
        if name not in self._templates:
            self._templates[name] = self.add(ItemTemplate(name=name, **fields))
        return self._templates[name]

    def food(self, name: str = "Bread", shelf_life_days: int | None = 3, **fields: Any) -> ItemTemplate:
        fields.setdefault("food_category", "grain")
        return self.template(name, category="food", is_food=True, shelf_life_days=shelf_life_days, **fields)

    def give(self, owner: Character, template: ItemTemplate | str, quantity: int = 1, **fields: Any) -> Item:
        tpl = self.template(template) if isinstance(template, str) else template
        fields.setdefault("days_remaining", tpl.shelf_life_days)
        fields.setdefault("durability", tpl.max_durability)
        return self.add(Item(template_id=tpl.id, owner_id=owner.id, quantity=quantity, **fields))

    def add_node(self, name: str, node_type: NodeType = NodeType.WAYPOINT, **fields: Any) -> LocationNode:
        return self.add(LocationNode(name=name, node_type=node_type, **fields))

    def add_gate(self, town: Town, **fields: Any) -> LocationNode:
        return self.add_node(f"{town.name} Gate", NodeType.TOWN_GATE, town_id=town.id, **fields)

    def connect(self, *nodes: LocationNode, bidirectional: bool = True) -> None:
        """Connect consecutive nodes into a chain."""
        self.add(*[
            NodeConnection(from_node_id=a.id, to_node_id=b.id, bidirectional=bidirectional)
            for a, b in zip(nodes, nodes[1:])
        ])

    # ------------------------------------------------------------------
    # Running
    # ------------------------------------------------------------------

    @property
    def now(self) -> datetime:
        return self.clock.now()

    @property
    def game_day(self) -> int:
        return self.clock.game_day()

    def ctx(self) -> TickContext:
        now = self.clock.now()
        return TickContext(
            config=self.config,
            session_factory=self.session_factory,
            clock=self.clock,
            rng=self.rng,
            events=self.events,
            now=now,
            game_day=self.clock.game_day(now),
        )

    def run_step(self, fn: Callable[[TickContext], Any]) -> Any:
        return fn(self.ctx())

    def events_named(self, name: str) -> list[TickEvent]:
        return self.event_log.named(name)
