"""Demo world used by ``python -m realmtick init-db --demo``.

Two kingdoms at war, three towns joined by a small road network, a handful
of characters with food, tools, gathering work and property. Enough for
every daily step to have something to do on the first tick.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from realmtick.core.enums import (
    ActionKind,
    BuildingType,
    FoodPriority,
    NodeType,
    OrderType,
    ProfessionTier,
    ProfessionType,
    Race,
    WarStatus,
)
from realmtick.store.models import (
    Building,
    Character,
    CharacterProfession,
    DailyOrder,
    Item,
    ItemTemplate,
    Kingdom,
    LocationNode,
    Monster,
    NodeConnection,
    Region,
    ServiceReputation,
    TimedAction,
    Town,
    TownResource,
    TravelState,
    War,
)

logger = logging.getLogger(__name__)

# name -> (category, is_food, food_category, shelf_life, buff, tool_bonus, max_durability)
_TEMPLATES: dict[str, tuple] = {
    "Bread": ("food", True, "grain", 3, None, 0.0, None),
    "Dried Meat": ("food", True, "meat", 10, None, 0.0, None),
    "Honey Cake": ("food", True, "sweet", 5, {"stat": "stamina", "amount": 5, "days": 1}, 0.0, None),
    "Soul Essence": ("essence", False, None, None, None, 0.0, None),
    "Maintenance Kit": ("kit", False, None, None, None, 0.0, None),
    "Iron Ore": ("material", False, None, None, None, 0.0, None),
    "Timber": ("material", False, None, None, None, 0.0, None),
    "Iron Pickaxe": ("tool", False, None, None, None, 0.25, 20),
}


def seed_demo_world(session: Session, now: datetime, game_day: int) -> dict[str, int]:
    """Populate an empty store. Returns counts of what was created."""
    templates = {
        name: ItemTemplate(
            name=name, category=cat, is_food=food, food_category=fcat,
            shelf_life_days=shelf, food_buff=buff, tool_bonus=bonus, max_durability=dur,
        )
        for name, (cat, food, fcat, shelf, buff, bonus, dur) in _TEMPLATES.items()
    }
    session.add_all(templates.values())

    # --- Kingdoms, region, towns ---
    north = Kingdom(name="Northmarch")
    south = Kingdom(name="Sunreach")
    vale = Region(name="Greyvale")
    session.add_all([north, south, vale])
    session.flush()
    session.add(War(attacker_kingdom_id=north.id, defender_kingdom_id=south.id, status=WarStatus.ACTIVE))

    towns = [
        Town(name="Highford", region_id=vale.id, kingdom_id=north.id, treasury=500),
        Town(name="Millbrook", region_id=vale.id, kingdom_id=north.id, treasury=200, tax_rate=0.05),
        Town(name="Solace", region_id=vale.id, kingdom_id=south.id, treasury=300),
    ]
    session.add_all(towns)
    session.flush()

    # --- Location graph: gate - road - crossroads - road - gate ---
    gates = [
        LocationNode(name=f"{t.name} Gate", node_type=NodeType.TOWN_GATE, region_id=vale.id, town_id=t.id)
        for t in towns
    ]
    crossroads = LocationNode(
        name="Greyvale Crossroads", node_type=NodeType.CROSSROADS, region_id=vale.id,
        danger_level=2, base_encounter_chance=0.15,
    )
    roads = [
        LocationNode(name=f"{t.name} Road", node_type=NodeType.WAYPOINT, region_id=vale.id,
                     danger_level=1, base_encounter_chance=0.10)
        for t in towns
    ]
    session.add_all([*gates, crossroads, *roads])
    session.flush()
    for gate, road in zip(gates, roads):
        session.add(NodeConnection(from_node_id=gate.id, to_node_id=road.id))
        session.add(NodeConnection(from_node_id=road.id, to_node_id=crossroads.id))

    session.add_all([
        Monster(name="Dire Wolf", level=2, region_id=vale.id),
        Monster(name="Bandit Scout", level=3, region_id=vale.id),
        Monster(name="Grave Hound", level=5, region_id=vale.id),
    ])

    # --- Characters ---
    highford, millbrook, solace = towns
    aldric = Character(name="Aldric", race=Race.HUMAN, level=3, gold=120,
                       home_town_id=highford.id, current_town_id=highford.id)
    brynn = Character(name="Brynn", race=Race.DWARF, level=2, gold=40,
                      home_town_id=highford.id, current_town_id=highford.id,
                      food_priority=FoodPriority.BEST_FIRST)
    cass = Character(name="Cass", race=Race.FAEFOLK, level=4, gold=60,
                     home_town_id=highford.id, current_town_id=None)
    morr = Character(name="Morr", race=Race.REVENANT, level=5, gold=80,
                     home_town_id=solace.id, current_town_id=solace.id)
    tessa = Character(name="Tessa", race=Race.FORGEBORN, level=3, gold=15,
                      home_town_id=millbrook.id, current_town_id=millbrook.id)
    characters = [aldric, brynn, cass, morr, tessa]
    session.add_all(characters)
    session.flush()
    highford.mayor_id = aldric.id

    def give(owner: Character, name: str, quantity: int = 1, days: int | None = None) -> Item:
        tpl = templates[name]
        item = Item(
            template_id=tpl.id, owner_id=owner.id, quantity=quantity,
            days_remaining=days if days is not None else tpl.shelf_life_days,
            durability=tpl.max_durability,
        )
        session.add(item)
        return item

    give(aldric, "Bread", 3, days=1)
    give(aldric, "Dried Meat", 2)
    give(brynn, "Honey Cake", 1)
    give(cass, "Dried Meat", 4)
    give(morr, "Soul Essence", 3)
    give(tessa, "Maintenance Kit", 1)
    pickaxe = give(brynn, "Iron Pickaxe")
    session.flush()

    # --- Work in progress ---
    ore = TownResource(town_id=highford.id, resource_type="ore",
                       yields_template_id=templates["Iron Ore"].id, abundance=80, respawn_rate=2.0)
    session.add(ore)
    session.flush()
    session.add(TimedAction(
        character_id=brynn.id, kind=ActionKind.GATHERING,
        started_at=now - timedelta(hours=5), completes_at=now - timedelta(hours=1),
        result_template_id=templates["Iron Ore"].id, base_quantity=4, xp_reward=30,
        profession_type=ProfessionType.MINER, town_resource_id=ore.id, tool_item_id=pickaxe.id,
    ))

    session.add_all([
        CharacterProfession(character_id=brynn.id, profession_type=ProfessionType.MINER,
                            tier=ProfessionTier.JOURNEYMAN),
        CharacterProfession(character_id=aldric.id, profession_type=ProfessionType.MERCHANT,
                            tier=ProfessionTier.CRAFTSMAN),
        ServiceReputation(character_id=aldric.id, profession_type=ProfessionType.MERCHANT,
                          reputation=45, last_active_day=game_day),
    ])

    session.add_all([
        Building(name="Aldric's Shop", owner_id=aldric.id, town_id=highford.id,
                 building_type=BuildingType.SHOP, level=1),
        Building(name="Tessa's Cottage", owner_id=tessa.id, town_id=millbrook.id,
                 building_type=BuildingType.HOUSE_SMALL, level=1, condition=60),
    ])

    # Cass is on the road from Highford to Solace; Morr waits in ambush at the crossroads
    route = [gates[0].id, roads[0].id, crossroads.id, roads[2].id, gates[2].id]
    cass.current_location_node_id = route[0]
    session.add(TravelState(character_id=cass.id, origin_town_id=highford.id,
                            destination_town_id=solace.id, route=route, route_index=0, started_at=now))
    morr.current_town_id = None
    morr.current_location_node_id = crossroads.id
    session.add(DailyOrder(character_id=morr.id, game_day=game_day, order_type=OrderType.AMBUSH))

    session.commit()
    counts = {
        "towns": len(towns),
        "nodes": len(gates) + len(roads) + 1,
        "characters": len(characters),
        "item_templates": len(templates),
    }
    logger.info("Demo world seeded: %s", counts)
    return counts
