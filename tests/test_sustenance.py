"""Tests for sustenance: spoilage, daily consumption, alternate races, rest.

Covers:
- Days-since-meal to hunger state thresholds
- Food selection policies (expiring first, best first, specific, category)
- Spoilage is monotonic and removes spoiled items with their listings
- Revenant / Forgeborn decay counters mirror into hunger state
- Rest recovery only for FED characters
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from realmtick.core.enums import FoodPriority, HungerState, Race
from realmtick.store.models import Character, Item, ItemTemplate, MarketListing
from realmtick.systems import sustenance
from realmtick.systems.sustenance import hunger_state_for, select_food
from tests.helpers.world_builder import WorldBuilder


def _food(item_id: int, days: int | None, buff: dict | None = None, category: str = "grain", template_id: int = 1) -> Item:
    tpl = ItemTemplate(id=template_id, name=f"food-{item_id}", is_food=True, food_category=category, food_buff=buff)
    return Item(id=item_id, template_id=template_id, template=tpl, quantity=1, days_remaining=days)


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class TestHungerThresholds:
    def test_fed_on_day_zero(self):
        assert hunger_state_for(0) == HungerState.FED

    def test_hungry_after_one_or_two_days(self):
        assert hunger_state_for(1) == HungerState.HUNGRY
        assert hunger_state_for(2) == HungerState.HUNGRY

    def test_starving_after_three_or_four_days(self):
        assert hunger_state_for(3) == HungerState.STARVING
        assert hunger_state_for(4) == HungerState.STARVING

    def test_incapacitated_from_day_five(self):
        assert hunger_state_for(5) == HungerState.INCAPACITATED
        assert hunger_state_for(30) == HungerState.INCAPACITATED


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestSelectFood:
    def test_empty_inventory(self):
        assert select_food([], FoodPriority.EXPIRING_FIRST) is None

    def test_expiring_first_picks_soonest(self):
        soon, later = _food(1, 1), _food(2, 3)
        assert select_food([later, soon], FoodPriority.EXPIRING_FIRST) is soon

    def test_non_perishable_sorts_last(self):
        forever, soon = _food(1, None), _food(2, 8)
        assert select_food([forever, soon], FoodPriority.EXPIRING_FIRST) is soon

    def test_best_first_prefers_buffed(self):
        plain = _food(1, 1)
        cake = _food(2, 5, buff={"stat": "stamina", "amount": 5})
        assert select_food([plain, cake], FoodPriority.BEST_FIRST) is cake

    def test_specific_item_falls_back_to_expiring(self):
        soon = _food(1, 1, template_id=1)
        wanted = _food(2, 4, template_id=7)
        assert select_food([soon, wanted], FoodPriority.SPECIFIC_ITEM, preferred_template_id=7) is wanted
        assert select_food([soon], FoodPriority.SPECIFIC_ITEM, preferred_template_id=7) is soon

    def test_category_only_refuses_other_categories(self):
        bread = _food(1, 1, category="grain")
        meat = _food(2, 5, category="meat")
        assert select_food([bread, meat], FoodPriority.CATEGORY_ONLY, preferred_category="meat") is meat
        assert select_food([bread], FoodPriority.CATEGORY_ONLY, preferred_category="meat") is None


# ---------------------------------------------------------------------------
# Spoilage
# ---------------------------------------------------------------------------

class TestSpoilage:
    def test_days_remaining_decrements(self):
        world = WorldBuilder()
        hero = world.add_character()
        bread = world.give(hero, world.food("Bread"), days_remaining=3)

        summary = world.run_step(sustenance.spoilage_step)

        assert summary["decremented"] == 1
        assert world.get(Item, bread.id).days_remaining == 2

    def test_spoiled_item_and_listing_removed(self):
        world = WorldBuilder()
        town = world.add_town()
        hero = world.add_character(town=town)
        bread = world.give(hero, world.food("Bread"), days_remaining=1)
        world.add(MarketListing(item_id=bread.id, seller_id=hero.id, town_id=town.id, price=3))

        summary = world.run_step(sustenance.spoilage_step)

        assert summary["spoiled"] == 1
        assert summary["by_town"] == {str(town.id): 1}
        assert world.get(Item, bread.id) is None
        assert world.all(MarketListing) == []

    def test_non_perishables_untouched(self):
        world = WorldBuilder()
        hero = world.add_character()
        ore = world.give(hero, world.template("Iron Ore"), quantity=5)

        world.run_step(sustenance.spoilage_step)

        assert world.get(Item, ore.id).days_remaining is None
        assert world.get(Item, ore.id).quantity == 5

    def test_never_increases(self):
        world = WorldBuilder()
        hero = world.add_character()
        meat = world.give(hero, world.food("Dried Meat", shelf_life_days=10), days_remaining=10)

        seen = []
        for _ in range(4):
            world.run_step(sustenance.spoilage_step)
            seen.append(world.get(Item, meat.id).days_remaining)
        assert seen == [9, 8, 7, 6]


# ---------------------------------------------------------------------------
# Consumption
# ---------------------------------------------------------------------------

class TestConsumption:
    def test_eating_resets_hunger(self):
        world = WorldBuilder()
        hero = world.add_character(days_since_last_meal=3, hunger_state=HungerState.STARVING)
        world.give(hero, world.food("Bread"), quantity=2, days_remaining=2)

        summary = world.run_step(sustenance.consumption_step)

        fresh = world.get(Character, hero.id)
        assert summary == {"fed": 1, "missed": 0}
        assert fresh.hunger_state == HungerState.FED
        assert fresh.days_since_last_meal == 0
        assert world.all(Item)[0].quantity == 1

    def test_last_unit_deletes_item(self):
        world = WorldBuilder()
        hero = world.add_character()
        world.give(hero, world.food("Bread"), quantity=1)

        world.run_step(sustenance.consumption_step)

        assert world.all(Item) == []

    def test_no_food_escalates_to_incapacitated(self):
        world = WorldBuilder()
        hero = world.add_character()

        states = []
        for _ in range(5):
            world.run_step(sustenance.consumption_step)
            states.append(world.get(Character, hero.id).hunger_state)

        assert states == [
            HungerState.HUNGRY,
            HungerState.HUNGRY,
            HungerState.STARVING,
            HungerState.STARVING,
            HungerState.INCAPACITATED,
        ]

    def test_category_only_skips_meal_without_match(self):
        world = WorldBuilder()
        hero = world.add_character(food_priority=FoodPriority.CATEGORY_ONLY, preferred_food_category="meat")
        world.give(hero, world.food("Bread", food_category="grain"))

        world.run_step(sustenance.consumption_step)

        assert world.get(Character, hero.id).days_since_last_meal == 1
        assert len(world.all(Item)) == 1

    def test_spoilage_runs_before_eating(self):
        """Bread that spoils today is gone before breakfast; dried meat is eaten instead."""
        world = WorldBuilder()
        hero = world.add_character()
        bread = world.give(hero, world.food("Bread"), days_remaining=1)
        meat = world.give(hero, world.food("Dried Meat", shelf_life_days=10, food_category="meat"), days_remaining=6)

        world.run_step(sustenance.spoilage_step)
        world.run_step(sustenance.consumption_step)

        assert world.get(Item, bread.id) is None
        assert world.get(Item, meat.id) is None
        assert world.get(Character, hero.id).hunger_state == HungerState.FED


# ---------------------------------------------------------------------------
# Alternate sustenance
# ---------------------------------------------------------------------------

class TestAltSustenance:
    def test_revenant_prefers_refined_essence(self):
        world = WorldBuilder()
        ghost = world.add_character("Morr", race=Race.REVENANT, soul_fade_stage=2)
        plain = world.give(ghost, world.template("Soul Essence"))
        refined = world.give(ghost, world.template("Refined Soul Essence"))

        world.run_step(sustenance.consumption_step)

        fresh = world.get(Character, ghost.id)
        assert fresh.soul_fade_stage == 0
        assert fresh.hunger_state == HungerState.FED
        assert world.get(Item, refined.id) is None
        assert world.get(Item, plain.id) is not None

    def test_revenant_ignores_bread(self):
        world = WorldBuilder()
        ghost = world.add_character("Morr", race=Race.REVENANT)
        world.give(ghost, world.food("Bread"))

        world.run_step(sustenance.consumption_step)

        fresh = world.get(Character, ghost.id)
        assert fresh.soul_fade_stage == 1
        assert fresh.hunger_state == HungerState.HUNGRY
        assert len(world.all(Item)) == 1

    def test_forgeborn_counter_caps(self):
        world = WorldBuilder()
        golem = world.add_character("Tessa", race=Race.FORGEBORN)

        for _ in range(6):
            world.run_step(sustenance.consumption_step)

        fresh = world.get(Character, golem.id)
        assert fresh.structural_decay_stage == 3
        assert fresh.hunger_state == HungerState.INCAPACITATED


# ---------------------------------------------------------------------------
# Rest
# ---------------------------------------------------------------------------

class TestRest:
    def test_fed_characters_heal(self):
        world = WorldBuilder()
        fed = world.add_character("Fed", hp=50, max_hp=100)
        hungry = world.add_character("Hungry", hp=50, max_hp=100, hunger_state=HungerState.HUNGRY)

        summary = world.run_step(sustenance.rest_step)

        assert summary == {"rested": 1}
        assert world.get(Character, fed.id).hp == 65
        assert world.get(Character, fed.id).well_rested is True
        assert world.get(Character, hungry.id).hp == 50
        assert world.get(Character, hungry.id).well_rested is False

    def test_heal_capped_at_max(self):
        world = WorldBuilder()
        hero = world.add_character(hp=95, max_hp=100)

        world.run_step(sustenance.rest_step)

        assert world.get(Character, hero.id).hp == 100
