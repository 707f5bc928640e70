"""The ordered step registry.

Order is part of game balance: later steps assume earlier ones already ran
this tick. Spoilage precedes eating (nobody eats food that spoiled today);
eating precedes travel and rest (hunger feeds combat odds and recovery);
timed-action completion precedes any collect made after the tick;
governance laws precede elections so an enacted tax rate applies tomorrow.
Reordering is a balance change, not a refactor.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable

from realmtick.systems import economy, governance, structures, sustenance, timed_actions, travel

if TYPE_CHECKING:
    from realmtick.engine.context import TickContext

StepFn = Callable[["TickContext"], "dict[str, Any] | None"]


@dataclass(frozen=True, slots=True)
class Step:
    name: str
    fn: StepFn


DEFAULT_STEPS: tuple[Step, ...] = (
    Step("food-spoilage", sustenance.spoilage_step),
    Step("food-consumption", sustenance.consumption_step),
    Step("timed-action-completion", timed_actions.completion_step),
    Step("construction-progress", structures.construction_step),
    Step("travel", travel.travel_step),
    Step("building-maintenance", structures.maintenance_step),
    Step("property-tax", structures.property_tax_step),
    Step("resource-regeneration", structures.regeneration_step),
    Step("governance-laws", governance.laws_step),
    Step("elections", governance.elections_step),
    Step("impeachments", governance.impeachments_step),
    Step("rest-recovery", sustenance.rest_step),
    Step("npc-income", economy.npc_income_step),
    Step("loan-processing", economy.loans_step),
    Step("reputation-decay", economy.reputation_step),
)


def default_steps() -> tuple[Step, ...]:
    return DEFAULT_STEPS


def step_names(steps: tuple[Step, ...] | list[Step] = DEFAULT_STEPS) -> list[str]:
    return [s.name for s in steps]
