"""Structure progression: construction timers, upkeep, tax and regeneration."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy.orm import Session

from realmtick.core.enums import ConstructionStatus
from realmtick.core.rules import BASE_PROPERTY_TAX_RATES, DEFAULT_PROPERTY_TAX_RATE
from realmtick.store.models import Building, Character, Construction, Town, TownResource
from realmtick.systems.formulas import daily_property_tax

if TYPE_CHECKING:
    from realmtick.config import TickConfig
    from realmtick.engine.context import TickContext
    from realmtick.store.database import SessionFactory
    from realmtick.utils.event_log import EventBatch

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------

def complete_construction(session_factory: SessionFactory, construction_id: int, now: datetime) -> Building | None:
    """Finish one construction atomically: level up and mark COMPLETE.

    Returns the building, or None if the construction was not due (or was
    already finished by someone else).
    """
    with session_factory() as session:
        with session.begin():
            construction = session.get(Construction, construction_id)
            if (
                construction is None
                or construction.status != ConstructionStatus.IN_PROGRESS
                or construction.completes_at is None
                or construction.completes_at > now
            ):
                return None
            building = session.get(Building, construction.building_id)
            building.level += 1
            construction.status = ConstructionStatus.COMPLETE
        return building


def construction_step(ctx: TickContext) -> dict[str, Any]:
    with ctx.session_factory() as session:
        due = [
            cid for (cid,) in
            session.query(Construction.id)
            .filter(Construction.status == ConstructionStatus.IN_PROGRESS)
            .filter(Construction.completes_at <= ctx.now)
            .order_by(Construction.completes_at)
            .all()
        ]

    completed = 0
    for construction_id in due:
        building = complete_construction(ctx.session_factory, construction_id, ctx.now)
        if building is None:
            continue
        completed += 1
        ctx.events.emit("building:construction_complete", {
            "building_id": building.id,
            "owner_id": building.owner_id,
            "level": building.level,
        })
    return {"completed": completed}


# ---------------------------------------------------------------------------
# Maintenance
# ---------------------------------------------------------------------------

def degrade_buildings(session: Session, config: TickConfig, events: EventBatch) -> int:
    """Standing buildings lose one condition point per day."""
    degraded = 0
    for building in session.query(Building).filter(Building.level > 0).filter(Building.condition > 0).all():
        building.condition -= 1
        degraded += 1
        if building.condition == 0:
            events.emit("building:condemned", {"building_id": building.id, "owner_id": building.owner_id})
        elif building.condition <= config.condition_low_threshold:
            events.emit("building:condition_low", {
                "building_id": building.id,
                "owner_id": building.owner_id,
                "condition": building.condition,
            })
    return degraded


def maintenance_step(ctx: TickContext) -> dict[str, Any]:
    outbox = ctx.events.batch()
    with ctx.session_factory() as session:
        degraded = degrade_buildings(session, ctx.config, outbox)
        session.commit()
    outbox.flush()
    return {"degraded": degraded}


# ---------------------------------------------------------------------------
# Property tax
# ---------------------------------------------------------------------------

def collect_property_tax(session: Session, config: TickConfig, events: EventBatch, now: datetime) -> dict[str, int]:
    """Charge daily tax; flag delinquents; seize after the grace period."""
    totals = {"paid": 0, "collected": 0, "delinquent": 0, "seized": 0}
    towns: dict[int, Town] = {t.id: t for t in session.query(Town).all()}

    buildings = (
        session.query(Building)
        .filter(Building.level > 0)
        .filter(Building.owner_id.is_not(None))
        .order_by(Building.id)
        .all()
    )
    for building in buildings:
        town = towns.get(building.town_id)
        rate = town.tax_rate if town is not None and town.tax_rate is not None else config.default_tax_rate
        base = BASE_PROPERTY_TAX_RATES.get(building.building_type, DEFAULT_PROPERTY_TAX_RATE)
        tax = daily_property_tax(base, building.level, rate)
        if tax <= 0:
            continue

        owner = session.get(Character, building.owner_id)
        if owner is not None and owner.gold >= tax:
            owner.gold -= tax
            if town is not None:
                town.treasury += tax
            building.delinquent_since = None
            totals["paid"] += 1
            totals["collected"] += tax
            events.emit("building:tax_due", {"building_id": building.id, "owner_id": owner.id, "amount": tax})
            continue

        if building.delinquent_since is None:
            building.delinquent_since = now
        days_delinquent = (now - building.delinquent_since).days
        totals["delinquent"] += 1
        events.emit("building:delinquent", {
            "building_id": building.id,
            "owner_id": building.owner_id,
            "amount": tax,
            "days": days_delinquent,
        })

        if days_delinquent >= config.seizure_grace_days and town is not None and town.mayor_id is not None:
            if town.mayor_id != building.owner_id:
                previous = building.owner_id
                building.owner_id = town.mayor_id
                building.delinquent_since = None
                totals["seized"] += 1
                events.emit("building:seized", {
                    "building_id": building.id,
                    "previous_owner_id": previous,
                    "new_owner_id": town.mayor_id,
                })
    return totals


def property_tax_step(ctx: TickContext) -> dict[str, Any]:
    outbox = ctx.events.batch()
    with ctx.session_factory() as session:
        totals = collect_property_tax(session, ctx.config, outbox, ctx.now)
        session.commit()
    outbox.flush()
    logger.info("Property tax: %d paid (%dg), %d delinquent, %d seized",
                totals["paid"], totals["collected"], totals["delinquent"], totals["seized"])
    return totals


# ---------------------------------------------------------------------------
# Resource regeneration
# ---------------------------------------------------------------------------

def regenerate_resources(session: Session, max_abundance: int) -> int:
    regenerated = 0
    for resource in session.query(TownResource).filter(TownResource.abundance < max_abundance).all():
        resource.abundance = min(max_abundance, resource.abundance + max(1, round(resource.respawn_rate)))
        regenerated += 1
    return regenerated


def regeneration_step(ctx: TickContext) -> dict[str, Any]:
    with ctx.session_factory() as session:
        regenerated = regenerate_resources(session, ctx.config.max_abundance)
        session.commit()
    return {"regenerated": regenerated}
