"""Persistent world records (SQLAlchemy ORM).

Office holders (``Town.mayor_id``, ``Kingdom.ruler_id``) are stored as
plain character ids to avoid a foreign-key cycle with ``characters``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from realmtick.core.enums import (
    ActionKind,
    ActionStatus,
    BuildingType,
    ConstructionStatus,
    ElectionKind,
    ElectionPhase,
    FoodPriority,
    HungerState,
    ImpeachmentOutcome,
    ImpeachmentStatus,
    LawStatus,
    LawType,
    LoanStatus,
    NodeType,
    OrderType,
    ProfessionTier,
    ProfessionType,
    Race,
    TravelStatus,
    WarStatus,
)
from realmtick.systems.game_day import utcnow


def _enum(cls) -> SAEnum:
    return SAEnum(cls, native_enum=False, length=32, validate_strings=True)


class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Political geography
# ---------------------------------------------------------------------------

class Kingdom(Base):
    __tablename__ = "kingdoms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80))
    ruler_id: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Region(Base):
    __tablename__ = "regions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80))


class Town(Base):
    __tablename__ = "towns"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80))
    region_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True)
    kingdom_id: Mapped[int | None] = mapped_column(ForeignKey("kingdoms.id"), nullable=True)
    mayor_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    treasury: Mapped[int] = mapped_column(Integer, default=0)
    tax_rate: Mapped[float | None] = mapped_column(Float, nullable=True)  # None -> config default


class War(Base):
    __tablename__ = "wars"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    attacker_kingdom_id: Mapped[int] = mapped_column(ForeignKey("kingdoms.id"))
    defender_kingdom_id: Mapped[int] = mapped_column(ForeignKey("kingdoms.id"))
    status: Mapped[WarStatus] = mapped_column(_enum(WarStatus), default=WarStatus.ACTIVE)


# ---------------------------------------------------------------------------
# Characters & items
# ---------------------------------------------------------------------------

class Character(Base):
    __tablename__ = "characters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80))
    race: Mapped[Race] = mapped_column(_enum(Race), default=Race.HUMAN)
    level: Mapped[int] = mapped_column(Integer, default=1)
    xp: Mapped[int] = mapped_column(Integer, default=0)
    gold: Mapped[int] = mapped_column(Integer, default=0)
    hp: Mapped[int] = mapped_column(Integer, default=100)
    max_hp: Mapped[int] = mapped_column(Integer, default=100)

    home_town_id: Mapped[int | None] = mapped_column(ForeignKey("towns.id"), nullable=True)
    current_town_id: Mapped[int | None] = mapped_column(ForeignKey("towns.id"), nullable=True)
    # None means "inside a settlement, no explicit node"
    current_location_node_id: Mapped[int | None] = mapped_column(ForeignKey("location_nodes.id"), nullable=True)

    hunger_state: Mapped[HungerState] = mapped_column(_enum(HungerState), default=HungerState.FED)
    days_since_last_meal: Mapped[int] = mapped_column(Integer, default=0)
    soul_fade_stage: Mapped[int] = mapped_column(Integer, default=0)
    structural_decay_stage: Mapped[int] = mapped_column(Integer, default=0)
    food_priority: Mapped[FoodPriority] = mapped_column(_enum(FoodPriority), default=FoodPriority.EXPIRING_FIRST)
    preferred_food_template_id: Mapped[int | None] = mapped_column(ForeignKey("item_templates.id"), nullable=True)
    preferred_food_category: Mapped[str | None] = mapped_column(String(40), nullable=True)
    well_rested: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ItemTemplate(Base):
    __tablename__ = "item_templates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80), unique=True)
    category: Mapped[str] = mapped_column(String(40), default="material")
    is_food: Mapped[bool] = mapped_column(Boolean, default=False)
    food_category: Mapped[str | None] = mapped_column(String(40), nullable=True)
    food_buff: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)  # None -> plain food
    shelf_life_days: Mapped[int | None] = mapped_column(Integer, nullable=True)     # None -> never spoils
    tool_bonus: Mapped[float] = mapped_column(Float, default=0.0)
    max_durability: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Item(Base):
    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    template_id: Mapped[int] = mapped_column(ForeignKey("item_templates.id"))
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("characters.id"), nullable=True, index=True)
    quantity: Mapped[int] = mapped_column(Integer, default=1)
    days_remaining: Mapped[int | None] = mapped_column(Integer, nullable=True)
    durability: Mapped[int | None] = mapped_column(Integer, nullable=True)

    template: Mapped[ItemTemplate] = relationship(lazy="joined")


class MarketListing(Base):
    __tablename__ = "market_listings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id"), index=True)
    seller_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))
    town_id: Mapped[int | None] = mapped_column(ForeignKey("towns.id"), nullable=True)
    price: Mapped[int] = mapped_column(Integer, default=0)


class CharacterProfession(Base):
    __tablename__ = "character_professions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"), index=True)
    profession_type: Mapped[ProfessionType] = mapped_column(_enum(ProfessionType))
    tier: Mapped[ProfessionTier] = mapped_column(_enum(ProfessionTier), default=ProfessionTier.APPRENTICE)
    xp: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class ServiceReputation(Base):
    __tablename__ = "service_reputations"
    __table_args__ = (UniqueConstraint("character_id", "profession_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))
    profession_type: Mapped[ProfessionType] = mapped_column(_enum(ProfessionType))
    reputation: Mapped[int] = mapped_column(Integer, default=0)
    last_active_day: Mapped[int | None] = mapped_column(Integer, nullable=True)


class Loan(Base):
    __tablename__ = "loans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lender_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))
    borrower_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))
    principal: Mapped[int] = mapped_column(Integer)
    total_owed: Mapped[int] = mapped_column(Integer)
    amount_repaid: Mapped[int] = mapped_column(Integer, default=0)
    due_day: Mapped[int] = mapped_column(Integer)
    status: Mapped[LoanStatus] = mapped_column(_enum(LoanStatus), default=LoanStatus.ACTIVE)


# ---------------------------------------------------------------------------
# Timed actions
# ---------------------------------------------------------------------------

class TownResource(Base):
    __tablename__ = "town_resources"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    town_id: Mapped[int] = mapped_column(ForeignKey("towns.id"))
    resource_type: Mapped[str] = mapped_column(String(40))
    yields_template_id: Mapped[int | None] = mapped_column(ForeignKey("item_templates.id"), nullable=True)
    abundance: Mapped[int] = mapped_column(Integer, default=100)
    respawn_rate: Mapped[float] = mapped_column(Float, default=1.0)


class TimedAction(Base):
    __tablename__ = "timed_actions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"), index=True)
    kind: Mapped[ActionKind] = mapped_column(_enum(ActionKind))
    status: Mapped[ActionStatus] = mapped_column(_enum(ActionStatus), default=ActionStatus.IN_PROGRESS)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completes_at: Mapped[datetime] = mapped_column(DateTime)
    collected_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # What the action produces
    result_template_id: Mapped[int] = mapped_column(ForeignKey("item_templates.id"))
    base_quantity: Mapped[int] = mapped_column(Integer, default=1)
    xp_reward: Mapped[int] = mapped_column(Integer, default=0)
    profession_type: Mapped[ProfessionType | None] = mapped_column(_enum(ProfessionType), nullable=True)
    town_resource_id: Mapped[int | None] = mapped_column(ForeignKey("town_resources.id"), nullable=True)
    tool_item_id: Mapped[int | None] = mapped_column(ForeignKey("items.id"), nullable=True)


# ---------------------------------------------------------------------------
# Location graph & travel
# ---------------------------------------------------------------------------

class LocationNode(Base):
    __tablename__ = "location_nodes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80))
    node_type: Mapped[NodeType] = mapped_column(_enum(NodeType), default=NodeType.WAYPOINT)
    region_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True)
    danger_level: Mapped[int] = mapped_column(Integer, default=0)
    base_encounter_chance: Mapped[float] = mapped_column(Float, default=0.0)
    # Only set for TOWN_GATE nodes
    town_id: Mapped[int | None] = mapped_column(ForeignKey("towns.id"), nullable=True)


class NodeConnection(Base):
    __tablename__ = "node_connections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    from_node_id: Mapped[int] = mapped_column(ForeignKey("location_nodes.id"))
    to_node_id: Mapped[int] = mapped_column(ForeignKey("location_nodes.id"))
    bidirectional: Mapped[bool] = mapped_column(Boolean, default=True)


class Monster(Base):
    __tablename__ = "monsters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80))
    level: Mapped[int] = mapped_column(Integer, default=1)
    region_id: Mapped[int | None] = mapped_column(ForeignKey("regions.id"), nullable=True)


class TravelState(Base):
    __tablename__ = "travel_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"), unique=True)
    origin_town_id: Mapped[int] = mapped_column(ForeignKey("towns.id"))
    destination_town_id: Mapped[int] = mapped_column(ForeignKey("towns.id"))
    route: Mapped[list[int]] = mapped_column(JSON)   # ordered node ids, gate to gate
    route_index: Mapped[int] = mapped_column(Integer, default=0)
    status: Mapped[TravelStatus] = mapped_column(_enum(TravelStatus), default=TravelStatus.TRAVELING)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class DailyOrder(Base):
    __tablename__ = "daily_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"), index=True)
    game_day: Mapped[int] = mapped_column(Integer, index=True)
    order_type: Mapped[OrderType] = mapped_column(_enum(OrderType), default=OrderType.NONE)


# ---------------------------------------------------------------------------
# Structures
# ---------------------------------------------------------------------------

class Building(Base):
    __tablename__ = "buildings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(80), default="")
    owner_id: Mapped[int | None] = mapped_column(ForeignKey("characters.id"), nullable=True)
    town_id: Mapped[int] = mapped_column(ForeignKey("towns.id"))
    building_type: Mapped[BuildingType] = mapped_column(_enum(BuildingType))
    level: Mapped[int] = mapped_column(Integer, default=0)
    condition: Mapped[int] = mapped_column(Integer, default=100)
    delinquent_since: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Construction(Base):
    __tablename__ = "constructions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    building_id: Mapped[int] = mapped_column(ForeignKey("buildings.id"), index=True)
    status: Mapped[ConstructionStatus] = mapped_column(_enum(ConstructionStatus), default=ConstructionStatus.PENDING)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completes_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


# ---------------------------------------------------------------------------
# Governance
# ---------------------------------------------------------------------------

class Election(Base):
    __tablename__ = "elections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[ElectionKind] = mapped_column(_enum(ElectionKind), default=ElectionKind.MAYOR)
    town_id: Mapped[int | None] = mapped_column(ForeignKey("towns.id"), nullable=True)
    kingdom_id: Mapped[int | None] = mapped_column(ForeignKey("kingdoms.id"), nullable=True)
    phase: Mapped[ElectionPhase] = mapped_column(_enum(ElectionPhase), default=ElectionPhase.NOMINATIONS)
    term_number: Mapped[int] = mapped_column(Integer, default=1)
    phase_ends_at: Mapped[datetime] = mapped_column(DateTime)
    winner_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class ElectionCandidate(Base):
    __tablename__ = "election_candidates"
    __table_args__ = (UniqueConstraint("election_id", "character_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    election_id: Mapped[int] = mapped_column(ForeignKey("elections.id"), index=True)
    character_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))
    nominated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class ElectionVote(Base):
    __tablename__ = "election_votes"
    __table_args__ = (UniqueConstraint("election_id", "voter_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    election_id: Mapped[int] = mapped_column(ForeignKey("elections.id"), index=True)
    voter_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))
    candidate_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))


class Impeachment(Base):
    __tablename__ = "impeachments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    target_id: Mapped[int] = mapped_column(ForeignKey("characters.id"))
    town_id: Mapped[int | None] = mapped_column(ForeignKey("towns.id"), nullable=True)
    kingdom_id: Mapped[int | None] = mapped_column(ForeignKey("kingdoms.id"), nullable=True)
    status: Mapped[ImpeachmentStatus] = mapped_column(_enum(ImpeachmentStatus), default=ImpeachmentStatus.ACTIVE)
    outcome: Mapped[ImpeachmentOutcome | None] = mapped_column(_enum(ImpeachmentOutcome), nullable=True)
    votes_for: Mapped[int] = mapped_column(Integer, default=0)
    votes_against: Mapped[int] = mapped_column(Integer, default=0)
    ends_at: Mapped[datetime] = mapped_column(DateTime)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class Law(Base):
    __tablename__ = "laws"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(120))
    town_id: Mapped[int | None] = mapped_column(ForeignKey("towns.id"), nullable=True)
    kingdom_id: Mapped[int | None] = mapped_column(ForeignKey("kingdoms.id"), nullable=True)
    law_type: Mapped[LawType] = mapped_column(_enum(LawType), default=LawType.GENERAL)
    value: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[LawStatus] = mapped_column(_enum(LawStatus), default=LawStatus.PROPOSED)
    votes_for: Mapped[int] = mapped_column(Integer, default=0)
    votes_against: Mapped[int] = mapped_column(Integer, default=0)
    voting_ends_at: Mapped[datetime] = mapped_column(DateTime)
    duration_days: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None -> permanent
    enacted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


# ---------------------------------------------------------------------------
# Engine bookkeeping
# ---------------------------------------------------------------------------

class WorldMeta(Base):
    """Key/value markers such as the last successful tick."""

    __tablename__ = "world_meta"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(String(255))
