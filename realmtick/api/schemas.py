"""Pydantic response models for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


# --- Tick ---

class StepResultSchema(BaseModel):
    name: str
    succeeded: bool
    error: str | None = None
    duration_ms: float = 0.0
    summary: dict[str, Any] = Field(default_factory=dict)


class TickRunSchema(BaseModel):
    game_day: int
    started_at: datetime
    finished_at: datetime | None = None
    steps: list[StepResultSchema] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)


class ManualTickResponse(BaseModel):
    success: bool
    error: str | None = None
    result: TickRunSchema | None = None


class TickHealthResponse(BaseModel):
    last_success_at: datetime | None = None
    last_tick_day: int | None = None
    game_day: int
    stale: bool
    staleness_hours: float


# --- Events ---

class EventSchema(BaseModel):
    name: str
    payload: dict[str, Any] = Field(default_factory=dict)
    game_day: int | None = None
    emitted_at: datetime


# --- Timed actions ---

class CollectedItemSchema(BaseModel):
    template_id: int
    name: str
    quantity: int


class CollectResponse(BaseModel):
    action_id: int
    kind: str
    items: list[CollectedItemSchema] = Field(default_factory=list)
    xp_gained: int = 0
    level: int = 1
    levels_gained: int = 0
    tool_broken: bool = False
    resource_depleted: bool = False


class ErrorDetail(BaseModel):
    code: str
    message: str


# --- Travel ---

class RouteResponse(BaseModel):
    from_town_id: int
    to_town_id: int
    path: list[int]
    distance: int
