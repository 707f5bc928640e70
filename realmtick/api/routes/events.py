"""GET /api/v1/events — recently emitted engine events."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from realmtick.api.dependencies import get_engine_manager
from realmtick.api.engine_manager import EngineManager
from realmtick.api.schemas import EventSchema

router = APIRouter()


@router.get("/events", response_model=list[EventSchema])
def list_events(
    limit: int = Query(50, ge=1, le=500),
    name: str | None = Query(None, description="Only events with this name"),
    manager: EngineManager = Depends(get_engine_manager),
) -> list[EventSchema]:
    events = manager.event_log.named(name)[-limit:] if name else manager.latest_events(limit)
    return [
        EventSchema(name=e.name, payload=e.payload, game_day=e.game_day, emitted_at=e.emitted_at)
        for e in events
    ]
