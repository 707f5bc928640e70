"""POST /api/v1/admin/tick and GET /api/v1/health/tick — operator controls."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from realmtick.api.dependencies import get_engine_manager
from realmtick.api.engine_manager import EngineManager
from realmtick.api.schemas import ManualTickResponse, TickHealthResponse

router = APIRouter()


@router.post("/admin/tick", response_model=ManualTickResponse)
def trigger_tick(
    advance_day: bool = Query(False, description="Fast-forward the game clock one day before running"),
    manager: EngineManager = Depends(get_engine_manager),
) -> ManualTickResponse:
    """Run the daily sequence now. Step failures are reported inside ``result``;
    ``success`` is False only when the orchestrator itself failed."""
    outcome = manager.trigger_manual_tick(advance_day=advance_day)
    return ManualTickResponse(**outcome)


@router.get("/health/tick", response_model=TickHealthResponse)
def tick_health(manager: EngineManager = Depends(get_engine_manager)) -> TickHealthResponse:
    health = manager.health()
    return TickHealthResponse(
        last_success_at=health.last_success_at,
        last_tick_day=health.last_tick_day,
        game_day=health.game_day,
        stale=health.stale,
        staleness_hours=manager.config.staleness_hours,
    )
