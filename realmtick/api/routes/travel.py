"""GET /api/v1/travel/route — shortest gate-to-gate route between two towns."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from realmtick.api.dependencies import get_engine_manager
from realmtick.api.engine_manager import EngineManager
from realmtick.api.schemas import RouteResponse

router = APIRouter()


@router.get("/travel/route", response_model=RouteResponse)
def get_route(
    from_town: int = Query(..., description="Origin town id"),
    to_town: int = Query(..., description="Destination town id"),
    manager: EngineManager = Depends(get_engine_manager),
) -> RouteResponse:
    route = manager.route(from_town, to_town)
    if route is None:
        raise HTTPException(status_code=404, detail={"code": "UNREACHABLE", "message": "No route between these towns"})
    return RouteResponse(from_town_id=from_town, to_town_id=to_town, path=list(route.path), distance=route.distance)
