"""Versioned API route modules."""

from fastapi import APIRouter

from realmtick.api.routes.actions import router as actions_router
from realmtick.api.routes.control import router as control_router
from realmtick.api.routes.events import router as events_router
from realmtick.api.routes.travel import router as travel_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(control_router, tags=["Control"])
api_router.include_router(actions_router, tags=["Actions"])
api_router.include_router(travel_router, tags=["Travel"])
api_router.include_router(events_router, tags=["Events"])

__all__ = ["api_router"]
