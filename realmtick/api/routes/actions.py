"""POST /api/v1/characters/{id}/actions/{kind}/collect — claim a finished timed action."""

from __future__ import annotations

from enum import Enum

from fastapi import APIRouter, Depends, HTTPException

from realmtick.api.dependencies import get_engine_manager
from realmtick.api.engine_manager import EngineManager
from realmtick.api.schemas import CollectResponse
from realmtick.core.enums import ActionKind
from realmtick.core.errors import RealmTickError

router = APIRouter()


class ActionPath(str, Enum):
    gathering = "gathering"
    crafting = "crafting"


@router.post(
    "/characters/{character_id}/actions/{kind}/collect",
    response_model=CollectResponse,
    responses={
        400: {"description": "No active action, or it is not yet complete"},
        404: {"description": "Character not found"},
        409: {"description": "Already collected by a concurrent request"},
    },
)
def collect_action(
    character_id: int,
    kind: ActionPath,
    manager: EngineManager = Depends(get_engine_manager),
) -> CollectResponse:
    try:
        result = manager.collect(character_id, ActionKind(kind.value.upper()))
    except RealmTickError as exc:
        raise HTTPException(status_code=exc.status, detail={"code": exc.code, "message": exc.message}) from exc
    return CollectResponse(**result.to_dict())
