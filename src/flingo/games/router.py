"""Game catalogue API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.database import get_session
from flingo.errors import GameNotFoundError
from flingo.games.config_service import get_game_config, list_game_configs
from flingo.games.schemas import GameConfigListResponse, GameConfigResponse

router = APIRouter(prefix="/api/v1/games", tags=["Games"])


@router.get("/config", response_model=GameConfigListResponse)
async def list_configs(
    limit: int | None = Query(None),
    cursor: str | None = Query(None),
    db: AsyncSession = Depends(get_session),
):
    items, next_cursor = await list_game_configs(db, limit=limit, cursor=cursor)
    return GameConfigListResponse(
        items=[GameConfigResponse.from_record(item) for item in items],
        next_cursor=next_cursor,
    )


@router.get("/config/{game_id}", response_model=GameConfigResponse)
async def show_config(game_id: str, db: AsyncSession = Depends(get_session)):
    record = await get_game_config(db, game_id)
    if record is None:
        raise GameNotFoundError(game_id)
    return GameConfigResponse.from_record(record)
