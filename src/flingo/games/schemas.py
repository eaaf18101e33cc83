"""Pydantic models for the game catalogue."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from flingo.games.config_service import GameConfigRecord
from flingo.schemas import CamelModel


class GameConfigResponse(CamelModel):
    game_id: str
    title: str
    description: str | None = None
    thumbnail: str | None = None
    xp_multiplier: float = 1.0
    beta_only: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    metadata: dict[str, Any] = {}

    @classmethod
    def from_record(cls, record: GameConfigRecord) -> GameConfigResponse:
        return cls(
            game_id=record.game_id,
            title=record.title,
            description=record.description,
            thumbnail=record.thumbnail,
            xp_multiplier=record.xp_multiplier,
            beta_only=record.beta_only,
            created_at=record.created_at,
            updated_at=record.updated_at,
            metadata=record.metadata,
        )


class GameConfigListResponse(CamelModel):
    items: list[GameConfigResponse]
    next_cursor: str | None = None
