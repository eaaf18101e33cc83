"""Game catalogue reads with opaque cursor pagination."""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.db.models import GameConfig, as_utc

MIN_PAGE_SIZE = 5
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class GameConfigRecord:
    game_id: str
    title: str
    description: str | None = None
    thumbnail: str | None = None
    xp_multiplier: float = 1.0
    beta_only: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


def to_record(row: GameConfig) -> GameConfigRecord:
    return GameConfigRecord(
        game_id=row.game_id,
        title=row.title,
        description=row.description,
        thumbnail=row.thumbnail,
        xp_multiplier=float(row.xp_multiplier) if row.xp_multiplier is not None else 1.0,
        beta_only=bool(row.beta_only),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        metadata=dict(row.game_metadata or {}),
    )


def encode_cursor(game_id: str | None) -> str | None:
    if game_id is None:
        return None
    raw = json.dumps({"gameId": game_id}).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_cursor(cursor: str | None) -> str | None:
    """Last game id from a cursor; malformed cursors restart from the top."""
    if not cursor:
        return None
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode()))
    except (binascii.Error, ValueError, UnicodeDecodeError):
        return None
    game_id = payload.get("gameId") if isinstance(payload, dict) else None
    return game_id if isinstance(game_id, str) else None


def clamp_page_size(limit: int | None) -> int:
    return min(max(int(limit or DEFAULT_PAGE_SIZE), MIN_PAGE_SIZE), MAX_PAGE_SIZE)


async def list_game_configs(
    db: AsyncSession,
    limit: int | None = None,
    cursor: str | None = None,
) -> tuple[list[GameConfigRecord], str | None]:
    """One page of configs ordered by game id, plus the cursor for the next page."""
    page_size = clamp_page_size(limit)
    query = select(GameConfig).order_by(GameConfig.game_id).limit(page_size + 1)
    after = decode_cursor(cursor)
    if after is not None:
        query = query.where(GameConfig.game_id > after)

    result = await db.execute(query)
    rows = list(result.scalars())
    has_more = len(rows) > page_size
    items = [to_record(row) for row in rows[:page_size]]
    next_cursor = encode_cursor(items[-1].game_id) if has_more and items else None
    return items, next_cursor


async def list_all_game_configs(db: AsyncSession) -> list[GameConfigRecord]:
    """Walk every page of the catalogue."""
    configs: list[GameConfigRecord] = []
    cursor: str | None = None
    while True:
        items, cursor = await list_game_configs(db, limit=MAX_PAGE_SIZE, cursor=cursor)
        configs.extend(items)
        if cursor is None:
            return configs


async def get_game_config(db: AsyncSession, game_id: str) -> GameConfigRecord | None:
    row = await db.get(GameConfig, game_id)
    return to_record(row) if row is not None else None
