"""Per-user play history: last/best score and recency."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.db.models import UserGameStat
from flingo.fallback import LoadResult

DEFAULT_RECENT_LIMIT = 20


async def record_user_game_session(
    db: AsyncSession,
    user_id: str,
    game_id: str,
    score: float,
    now: datetime | None = None,
) -> UserGameStat:
    """Update last score and play time; raise the best score when beaten. Flushes only."""
    stamp = now or datetime.now(timezone.utc)
    stat = await db.get(UserGameStat, (user_id, game_id))
    if stat is None:
        stat = UserGameStat(user_id=user_id, game_id=game_id, play_count=0, created_at=stamp)
        db.add(stat)

    stat.last_score = score
    stat.last_played_at = stamp
    stat.play_count = (stat.play_count or 0) + 1
    if stat.best_score is None or score > stat.best_score:
        stat.best_score = score

    await db.flush()
    return stat


async def get_recent_game_ids(db: AsyncSession, user_id: str, limit: int = DEFAULT_RECENT_LIMIT) -> list[str]:
    """Game ids the user played, most recent first."""
    result = await db.execute(
        select(UserGameStat.game_id)
        .where(UserGameStat.user_id == user_id, UserGameStat.last_played_at.is_not(None))
        .order_by(UserGameStat.last_played_at.desc())
        .limit(limit)
    )
    return list(result.scalars())


async def load_recent_game_ids(db: AsyncSession, user_id: str, limit: int = DEFAULT_RECENT_LIMIT) -> LoadResult[list[str]]:
    try:
        return LoadResult.ok(await get_recent_game_ids(db, user_id, limit))
    except Exception as exc:
        await db.rollback()
        return LoadResult.degraded(str(exc))
