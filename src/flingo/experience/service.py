"""Experience persistence: read summaries and award XP with compare-and-set."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.db.models import User, as_utc
from flingo.errors import UserNotFoundError, XpUpdateConflictError
from flingo.experience.engine import ExperienceSummary, XpState, apply_xp, build_summary
from flingo.experience.level_loader import LevelCurveLoader

logger = structlog.get_logger()

DEFAULT_MAX_ATTEMPTS = 3


@dataclass(frozen=True)
class ExperienceResult:
    summary: ExperienceSummary
    awarded: int


async def _read_state(db: AsyncSession, user_id: str) -> tuple[XpState, tuple] | None:
    """Current XP state plus the raw column values used as the CAS guard."""
    result = await db.execute(
        select(User.xp_level, User.xp_progress, User.xp_total, User.xp_updated_at, User.updated_at)
        .where(User.user_id == user_id)
    )
    row = result.one_or_none()
    if row is None:
        return None
    state = XpState(
        level=row.xp_level or 1,
        progress=row.xp_progress or 0,
        total=row.xp_total or 0,
        updated_at=as_utc(row.xp_updated_at or row.updated_at),
    )
    return state, (row.xp_level, row.xp_progress, row.xp_total)


async def _user_exists(db: AsyncSession, user_id: str) -> bool:
    result = await db.execute(select(User.user_id).where(User.user_id == user_id))
    return result.scalar_one_or_none() is not None


async def get_experience_summary(
    db: AsyncSession,
    loader: LevelCurveLoader,
    user_id: str,
) -> ExperienceSummary | None:
    """Summary against the currently cached curve; None if the user is unknown."""
    loaded = await _read_state(db, user_id)
    if loaded is None:
        return None
    state, _ = loaded
    return build_summary(state, loader.current())


async def award_experience(
    db: AsyncSession,
    loader: LevelCurveLoader,
    user_id: str,
    xp_earned: int,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    now: datetime | None = None,
) -> ExperienceResult:
    """Apply ``xp_earned`` to the user's level state.

    The write is a single conditional UPDATE guarded by the values that were
    read, so concurrent awards for the same user cannot overwrite each other.
    A lost race re-reads and retries; a vanished user raises
    ``UserNotFoundError`` immediately. The caller owns the commit.
    """
    if xp_earned <= 0:
        summary = await get_experience_summary(db, loader, user_id)
        if summary is None:
            raise UserNotFoundError(user_id)
        return ExperienceResult(summary=summary, awarded=0)

    levels = await loader.load()
    stamp = now or datetime.now(timezone.utc)

    for attempt in range(1, max_attempts + 1):
        loaded = await _read_state(db, user_id)
        if loaded is None:
            raise UserNotFoundError(user_id)
        state, (guard_level, guard_progress, guard_total) = loaded

        award = apply_xp(state, xp_earned, levels, now=stamp)
        new_state = award.state
        result = await db.execute(
            update(User)
            .where(
                User.user_id == user_id,
                User.xp_level == guard_level,
                User.xp_progress == guard_progress,
                User.xp_total == guard_total,
            )
            .values(
                xp_level=new_state.level,
                xp_progress=new_state.progress,
                xp_total=new_state.total,
                xp_updated_at=stamp,
                updated_at=stamp,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            if new_state.level > state.level:
                logger.info(
                    "level_up",
                    user_id=user_id,
                    old_level=state.level,
                    new_level=new_state.level,
                )
            logger.info("xp_awarded", user_id=user_id, awarded=xp_earned, total=new_state.total)
            return ExperienceResult(summary=build_summary(new_state, levels), awarded=award.awarded)

        if not await _user_exists(db, user_id):
            raise UserNotFoundError(user_id)
        logger.info("xp_update_conflict", user_id=user_id, attempt=attempt)

    raise XpUpdateConflictError(user_id, max_attempts)
