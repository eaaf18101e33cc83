"""Rating upserts and summary reads."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import datetime, timezone

import structlog
from sqlalchemy import insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.db.models import Rating, RatingSummary, as_utc
from flingo.errors import InvalidRatingError, RatingUpdateConflictError
from flingo.fallback import LoadResult
from flingo.ratings.aggregate import RatingAggregate

logger = structlog.get_logger()

MIN_RATING = 1
MAX_RATING = 5
SUMMARY_BATCH_LIMIT = 100
DEFAULT_MAX_ATTEMPTS = 3


def _to_aggregate(row: RatingSummary | None, game_id: str) -> RatingAggregate:
    if row is None:
        return RatingAggregate(game_id=game_id)
    return RatingAggregate(
        game_id=game_id,
        rating_sum=int(row.rating_sum or 0),
        rating_count=int(row.rating_count or 0),
        updated_at=as_utc(row.updated_at),
    )


def validate_rating_input(game_id: object, rating: object) -> tuple[str, int]:
    """Check a rating payload and round the value to a whole star."""
    if not game_id or not isinstance(game_id, str):
        raise InvalidRatingError("gameId required")
    try:
        value = float(rating)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise InvalidRatingError("rating must be a number") from None
    if not math.isfinite(value):
        raise InvalidRatingError("rating must be a number")
    if value < MIN_RATING or value > MAX_RATING:
        raise InvalidRatingError(f"rating must be between {MIN_RATING} and {MAX_RATING}")
    return game_id, math.floor(value + 0.5)


async def _bump_summary(db: AsyncSession, increment: RatingAggregate) -> None:
    """Add ``increment`` to the summary row in SQL, creating it on first rating."""
    stmt = (
        update(RatingSummary)
        .where(RatingSummary.game_id == increment.game_id)
        .values(
            rating_sum=RatingSummary.rating_sum + increment.rating_sum,
            rating_count=RatingSummary.rating_count + increment.rating_count,
            updated_at=increment.updated_at,
        )
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount:
        return
    try:
        async with db.begin_nested():
            db.add(
                RatingSummary(
                    game_id=increment.game_id,
                    rating_sum=increment.rating_sum,
                    rating_count=increment.rating_count,
                    updated_at=increment.updated_at,
                )
            )
    except IntegrityError:
        # Another first rating created the row in between.
        await db.execute(stmt)


async def _stored_rating(db: AsyncSession, game_id: str, user_id: str) -> int | None:
    return await get_user_rating(db, game_id, user_id)


async def _write_rating(
    db: AsyncSession,
    game_id: str,
    user_id: str,
    rating: int,
    previous: int | None,
    now: datetime,
) -> bool:
    """Insert or conditionally update the rating row. False when the row moved."""
    if previous is None:
        try:
            await db.execute(
                insert(Rating).values(
                    game_id=game_id, user_id=user_id, rating=rating, created_at=now, updated_at=now
                )
            )
        except IntegrityError:
            await db.rollback()
            return False
        return True
    result = await db.execute(
        update(Rating)
        .where(Rating.game_id == game_id, Rating.user_id == user_id, Rating.rating == previous)
        .values(rating=rating, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


async def upsert_rating(
    db: AsyncSession,
    game_id: str,
    user_id: str,
    rating: int,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> tuple[RatingAggregate, int]:
    """Store a user's rating and fold it into the game's summary.

    The rating row is written only if it still holds the value that was read,
    so the summary delta always matches what was replaced. A lost race
    re-reads and retries, then raises ``RatingUpdateConflictError``.
    Returns the updated aggregate and the stored rating. Commits.
    """
    now = datetime.now(timezone.utc)
    for attempt in range(1, max_attempts + 1):
        previous = await _stored_rating(db, game_id, user_id)
        if not await _write_rating(db, game_id, user_id, rating, previous, now):
            logger.info("rating_update_conflict", game_id=game_id, user_id=user_id, attempt=attempt)
            continue

        await _bump_summary(db, RatingAggregate(game_id=game_id).apply(rating, previous, now=now))
        await db.commit()

        logger.info("rating_upserted", game_id=game_id, user_id=user_id, rating=rating, first_time=previous is None)
        return await get_rating_summary(db, game_id), rating

    raise RatingUpdateConflictError(game_id, user_id, max_attempts)


async def get_rating_summary(db: AsyncSession, game_id: str) -> RatingAggregate:
    result = await db.execute(
        select(RatingSummary)
        .where(RatingSummary.game_id == game_id)
        .execution_options(populate_existing=True)
    )
    return _to_aggregate(result.scalar_one_or_none(), game_id)


async def get_rating_summaries(db: AsyncSession, game_ids: Iterable[str]) -> list[RatingAggregate]:
    """Summaries for the requested ids, zero-filled for games nobody rated."""
    unique = list(dict.fromkeys(game_ids))
    found: dict[str, RatingAggregate] = {}
    for i in range(0, len(unique), SUMMARY_BATCH_LIMIT):
        chunk = unique[i:i + SUMMARY_BATCH_LIMIT]
        result = await db.execute(select(RatingSummary).where(RatingSummary.game_id.in_(chunk)))
        for row in result.scalars():
            found[row.game_id] = _to_aggregate(row, row.game_id)
    return [found.get(game_id, RatingAggregate(game_id=game_id)) for game_id in unique]


async def get_user_rating(db: AsyncSession, game_id: str, user_id: str) -> int | None:
    result = await db.execute(
        select(Rating.rating).where(Rating.game_id == game_id, Rating.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def load_rating_stats(db: AsyncSession) -> LoadResult[dict[str, RatingAggregate]]:
    """Every summary row keyed by game id, or a degraded result on failure."""
    try:
        result = await db.execute(select(RatingSummary))
        return LoadResult.ok({row.game_id: _to_aggregate(row, row.game_id) for row in result.scalars()})
    except Exception as exc:
        await db.rollback()
        return LoadResult.degraded(str(exc))
