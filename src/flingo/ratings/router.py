"""Ratings API: summaries and per-user submission."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.auth.dependencies import CurrentUser, get_current_user, get_optional_user
from flingo.database import get_session
from flingo.ratings.schemas import RatingSubmitRequest, RatingSummariesResponse, RatingSummaryResponse
from flingo.ratings.service import (
    get_rating_summaries,
    get_rating_summary,
    get_user_rating,
    upsert_rating,
    validate_rating_input,
)

router = APIRouter(prefix="/api/v1/ratings", tags=["Ratings"])


@router.get("", response_model=RatingSummariesResponse)
async def list_summaries(
    ids: str = Query(""),
    db: AsyncSession = Depends(get_session),
):
    """Summaries for a comma-separated list of game ids."""
    game_ids = [game_id.strip() for game_id in ids.split(",") if game_id.strip()]
    if not game_ids:
        return RatingSummariesResponse(summaries=[])
    summaries = await get_rating_summaries(db, game_ids)
    return RatingSummariesResponse(
        summaries=[RatingSummaryResponse.from_aggregate(s) for s in summaries],
    )


@router.get("/{game_id}", response_model=RatingSummaryResponse, response_model_exclude_none=True)
async def show_summary(
    game_id: str,
    current_user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
):
    """One game's summary, with the caller's own rating when signed in."""
    summary = await get_rating_summary(db, game_id)
    user_rating = await get_user_rating(db, game_id, current_user.user_id) if current_user else None
    return RatingSummaryResponse.from_aggregate(summary, user_rating)


@router.post("/{game_id}", response_model=RatingSummaryResponse)
async def submit_rating(
    game_id: str,
    body: RatingSubmitRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    game_id, rating = validate_rating_input(game_id, body.rating)
    summary, stored = await upsert_rating(db, game_id, current_user.user_id, rating)
    return RatingSummaryResponse.from_aggregate(summary, stored)
