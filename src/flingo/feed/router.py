"""Game feed API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.auth.dependencies import CurrentUser, get_optional_user
from flingo.database import get_session
from flingo.dependencies import get_feed_service
from flingo.feed.schemas import FeedResponse, PersonalizedFeedResponse
from flingo.feed.service import FeedService

router = APIRouter(prefix="/api/v1/games", tags=["Feed"])


@router.get("/feed", response_model=FeedResponse)
async def get_feed(
    limit: int | None = Query(None),
    db: AsyncSession = Depends(get_session),
    feed: FeedService = Depends(get_feed_service),
):
    """Public feed: beta games hidden, no personalization."""
    page = await feed.public_feed(db, limit)
    return FeedResponse.from_page(page)


@router.get("/feed/personalized", response_model=PersonalizedFeedResponse)
async def get_personalized_feed(
    limit: int | None = Query(None),
    client_recent_games: str = Query("", alias="clientRecentGames"),
    current_user: CurrentUser | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
    feed: FeedService = Depends(get_feed_service),
):
    """Feed tuned to the caller's play history and beta access.

    ``clientRecentGames`` (comma separated) is used only when the server has
    no play history for the caller.
    """
    client_recent = [game_id.strip() for game_id in client_recent_games.split(",") if game_id.strip()]
    page, recent = await feed.personalized_feed(
        db,
        user_id=current_user.user_id if current_user else None,
        is_beta_tester=current_user.beta_tester if current_user else False,
        limit=limit,
        client_recent_games=client_recent,
    )
    base = FeedResponse.from_page(page)
    return PersonalizedFeedResponse(**base.model_dump(), user_recent_games=recent)
