"""Pydantic models for feed endpoints."""

from __future__ import annotations

from flingo.feed.service import FeedPage
from flingo.schemas import CamelModel


class FeedResponse(CamelModel):
    ordered_game_ids: list[str]
    scores: dict[str, float]
    reasons: dict[str, str]
    total: int

    @classmethod
    def from_page(cls, page: FeedPage) -> FeedResponse:
        return cls(
            ordered_game_ids=page.ordered_game_ids,
            scores=page.scores,
            reasons={game_id: reason.value for game_id, reason in page.reasons.items()},
            total=page.total,
        )


class PersonalizedFeedResponse(FeedResponse):
    user_recent_games: list[str]
