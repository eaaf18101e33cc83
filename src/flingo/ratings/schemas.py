"""Pydantic models for rating endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from flingo.ratings.aggregate import RatingAggregate
from flingo.schemas import CamelModel


class RatingSummaryResponse(CamelModel):
    game_id: str
    rating_count: int
    avg_rating: float
    updated_at: datetime | None = None
    user_rating: int | None = None

    @classmethod
    def from_aggregate(cls, aggregate: RatingAggregate, user_rating: int | None = None) -> RatingSummaryResponse:
        return cls(
            game_id=aggregate.game_id,
            rating_count=aggregate.rating_count,
            avg_rating=aggregate.avg_rating,
            updated_at=aggregate.updated_at,
            user_rating=user_rating,
        )


class RatingSummariesResponse(CamelModel):
    summaries: list[RatingSummaryResponse]


class RatingSubmitRequest(CamelModel):
    # Validated by the service so bad values get the domain error shape.
    rating: Any = None
