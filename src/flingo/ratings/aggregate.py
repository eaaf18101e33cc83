"""Running rating aggregate per game."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime


@dataclass(frozen=True)
class RatingAggregate:
    game_id: str
    rating_sum: int = 0
    rating_count: int = 0
    updated_at: datetime | None = None

    @property
    def avg_rating(self) -> float:
        if self.rating_count <= 0:
            return 0.0
        return self.rating_sum / self.rating_count

    def apply(self, new_rating: int, previous_rating: int | None = None, *, now: datetime | None = None) -> RatingAggregate:
        """Fold one user's rating in; a re-rating moves the sum but not the count."""
        delta, count_delta = rating_deltas(new_rating, previous_rating)
        return replace(
            self,
            rating_sum=self.rating_sum + delta,
            rating_count=self.rating_count + count_delta,
            updated_at=now if now is not None else self.updated_at,
        )


def rating_deltas(new_rating: int, previous_rating: int | None) -> tuple[int, int]:
    """(sum delta, count delta) for a rating upsert."""
    if previous_rating:
        return new_rating - previous_rating, 0
    return new_rating, 1
