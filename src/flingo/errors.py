"""Domain exceptions raised by services and translated to HTTP errors by routers."""

from __future__ import annotations


class FlingoError(Exception):
    """Base class for all domain errors."""

    code = "flingo_error"


class UserNotFoundError(FlingoError):
    """The target user has no profile record."""

    code = "user_not_found"

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User {user_id!r} not found")
        self.user_id = user_id


class XpUpdateConflictError(FlingoError):
    """Concurrent submissions kept changing the user's XP state."""

    code = "xp_update_conflict"

    def __init__(self, user_id: str, attempts: int) -> None:
        super().__init__(f"XP update for {user_id!r} lost the race {attempts} times")
        self.user_id = user_id
        self.attempts = attempts


class GameNotFoundError(FlingoError):
    code = "game_not_found"

    def __init__(self, game_id: str) -> None:
        super().__init__(f"Game {game_id!r} not found")
        self.game_id = game_id


class InvalidRatingError(FlingoError, ValueError):
    """Rating payload failed validation."""

    code = "invalid_rating"


class RatingUpdateConflictError(FlingoError):
    """Concurrent re-ratings kept replacing the stored rating."""

    code = "rating_update_conflict"

    def __init__(self, game_id: str, user_id: str, attempts: int) -> None:
        super().__init__(f"Rating of {game_id!r} by {user_id!r} lost the race {attempts} times")
        self.game_id = game_id
        self.user_id = user_id
        self.attempts = attempts
