"""ORM models for the flingo schema.

Timestamps are stored timezone-aware; SQLite (used in tests) hands them back
naive, so readers normalise through ``as_utc``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    PrimaryKeyConstraint,
    String,
    Text,
    false,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from flingo.db.base import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes coming back from the database."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class User(Base):
    """Player profile; owns the XP state (level, progress, total)."""

    __tablename__ = "users"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    username: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)
    beta_tester: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())

    xp_level: Mapped[int] = mapped_column(Integer, default=1, server_default="1")
    xp_progress: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    xp_total: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    xp_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


# ---------------------------------------------------------------------------
# Game catalogue
# ---------------------------------------------------------------------------


class GameConfig(Base):
    __tablename__ = "game_configs"

    game_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail: Mapped[str | None] = mapped_column(Text, nullable=True)
    xp_multiplier: Mapped[float] = mapped_column(Float, default=1.0, server_default="1")
    beta_only: Mapped[bool] = mapped_column(Boolean, default=False, server_default=false())
    # "metadata" is reserved on declarative classes.
    game_metadata: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSONType, nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ExperienceLevel(Base):
    """Optional admin override of the XP curve. cumulative_xp is informational only."""

    __tablename__ = "experience_levels"

    level: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    required_xp: Mapped[int] = mapped_column(Integer, nullable=False)
    cumulative_xp: Mapped[int | None] = mapped_column(Integer, nullable=True)


class UserGameStat(Base):
    """Per (user, game) play history used for feed personalization."""

    __tablename__ = "user_game_stats"
    __table_args__ = (PrimaryKeyConstraint("user_id", "game_id"),)

    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    game_id: Mapped[str] = mapped_column(String(64), nullable=False)
    last_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    best_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    play_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    last_played_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


Index("idx_user_game_stats_recent", UserGameStat.user_id, UserGameStat.last_played_at.desc())


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (PrimaryKeyConstraint("game_id", "user_id"),)

    game_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class RatingSummary(Base):
    """Running (sum, count) per game; the average is derived on read."""

    __tablename__ = "rating_summaries"

    game_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    rating_sum: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    rating_count: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
