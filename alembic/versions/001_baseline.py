"""Baseline: users XP state, game catalogue, level curve override, ratings, play history.

Revision ID: 001_baseline
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_baseline"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users (XP state lives on the profile) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            user_id VARCHAR(128) PRIMARY KEY,
            username VARCHAR(64) UNIQUE,
            beta_tester BOOLEAN NOT NULL DEFAULT false,
            xp_level INTEGER NOT NULL DEFAULT 1,
            xp_progress INTEGER NOT NULL DEFAULT 0,
            xp_total INTEGER NOT NULL DEFAULT 0,
            xp_updated_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ
        )
    """)

    # --- Game catalogue ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS game_configs (
            game_id VARCHAR(64) PRIMARY KEY,
            title VARCHAR(128) NOT NULL,
            description TEXT,
            thumbnail TEXT,
            xp_multiplier DOUBLE PRECISION NOT NULL DEFAULT 1,
            beta_only BOOLEAN NOT NULL DEFAULT false,
            metadata JSONB,
            created_at TIMESTAMPTZ,
            updated_at TIMESTAMPTZ
        )
    """)

    # --- Level curve override (cumulative_xp is recomputed on load) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS experience_levels (
            level INTEGER PRIMARY KEY,
            required_xp INTEGER NOT NULL,
            cumulative_xp INTEGER
        )
    """)

    # --- Play history ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_game_stats (
            user_id VARCHAR(128) NOT NULL,
            game_id VARCHAR(64) NOT NULL,
            last_score DOUBLE PRECISION,
            best_score DOUBLE PRECISION,
            play_count INTEGER NOT NULL DEFAULT 0,
            last_played_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (user_id, game_id)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_user_game_stats_recent
        ON user_game_stats(user_id, last_played_at DESC)
    """)

    # --- Ratings ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS ratings (
            game_id VARCHAR(64) NOT NULL,
            user_id VARCHAR(128) NOT NULL,
            rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
            created_at TIMESTAMPTZ NOT NULL,
            updated_at TIMESTAMPTZ NOT NULL,
            PRIMARY KEY (game_id, user_id)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS rating_summaries (
            game_id VARCHAR(64) PRIMARY KEY,
            rating_sum INTEGER NOT NULL DEFAULT 0,
            rating_count INTEGER NOT NULL DEFAULT 0,
            updated_at TIMESTAMPTZ
        )
    """)


def downgrade() -> None:
    for table in ["rating_summaries", "ratings", "user_game_stats", "experience_levels", "game_configs", "users"]:
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")  # noqa: S608
