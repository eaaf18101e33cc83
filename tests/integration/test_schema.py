"""Schema built from the ORM models matches the baseline migration."""

from __future__ import annotations

import pytest
from sqlalchemy import inspect

from flingo.database import get_engine


@pytest.mark.asyncio
async def test_user_game_stats_has_recent_play_index(database):
    async with get_engine().connect() as conn:
        indexes = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_indexes("user_game_stats"))

    by_name = {index["name"]: index for index in indexes}
    assert set(by_name) == {"idx_user_game_stats_recent"}
    assert by_name["idx_user_game_stats_recent"]["column_names"] == ["user_id", "last_played_at"]
