"""Experience persistence against a real database session."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from flingo.cache import TTLCache
from flingo.db.models import User
from flingo.errors import UserNotFoundError, XpUpdateConflictError
from flingo.experience import service
from flingo.experience.curve import required_xp_for
from flingo.experience.engine import XpState
from flingo.experience.level_loader import LevelCurveLoader
from flingo.experience.service import award_experience, get_experience_summary

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def loader() -> LevelCurveLoader:
    return LevelCurveLoader(TTLCache(300))


async def stored_state(db, user_id: str) -> tuple[int, int, int]:
    result = await db.execute(
        select(User.xp_level, User.xp_progress, User.xp_total).where(User.user_id == user_id)
    )
    return tuple(result.one())


@pytest.mark.asyncio
class TestGetExperienceSummary:
    async def test_new_profile_starts_at_level_one(self, db_session, make_user, loader):
        await make_user("player-1")
        summary = await get_experience_summary(db_session, loader, "player-1")
        assert summary.level == 1
        assert summary.progress == 0
        assert summary.required == required_xp_for(1)

    async def test_unknown_user_has_no_summary(self, db_session, loader):
        assert await get_experience_summary(db_session, loader, "ghost") is None


@pytest.mark.asyncio
class TestAwardExperience:
    async def test_award_persists_state(self, db_session, make_user, loader):
        await make_user("player-1")
        result = await award_experience(db_session, loader, "player-1", 300, now=NOW)
        await db_session.commit()

        assert result.awarded == 300
        assert result.summary.progress == 300
        assert result.summary.last_updated == NOW
        assert await stored_state(db_session, "player-1") == (1, 300, 300)

    async def test_level_up_cascade_persists(self, db_session, make_user, loader):
        await make_user("player-1")
        xp = required_xp_for(1) + required_xp_for(2) + 5
        result = await award_experience(db_session, loader, "player-1", xp)
        await db_session.commit()

        assert result.summary.level == 3
        assert await stored_state(db_session, "player-1") == (3, 5, xp)

    async def test_successive_awards_accumulate(self, db_session, make_user, loader):
        await make_user("player-1")
        await award_experience(db_session, loader, "player-1", 100)
        await award_experience(db_session, loader, "player-1", 150)
        await db_session.commit()
        assert await stored_state(db_session, "player-1") == (1, 250, 250)

    async def test_zero_award_reads_only(self, db_session, make_user, loader):
        await make_user("player-1", xp_level=2, xp_progress=10, xp_total=1250)
        result = await award_experience(db_session, loader, "player-1", 0)
        assert result.awarded == 0
        assert result.summary.level == 2
        assert await stored_state(db_session, "player-1") == (2, 10, 1250)

    async def test_unknown_user_raises(self, db_session, loader):
        with pytest.raises(UserNotFoundError):
            await award_experience(db_session, loader, "ghost", 10)

    async def test_unknown_user_raises_for_zero_award(self, db_session, loader):
        with pytest.raises(UserNotFoundError):
            await award_experience(db_session, loader, "ghost", 0)

    async def test_lost_race_is_retried(self, db_session, make_user, loader, monkeypatch):
        await make_user("player-1")
        real_read_state = service._read_state
        calls = 0

        async def stale_once(db, user_id):
            nonlocal calls
            calls += 1
            if calls == 1:
                # Guard values another writer has already moved past.
                return XpState(), (1, 0, 999)
            return await real_read_state(db, user_id)

        monkeypatch.setattr(service, "_read_state", stale_once)
        result = await award_experience(db_session, loader, "player-1", 40)
        await db_session.commit()

        assert calls == 2
        assert result.awarded == 40
        assert await stored_state(db_session, "player-1") == (1, 40, 40)

    async def test_gives_up_after_max_attempts(self, db_session, make_user, loader, monkeypatch):
        await make_user("player-1")

        async def always_stale(db, user_id):
            return XpState(), (1, 0, 999)

        monkeypatch.setattr(service, "_read_state", always_stale)
        with pytest.raises(XpUpdateConflictError) as exc_info:
            await award_experience(db_session, loader, "player-1", 40, max_attempts=2)

        assert exc_info.value.attempts == 2
        await db_session.rollback()
        assert await stored_state(db_session, "player-1") == (1, 0, 0)

    async def test_user_deleted_mid_race_is_not_retried(self, db_session, loader, monkeypatch):
        calls = 0

        async def phantom(db, user_id):
            nonlocal calls
            calls += 1
            return XpState(), (1, 0, 0)

        monkeypatch.setattr(service, "_read_state", phantom)
        with pytest.raises(UserNotFoundError):
            await award_experience(db_session, loader, "ghost", 40, max_attempts=3)
        assert calls == 1
