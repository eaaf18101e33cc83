"""Experience API: summary, run submission, level table."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.auth.dependencies import CurrentUser, get_current_user
from flingo.config import get_settings
from flingo.database import get_session
from flingo.dependencies import get_level_loader
from flingo.experience.curve import max_level_of
from flingo.experience.engine import calculate_xp
from flingo.experience.level_loader import LevelCurveLoader
from flingo.experience.schemas import (
    ExperienceSummaryResponse,
    LevelEntry,
    LevelsResponse,
    RunRequest,
    RunResponse,
    SummaryResponse,
)
from flingo.experience.service import award_experience, get_experience_summary
from flingo.games.config_service import get_game_config
from flingo.games.stats_service import record_user_game_session

router = APIRouter(prefix="/api/v1/experience", tags=["Experience"])


@router.get("/summary", response_model=SummaryResponse)
async def get_summary(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    loader: LevelCurveLoader = Depends(get_level_loader),
):
    """Current level progress; ``summary`` is null when the profile does not exist."""
    summary = await get_experience_summary(db, loader, current_user.user_id)
    return SummaryResponse(
        summary=ExperienceSummaryResponse.from_summary(summary) if summary else None,
    )


@router.post("/runs", response_model=RunResponse)
async def record_run(
    body: RunRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    loader: LevelCurveLoader = Depends(get_level_loader),
):
    """Convert a finished run's score to XP using the game's multiplier and apply it."""
    settings = get_settings()
    game = await get_game_config(db, body.game_id)
    multiplier = game.xp_multiplier if game is not None else 1.0
    xp = calculate_xp(body.score, multiplier)

    result = await award_experience(
        db,
        loader,
        current_user.user_id,
        xp,
        max_attempts=settings.xp_update_max_attempts,
    )
    await record_user_game_session(db, current_user.user_id, body.game_id, body.score)
    await db.commit()

    return RunResponse(
        ok=True,
        awarded_xp=result.awarded,
        summary=ExperienceSummaryResponse.from_summary(result.summary),
    )


@router.get("/levels", response_model=LevelsResponse)
async def list_levels(loader: LevelCurveLoader = Depends(get_level_loader)):
    """The active level curve."""
    levels = await loader.load()
    return LevelsResponse(
        max_level=max_level_of(levels),
        levels=[LevelEntry.from_row(row) for row in levels],
    )
