"""Liveness, readiness and version probes."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.config import get_settings
from flingo.database import get_session
from flingo.dependencies import get_level_loader
from flingo.experience.curve import max_level_of
from flingo.experience.level_loader import LevelCurveLoader
from flingo.redis_client import get_redis

router = APIRouter()


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


async def _check_redis() -> str:
    try:
        await get_redis().ping()
    except Exception as exc:
        return f"error: {exc}"
    return "ok"


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/ready")
async def readiness(
    db: AsyncSession = Depends(get_session),  # noqa: B008
    loader: LevelCurveLoader = Depends(get_level_loader),  # noqa: B008
) -> dict[str, object]:
    """Database is required; Redis only backs rate limiting, so losing it degrades."""
    checks: dict[str, object] = {
        "database": await _check_database(db),
        "redis": await _check_redis(),
        "level_curve_max_level": max_level_of(loader.current()),
    }
    if checks["database"] != "ok":
        status = "unavailable"
    elif checks["redis"] != "ok":
        status = "degraded"
    else:
        status = "ready"
    return {"status": status, "checks": checks}


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {
        "service": "flingo-api",
        "version": settings.app_version,
        "environment": settings.environment,
    }
