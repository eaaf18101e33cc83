"""Level curve loading with a TTL cache and an optional override table."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from flingo.cache import TTLCache
from flingo.db.models import ExperienceLevel
from flingo.experience.curve import DEFAULT_EXPERIENCE_LEVELS, ExperienceLevelRow, normalize_rows
from flingo.fallback import LoadResult

logger = structlog.get_logger()

Levels = tuple[ExperienceLevelRow, ...]
LevelSource = Callable[[], Awaitable[Sequence[Mapping[str, Any]]]]


def table_level_source(get_factory: Callable[[], async_sessionmaker[AsyncSession]]) -> LevelSource:
    """Read raw override rows from the ``experience_levels`` table.

    The session factory is resolved per fetch, so the source can be built
    before the database is initialised.
    """

    async def fetch() -> Sequence[Mapping[str, Any]]:
        async with get_factory()() as session:
            result = await session.execute(select(ExperienceLevel))
            return [
                {"level": row.level, "required_xp": row.required_xp}
                for row in result.scalars()
            ]

    return fetch


class LevelCurveLoader:
    """Serve the active XP curve.

    Without a source the generated default is used. With one, rows are
    fetched on cache expiry and normalised; any failure or an empty table
    falls back to the default and is logged, never raised.
    """

    def __init__(self, cache: TTLCache[Levels], source: LevelSource | None = None) -> None:
        self._cache = cache
        self._source = source

    async def _fetch(self) -> LoadResult[Levels]:
        if self._source is None:
            return LoadResult.ok(DEFAULT_EXPERIENCE_LEVELS)
        try:
            rows = await self._source()
        except Exception as exc:
            return LoadResult.degraded(f"source_error: {exc}")
        levels = normalize_rows(rows)
        if not levels:
            return LoadResult.degraded("no_valid_rows")
        return LoadResult.ok(levels)

    async def load(self) -> Levels:
        cached = self._cache.get()
        if cached is not None:
            return cached
        result = await self._fetch()
        levels = result.unwrap_or(DEFAULT_EXPERIENCE_LEVELS, event="level_curve_degraded")
        if self._source is not None and not result.is_degraded:
            logger.info("level_curve_loaded", levels=len(levels))
        return self._cache.set(levels)

    def current(self) -> Levels:
        """The last loaded curve (even if expired), else the default. No I/O."""
        return self._cache.peek() or DEFAULT_EXPERIENCE_LEVELS

    def invalidate(self) -> None:
        self._cache.invalidate()
