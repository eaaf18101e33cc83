"""Feed assembly: gather inputs, score, interleave, cut to a page."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from flingo.cache import TTLCache
from flingo.fallback import LoadResult
from flingo.feed.interleave import interleave
from flingo.feed.scoring import FeedReason, compute_feed_scores
from flingo.games.config_service import GameConfigRecord, list_all_game_configs
from flingo.games.stats_service import load_recent_game_ids
from flingo.ratings.aggregate import RatingAggregate
from flingo.ratings.service import load_rating_stats

DEFAULT_LIMIT = 50
MAX_LIMIT = 100

GameConfigs = tuple[GameConfigRecord, ...]
GameConfigSource = Callable[[AsyncSession], Awaitable[Sequence[GameConfigRecord]]]


@dataclass(frozen=True)
class FeedPage:
    ordered_game_ids: list[str]
    scores: dict[str, float]
    reasons: dict[str, FeedReason]
    total: int


def clamp_limit(limit: int | None, default: int = DEFAULT_LIMIT, maximum: int = MAX_LIMIT) -> int:
    return min(max(int(limit or default), 1), maximum)


def compute_feed(
    game_configs: Sequence[GameConfigRecord],
    ratings: Mapping[str, RatingAggregate],
    recent_game_ids: Sequence[str],
    is_beta_tester: bool,
    limit: int | None = DEFAULT_LIMIT,
    now: datetime | None = None,
    *,
    max_limit: int = MAX_LIMIT,
) -> FeedPage:
    """Rank the visible games and return the first ``limit`` of them.

    Beta-only games are hidden from everyone but beta testers. ``total``
    counts every visible game, not just the returned page.
    """
    visible = [game for game in game_configs if is_beta_tester or not game.beta_only]
    scored = compute_feed_scores(visible, ratings, recent_game_ids, is_beta_tester, now=now)
    ordered = interleave(scored)
    page = ordered[:clamp_limit(limit, maximum=max_limit)]
    return FeedPage(
        ordered_game_ids=[item.game_id for item in page],
        scores={item.game_id: item.score for item in page},
        reasons={item.game_id: item.reason for item in page},
        total=len(ordered),
    )


class FeedService:
    """Loads feed inputs, tolerating failure of any single source.

    Game configs are cached for the cache's TTL and may be that stale.
    Missing ratings or play history just drop their signals.
    """

    def __init__(
        self,
        config_cache: TTLCache[GameConfigs],
        *,
        config_source: GameConfigSource = list_all_game_configs,
        recent_games_limit: int = 20,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self._config_cache = config_cache
        self._config_source = config_source
        self._recent_games_limit = recent_games_limit
        self._default_limit = default_limit
        self._max_limit = max_limit

    def _page_size(self, limit: int | None) -> int:
        return clamp_limit(limit, self._default_limit, self._max_limit)

    async def _load_game_configs(self, db: AsyncSession) -> LoadResult[GameConfigs]:
        cached = self._config_cache.get()
        if cached is not None:
            return LoadResult.ok(cached)
        try:
            configs = tuple(await self._config_source(db))
        except Exception as exc:
            await db.rollback()
            return LoadResult.degraded(str(exc))
        return LoadResult.ok(self._config_cache.set(configs))

    async def game_configs(self, db: AsyncSession) -> GameConfigs:
        result = await self._load_game_configs(db)
        # An expired copy beats an empty feed.
        return result.unwrap_or(self._config_cache.peek() or (), event="game_config_source_unavailable")

    async def ratings(self, db: AsyncSession) -> dict[str, RatingAggregate]:
        result = await load_rating_stats(db)
        return result.unwrap_or({}, event="rating_source_unavailable")

    async def recent_games(
        self,
        db: AsyncSession,
        user_id: str | None,
        client_recent_games: Sequence[str] = (),
    ) -> list[str]:
        """Server-side play history, else what the client remembers."""
        fallback = [game_id for game_id in client_recent_games if game_id]
        if not user_id:
            return fallback
        result = await load_recent_game_ids(db, user_id, self._recent_games_limit)
        recent = result.unwrap_or([], event="recent_games_unavailable", user_id=user_id)
        return recent or fallback

    async def public_feed(self, db: AsyncSession, limit: int | None = None, now: datetime | None = None) -> FeedPage:
        configs = await self.game_configs(db)
        ratings = await self.ratings(db)
        return compute_feed(configs, ratings, [], False, self._page_size(limit), now, max_limit=self._max_limit)

    async def personalized_feed(
        self,
        db: AsyncSession,
        user_id: str | None,
        is_beta_tester: bool,
        limit: int | None = None,
        client_recent_games: Sequence[str] = (),
        now: datetime | None = None,
    ) -> tuple[FeedPage, list[str]]:
        """Feed tuned to the user; also returns the recent-games list that was used."""
        configs = await self.game_configs(db)
        ratings = await self.ratings(db)
        recent = await self.recent_games(db, user_id, client_recent_games)
        page = compute_feed(
            configs, ratings, recent, is_beta_tester, self._page_size(limit), now, max_limit=self._max_limit
        )
        return page, recent

    def invalidate(self) -> None:
        self._config_cache.invalidate()
