"""Feed scoring: additive signals with a first-match reason label.

Each game starts at 0 and runs through ``FEED_RULES`` in order. Every rule
that applies adds its contribution; the first applicable rule that carries a
reason names the game's reason, so a featured game that was also played
recently and is brand new still reads ``featured`` while its score includes
all three boosts. Games that match no labelled rule are ``popular``.

Signals, in evaluation order:

1. featured          +1200
2. active campaign   +1000 + priority * 10
3. recently played   +200 for the latest play, else max(900 - index * 80, 50)
4. beta for testers  +800
5. updated <= 7 days  +max(0, 500 - days * 70)   (only if updated after creation)
6. created <= 14 days +max(0, 400 - days * 28)
7. rated <= 3 days    +max(0, 300 - days * 100)
8. popularity        avg_rating * 20 + min(rating_count, 50) * 2   (no label)
9. daily variety     [0, 50) from the UTC day and the game id       (no label)
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from flingo.games.config_service import GameConfigRecord
from flingo.ratings.aggregate import RatingAggregate

SECONDS_PER_DAY = 24 * 60 * 60

FEATURED_BOOST = 1200
CAMPAIGN_BOOST = 1000
CAMPAIGN_PRIORITY_WEIGHT = 10
LATEST_PLAY_BOOST = 200
RECENT_PLAY_BOOST = 900
RECENT_PLAY_STEP = 80
RECENT_PLAY_FLOOR = 50
BETA_BOOST = 800
UPDATED_WINDOW_DAYS = 7
UPDATED_BOOST = 500
UPDATED_DECAY = 70
NEW_WINDOW_DAYS = 14
NEW_BOOST = 400
NEW_DECAY = 28
RATED_WINDOW_DAYS = 3
RATED_BOOST = 300
RATED_DECAY = 100
QUALITY_WEIGHT = 20
VOLUME_CAP = 50
VOLUME_WEIGHT = 2
VARIETY_RANGE = 50


class FeedReason(str, Enum):
    FEATURED = "featured"
    CAMPAIGN = "campaign"
    USER_RECENT = "user_recent"
    BETA = "beta"
    UPDATED = "updated"
    NEW = "new"
    RATED = "rated"
    POPULAR = "popular"


@dataclass(frozen=True)
class FeedScore:
    game_id: str
    score: float
    reason: FeedReason


@dataclass(frozen=True)
class FeedContext:
    now: datetime
    ratings: Mapping[str, RatingAggregate]
    recent_game_ids: Sequence[str]
    is_beta_tester: bool

    @property
    def daily_seed(self) -> int:
        return math.floor(self.now.timestamp() / SECONDS_PER_DAY)


Contribution = Callable[[GameConfigRecord, FeedContext], "float | None"]


@dataclass(frozen=True)
class FeedRule:
    name: str
    reason: FeedReason | None
    contribution: Contribution


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _timestamp(value: datetime | None) -> float:
    """Epoch seconds, 0 for a missing timestamp."""
    if value is None:
        return 0.0
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def _days_since(ctx: FeedContext, timestamp: float) -> float:
    return (ctx.now.timestamp() - timestamp) / SECONDS_PER_DAY


def _parse_instant(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _number(value: Any) -> float:
    """Numeric value of ints, floats and numeric strings; 0 for anything else."""
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value) if math.isfinite(value) else 0.0


def is_active_campaign(campaign: Any, now: datetime) -> bool:
    """A campaign is live between its start and end dates, both inclusive and optional."""
    if not isinstance(campaign, Mapping):
        return False
    start = _parse_instant(campaign.get("startDate"))
    if start is not None and start > now:
        return False
    end = _parse_instant(campaign.get("endDate"))
    if end is not None and end < now:
        return False
    return True


def char_code_sum(text: str) -> int:
    """Sum of UTF-16 code units, the hash behind the daily variety signal."""
    data = text.encode("utf-16-le")
    return sum(int.from_bytes(data[i:i + 2], "little") for i in range(0, len(data), 2))


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


def _featured(game: GameConfigRecord, _ctx: FeedContext) -> float | None:
    return FEATURED_BOOST if game.metadata.get("featured") is True else None


def _campaign(game: GameConfigRecord, ctx: FeedContext) -> float | None:
    campaigns = game.metadata.get("campaigns")
    if not isinstance(campaigns, list):
        return None
    active = next((c for c in campaigns if is_active_campaign(c, ctx.now)), None)
    if active is None:
        return None
    return CAMPAIGN_BOOST + _number(active.get("priority")) * CAMPAIGN_PRIORITY_WEIGHT


def _user_recent(game: GameConfigRecord, ctx: FeedContext) -> float | None:
    try:
        index = list(ctx.recent_game_ids).index(game.game_id)
    except ValueError:
        return None
    # The game just played gets less; the ones before it get pulled back up.
    boost = LATEST_PLAY_BOOST if index == 0 else RECENT_PLAY_BOOST - index * RECENT_PLAY_STEP
    return max(boost, RECENT_PLAY_FLOOR)


def _beta(game: GameConfigRecord, ctx: FeedContext) -> float | None:
    return BETA_BOOST if ctx.is_beta_tester and game.beta_only else None


def _updated(game: GameConfigRecord, ctx: FeedContext) -> float | None:
    updated = _timestamp(game.updated_at)
    if updated <= 0:
        return None
    days = _days_since(ctx, updated)
    if days > UPDATED_WINDOW_DAYS or updated <= _timestamp(game.created_at):
        return None
    return max(0.0, UPDATED_BOOST - days * UPDATED_DECAY)


def _new(game: GameConfigRecord, ctx: FeedContext) -> float | None:
    created = _timestamp(game.created_at)
    if created <= 0:
        return None
    days = _days_since(ctx, created)
    if days > NEW_WINDOW_DAYS:
        return None
    return max(0.0, NEW_BOOST - days * NEW_DECAY)


def _rated(game: GameConfigRecord, ctx: FeedContext) -> float | None:
    rating = ctx.ratings.get(game.game_id)
    if rating is None or rating.updated_at is None:
        return None
    days = _days_since(ctx, _timestamp(rating.updated_at))
    if days > RATED_WINDOW_DAYS:
        return None
    return max(0.0, RATED_BOOST - days * RATED_DECAY)


def _popularity(game: GameConfigRecord, ctx: FeedContext) -> float | None:
    rating = ctx.ratings.get(game.game_id)
    if rating is None:
        return None
    return rating.avg_rating * QUALITY_WEIGHT + min(rating.rating_count, VOLUME_CAP) * VOLUME_WEIGHT


def _variety(game: GameConfigRecord, ctx: FeedContext) -> float | None:
    pseudo_random = ((ctx.daily_seed + char_code_sum(game.game_id)) % 100) / 100
    return pseudo_random * VARIETY_RANGE


FEED_RULES: tuple[FeedRule, ...] = (
    FeedRule("featured", FeedReason.FEATURED, _featured),
    FeedRule("campaign", FeedReason.CAMPAIGN, _campaign),
    FeedRule("user_recent", FeedReason.USER_RECENT, _user_recent),
    FeedRule("beta", FeedReason.BETA, _beta),
    FeedRule("updated", FeedReason.UPDATED, _updated),
    FeedRule("new", FeedReason.NEW, _new),
    FeedRule("rated", FeedReason.RATED, _rated),
    FeedRule("popularity", None, _popularity),
    FeedRule("variety", None, _variety),
)


def score_game(game: GameConfigRecord, ctx: FeedContext, rules: Sequence[FeedRule] = FEED_RULES) -> FeedScore:
    """Fold the rules over one game, accumulating score and latching the first reason."""
    score = 0.0
    reason: FeedReason | None = None
    for rule in rules:
        delta = rule.contribution(game, ctx)
        if delta is None:
            continue
        score += delta
        if reason is None and rule.reason is not None:
            reason = rule.reason
    return FeedScore(game_id=game.game_id, score=score, reason=reason or FeedReason.POPULAR)


def compute_feed_scores(
    games: Sequence[GameConfigRecord],
    ratings: Mapping[str, RatingAggregate],
    recent_game_ids: Sequence[str],
    is_beta_tester: bool,
    now: datetime | None = None,
) -> list[FeedScore]:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    ctx = FeedContext(
        now=now,
        ratings=ratings,
        recent_game_ids=list(recent_game_ids),
        is_beta_tester=is_beta_tester,
    )
    return [score_game(game, ctx) for game in games]
