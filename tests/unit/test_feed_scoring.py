"""Feed scoring signals and first-match reason labelling."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from flingo.feed.scoring import (
    FEED_RULES,
    FeedContext,
    FeedReason,
    char_code_sum,
    compute_feed_scores,
    is_active_campaign,
    score_game,
)
from flingo.games.config_service import GameConfigRecord
from flingo.ratings.aggregate import RatingAggregate

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
# Everything except the daily variety jitter, for exact score assertions.
STABLE_RULES = tuple(rule for rule in FEED_RULES if rule.name != "variety")


def game(game_id: str = "alpha", **fields) -> GameConfigRecord:
    return GameConfigRecord(game_id=game_id, title=game_id, **fields)


def context(ratings=None, recent=(), beta=False, now=NOW) -> FeedContext:
    return FeedContext(now=now, ratings=ratings or {}, recent_game_ids=list(recent), is_beta_tester=beta)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


class TestReasonLatching:
    def test_featured_wins_label_but_all_boosts_add(self):
        record = game(metadata={"featured": True}, created_at=days_ago(2))
        result = score_game(record, context(recent=["alpha"]), STABLE_RULES)
        assert result.reason is FeedReason.FEATURED
        # 1200 featured + 200 latest play + (400 - 2 * 28) new
        assert result.score == pytest.approx(1200 + 200 + 344)

    def test_recent_beats_new(self):
        record = game(created_at=days_ago(1))
        result = score_game(record, context(recent=["other", "alpha"]), STABLE_RULES)
        assert result.reason is FeedReason.USER_RECENT
        assert result.score == pytest.approx(820 + 372)

    def test_no_signal_is_popular(self):
        result = score_game(game(), context(), STABLE_RULES)
        assert result.reason is FeedReason.POPULAR
        assert result.score == 0

    def test_featured_must_be_literal_true(self):
        result = score_game(game(metadata={"featured": "yes"}), context(), STABLE_RULES)
        assert result.reason is FeedReason.POPULAR


class TestCampaigns:
    def test_active_campaign_boost_includes_priority(self):
        record = game(
            metadata={
                "campaigns": [
                    {"startDate": "2026-10-01T00:00:00Z", "endDate": "2026-10-31T00:00:00Z", "priority": 3},
                ],
            },
        )
        result = score_game(record, context(), STABLE_RULES)
        assert result.reason is FeedReason.CAMPAIGN
        assert result.score == pytest.approx(1030)

    def test_first_active_campaign_counts(self):
        record = game(
            metadata={
                "campaigns": [
                    {"endDate": "2026-01-01T00:00:00Z", "priority": 50},
                    {"priority": 2},
                    {"priority": 9},
                ],
            },
        )
        assert score_game(record, context(), STABLE_RULES).score == pytest.approx(1020)

    @pytest.mark.parametrize(
        ("campaign", "active"),
        [
            ({}, True),
            ({"startDate": "2026-10-19T12:00:00Z"}, True),
            ({"endDate": "2026-10-19T12:00:00Z"}, True),
            ({"startDate": "2026-10-20T00:00:00Z"}, False),
            ({"endDate": "2026-10-18T00:00:00Z"}, False),
            ({"startDate": "not a date", "endDate": "2026-12-01"}, True),
            ("campaign", False),
        ],
    )
    def test_is_active_campaign(self, campaign, active):
        assert is_active_campaign(campaign, NOW) is active

    def test_missing_priority_counts_as_zero(self):
        record = game(metadata={"campaigns": [{"priority": "high"}]})
        assert score_game(record, context(), STABLE_RULES).score == pytest.approx(1000)

    @pytest.mark.parametrize(("priority", "score"), [("5", 1050), (" 2.5 ", 1025), ("", 1000), ("nan", 1000)])
    def test_numeric_string_priority_is_converted(self, priority, score):
        record = game(metadata={"campaigns": [{"priority": priority}]})
        assert score_game(record, context(), STABLE_RULES).score == pytest.approx(score)


class TestRecentPlays:
    @pytest.mark.parametrize(
        ("index", "boost"),
        [(0, 200), (1, 820), (2, 740), (10, 100), (11, 50), (15, 50)],
    )
    def test_boost_by_position(self, index, boost):
        recent = [f"g{i}" for i in range(index)] + ["alpha"]
        assert score_game(game(), context(recent=recent), STABLE_RULES).score == boost


class TestBeta:
    def test_beta_boost_only_for_testers(self):
        record = game(beta_only=True)
        assert score_game(record, context(beta=True), STABLE_RULES).reason is FeedReason.BETA
        assert score_game(record, context(beta=True), STABLE_RULES).score == 800
        assert score_game(record, context(beta=False), STABLE_RULES).reason is FeedReason.POPULAR


class TestFreshness:
    def test_recent_update(self):
        record = game(created_at=days_ago(30), updated_at=days_ago(1))
        result = score_game(record, context(), STABLE_RULES)
        assert result.reason is FeedReason.UPDATED
        assert result.score == pytest.approx(430)

    def test_update_equal_to_creation_is_not_an_update(self):
        record = game(created_at=days_ago(3), updated_at=days_ago(3))
        result = score_game(record, context(), STABLE_RULES)
        assert result.reason is FeedReason.NEW
        assert result.score == pytest.approx(400 - 3 * 28)

    def test_update_without_creation_date_counts(self):
        result = score_game(game(updated_at=days_ago(2)), context(), STABLE_RULES)
        assert result.reason is FeedReason.UPDATED
        assert result.score == pytest.approx(360)

    def test_old_update_ignored(self):
        record = game(created_at=days_ago(60), updated_at=days_ago(8))
        assert score_game(record, context(), STABLE_RULES).reason is FeedReason.POPULAR

    def test_new_game_at_window_edge(self):
        result = score_game(game(created_at=days_ago(14)), context(), STABLE_RULES)
        assert result.reason is FeedReason.NEW
        assert result.score == pytest.approx(8)

    def test_naive_timestamps_read_as_utc(self):
        record = game(created_at=days_ago(1).replace(tzinfo=None))
        assert score_game(record, context(), STABLE_RULES).score == pytest.approx(372)


class TestRatings:
    def test_recently_rated_adds_popularity(self):
        ratings = {"alpha": RatingAggregate("alpha", rating_sum=12, rating_count=4, updated_at=days_ago(1))}
        result = score_game(game(), context(ratings=ratings), STABLE_RULES)
        assert result.reason is FeedReason.RATED
        # 300 - 100 rated, 3.0 * 20 quality, 4 * 2 volume
        assert result.score == pytest.approx(200 + 60 + 8)

    def test_volume_is_capped(self):
        ratings = {"alpha": RatingAggregate("alpha", rating_sum=320, rating_count=80, updated_at=days_ago(10))}
        result = score_game(game(), context(ratings=ratings), STABLE_RULES)
        assert result.reason is FeedReason.POPULAR
        assert result.score == pytest.approx(4.0 * 20 + 50 * 2)


class TestVariety:
    def test_char_code_sum(self):
        assert char_code_sum("abc") == 294
        assert char_code_sum("") == 0

    def test_char_code_sum_uses_utf16_units(self):
        # U+1F600 is the surrogate pair D83D DE00.
        assert char_code_sum("\U0001F600") == 0xD83D + 0xDE00

    def test_variety_is_deterministic_and_bounded(self):
        first = compute_feed_scores([game("alpha"), game("beta")], {}, [], False, now=NOW)
        second = compute_feed_scores([game("alpha"), game("beta")], {}, [], False, now=NOW)
        assert first == second
        for item in first:
            assert 0 <= item.score < 50
            assert item.reason is FeedReason.POPULAR

    def test_variety_value(self):
        seed = int(NOW.timestamp() // 86400)
        expected = ((seed + char_code_sum("alpha")) % 100) / 100 * 50
        [result] = compute_feed_scores([game("alpha")], {}, [], False, now=NOW)
        assert result.score == pytest.approx(expected)

    def test_variety_changes_with_the_day(self):
        [today] = compute_feed_scores([game("alpha")], {}, [], False, now=NOW)
        [tomorrow] = compute_feed_scores([game("alpha")], {}, [], False, now=NOW + timedelta(days=1))
        assert tomorrow.score == pytest.approx((today.score + 0.5) % 50)


def test_compute_feed_scores_accepts_naive_now():
    naive = NOW.replace(tzinfo=None)
    assert compute_feed_scores([game()], {}, [], False, now=naive) == compute_feed_scores(
        [game()], {}, [], False, now=NOW
    )
