"""Reason-diverse ordering of scored games."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from flingo.feed.scoring import FeedReason, FeedScore

# Differs from the scoring order: user_recent comes after new here.
PRIORITY_ORDER: tuple[FeedReason, ...] = (
    FeedReason.FEATURED,
    FeedReason.CAMPAIGN,
    FeedReason.BETA,
    FeedReason.UPDATED,
    FeedReason.NEW,
    FeedReason.USER_RECENT,
    FeedReason.RATED,
    FeedReason.POPULAR,
)


def interleave(scored: Iterable[FeedScore]) -> list[FeedScore]:
    """Order games so each reason shows up near the top.

    Games are sorted by score (stable, highest first) and bucketed by reason.
    The first pass takes the best game of every non-empty bucket in
    ``PRIORITY_ORDER``; after that buckets are drained round-robin in the
    same order.
    """
    ordered = sorted(scored, key=lambda item: item.score, reverse=True)
    buckets: dict[FeedReason, deque[FeedScore]] = {reason: deque() for reason in PRIORITY_ORDER}
    for item in ordered:
        buckets[item.reason].append(item)

    result: list[FeedScore] = []
    while any(buckets.values()):
        for reason in PRIORITY_ORDER:
            if buckets[reason]:
                result.append(buckets[reason].popleft())
    return result
