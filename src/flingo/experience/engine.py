"""Experience engine: score to XP conversion, level-up state machine, summaries.

Everything here is pure. Persistence and curve loading live in
``flingo.experience.service`` and ``flingo.experience.level_loader``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime

from flingo.experience.curve import (
    DEFAULT_EXPERIENCE_LEVELS,
    ExperienceLevelRow,
    max_level_of,
    requirement_row,
)

MIN_XP_PER_RUN = 1
MAX_XP_PER_RUN = 5000
# Used when a curve row carries a zero requirement.
FALLBACK_REQUIREMENT = 500


@dataclass(frozen=True)
class XpState:
    level: int = 1
    progress: int = 0
    total: int = 0
    updated_at: datetime | None = None


@dataclass(frozen=True)
class XpAward:
    state: XpState
    awarded: int


@dataclass(frozen=True)
class ExperienceSummary:
    level: int
    progress: int
    required: int
    percent: float
    remaining: int
    total: int
    last_updated: datetime | None = None


def _finite(value: object) -> float | None:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def calculate_xp(score: float, multiplier: float = 1.0) -> int:
    """XP awarded for a run.

    Non-positive or non-finite scores earn nothing. Any positive score earns
    at least 1 XP, even when ``floor(score * multiplier)`` is 0, and at most
    5000. A bad multiplier counts as 1.0.
    """
    value = _finite(score)
    if value is None or value <= 0:
        return 0
    factor = _finite(multiplier)
    if factor is None or factor <= 0:
        factor = 1.0
    base = math.floor(value * factor)
    return min(MAX_XP_PER_RUN, max(MIN_XP_PER_RUN, base))


def _clamped_state(state: XpState, max_level: int) -> XpState:
    return replace(
        state,
        level=min(max(int(state.level or 1), 1), max_level),
        progress=max(0, int(state.progress or 0)),
        total=max(0, int(state.total or 0)),
    )


def apply_xp(
    state: XpState,
    xp_earned: int,
    levels: tuple[ExperienceLevelRow, ...] = DEFAULT_EXPERIENCE_LEVELS,
    now: datetime | None = None,
) -> XpAward:
    """Add ``xp_earned`` to ``state``, rolling over as many levels as it covers.

    At the top level progress saturates at that level's requirement, while
    ``total`` always grows by the full amount. A non-positive award leaves the
    state untouched and reports ``awarded=0``.
    """
    if xp_earned <= 0:
        return XpAward(state=state, awarded=0)

    max_level = max_level_of(levels)
    current = _clamped_state(state, max_level)
    level, progress = current.level, current.progress
    remaining = xp_earned

    while remaining > 0:
        requirement = requirement_row(levels, level).required_xp
        if level >= max_level:
            progress = min(requirement, progress + remaining)
            remaining = 0
            break
        needed = max(0, requirement - progress)
        if remaining >= needed:
            remaining -= needed
            level += 1
            progress = 0
        else:
            progress += remaining
            remaining = 0

    new_state = XpState(
        level=level,
        progress=progress,
        total=current.total + xp_earned,
        updated_at=now if now is not None else state.updated_at,
    )
    return XpAward(state=new_state, awarded=xp_earned)


def build_summary(
    state: XpState,
    levels: tuple[ExperienceLevelRow, ...] = DEFAULT_EXPERIENCE_LEVELS,
) -> ExperienceSummary:
    """Project an XP state onto ``levels`` for display."""
    current = _clamped_state(state, max_level_of(levels))
    required = max(1, requirement_row(levels, current.level).required_xp or FALLBACK_REQUIREMENT)
    progress = min(current.progress, required)
    return ExperienceSummary(
        level=current.level,
        progress=progress,
        required=required,
        percent=min(1.0, progress / required),
        remaining=max(0, required - progress),
        total=current.total,
        last_updated=state.updated_at,
    )
