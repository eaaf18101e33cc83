"""Experience level curve.

Every level needs ``round(BASE_REQUIREMENT + GROWTH_FACTOR * level ** CURVE)``
XP. Early levels cost roughly one good run; later levels stretch out without
becoming unreachable. The generated table is the default for every process;
an admin override table is normalised into the same shape by
``normalize_rows``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from numbers import Real
from typing import Any

MAX_LEVEL = 100
BASE_REQUIREMENT = 1100
GROWTH_FACTOR = 140
CURVE = 1.35


@dataclass(frozen=True)
class ExperienceLevelRow:
    level: int
    required_xp: int
    cumulative_xp: int


def _round_half_up(value: float) -> int:
    # round() is banker's rounding; the curve rounds .5 upwards.
    return math.floor(value + 0.5)


def required_xp_for(level: int) -> int:
    """XP needed to clear ``level`` (not cumulative)."""
    return _round_half_up(BASE_REQUIREMENT + GROWTH_FACTOR * level**CURVE)


def generate_levels(max_level: int = MAX_LEVEL) -> tuple[ExperienceLevelRow, ...]:
    """Build the default curve: contiguous levels 1..max_level with running totals."""
    rows: list[ExperienceLevelRow] = []
    cumulative = 0
    for level in range(1, max_level + 1):
        required = required_xp_for(level)
        cumulative += required
        rows.append(ExperienceLevelRow(level=level, required_xp=required, cumulative_xp=cumulative))
    return tuple(rows)


DEFAULT_EXPERIENCE_LEVELS: tuple[ExperienceLevelRow, ...] = generate_levels()


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and math.isfinite(value)


def normalize_rows(rows: Iterable[Mapping[str, Any]]) -> tuple[ExperienceLevelRow, ...]:
    """Turn raw ``{"level", "required_xp"}`` mappings into a valid curve.

    Rows without numeric level/required_xp are dropped, the rest are sorted by
    level and ``cumulative_xp`` is recomputed from scratch; any stored
    cumulative value is ignored. Returns an empty tuple if nothing survives.
    """
    valid = [
        (int(row["level"]), int(row["required_xp"]))
        for row in rows
        if _is_number(row.get("level")) and _is_number(row.get("required_xp"))
    ]
    valid.sort(key=lambda pair: pair[0])

    normalized: list[ExperienceLevelRow] = []
    cumulative = 0
    for level, required in valid:
        cumulative += required
        normalized.append(ExperienceLevelRow(level=level, required_xp=required, cumulative_xp=cumulative))
    return tuple(normalized)


def max_level_of(levels: tuple[ExperienceLevelRow, ...]) -> int:
    return levels[-1].level if levels else MAX_LEVEL


def requirement_row(levels: tuple[ExperienceLevelRow, ...], level: int) -> ExperienceLevelRow:
    """Row for ``level`` clamped into the table; the last row if the level is missing."""
    table = levels or DEFAULT_EXPERIENCE_LEVELS
    clamped = min(max(level, 1), table[-1].level)
    for row in table:
        if row.level == clamped:
            return row
    return table[-1]


def describe_level(level: int, levels: tuple[ExperienceLevelRow, ...] = DEFAULT_EXPERIENCE_LEVELS) -> ExperienceLevelRow | None:
    """Exact lookup, no clamping. None for levels outside the table."""
    for row in levels:
        if row.level == level:
            return row
    return None
