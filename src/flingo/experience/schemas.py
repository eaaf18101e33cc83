"""Pydantic models for experience endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from flingo.experience.curve import ExperienceLevelRow
from flingo.experience.engine import ExperienceSummary
from flingo.schemas import CamelModel


class ExperienceSummaryResponse(CamelModel):
    level: int
    progress: int
    required: int
    percent: float
    remaining: int
    total: int
    last_updated: datetime | None = None

    @classmethod
    def from_summary(cls, summary: ExperienceSummary) -> ExperienceSummaryResponse:
        return cls(
            level=summary.level,
            progress=summary.progress,
            required=summary.required,
            percent=summary.percent,
            remaining=summary.remaining,
            total=summary.total,
            last_updated=summary.last_updated,
        )


class SummaryResponse(CamelModel):
    summary: ExperienceSummaryResponse | None


class RunRequest(CamelModel):
    game_id: str = Field(min_length=1, max_length=64)
    score: float


class RunResponse(CamelModel):
    ok: bool = True
    awarded_xp: int
    summary: ExperienceSummaryResponse


class LevelEntry(CamelModel):
    level: int
    required_xp: int
    cumulative_xp: int

    @classmethod
    def from_row(cls, row: ExperienceLevelRow) -> LevelEntry:
        return cls(level=row.level, required_xp=row.required_xp, cumulative_xp=row.cumulative_xp)


class LevelsResponse(CamelModel):
    max_level: int
    levels: list[LevelEntry]
