"""LevelCurveLoader: default curve, override table, fallback, TTL."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from flingo.cache import TTLCache
from flingo.experience.curve import DEFAULT_EXPERIENCE_LEVELS
from flingo.experience.level_loader import LevelCurveLoader


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CountingSource:
    def __init__(self, rows=None, error: Exception | None = None) -> None:
        self.rows = rows or []
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rows


OVERRIDE_ROWS = [
    {"level": 2, "required_xp": 200},
    {"level": 1, "required_xp": 100},
]


@pytest.mark.asyncio
async def test_without_source_serves_default_curve():
    loader = LevelCurveLoader(TTLCache(300))
    assert await loader.load() == DEFAULT_EXPERIENCE_LEVELS


@pytest.mark.asyncio
async def test_override_rows_are_normalised():
    loader = LevelCurveLoader(TTLCache(300), CountingSource(OVERRIDE_ROWS))
    levels = await loader.load()
    assert [(r.level, r.required_xp, r.cumulative_xp) for r in levels] == [(1, 100, 100), (2, 200, 300)]


@pytest.mark.asyncio
async def test_cached_until_expiry():
    clock = FakeClock()
    source = CountingSource(OVERRIDE_ROWS)
    loader = LevelCurveLoader(TTLCache(300, clock=clock), source)

    await loader.load()
    await loader.load()
    assert source.calls == 1

    clock.now = 301
    await loader.load()
    assert source.calls == 2


@pytest.mark.asyncio
async def test_invalidate_forces_reload():
    source = CountingSource(OVERRIDE_ROWS)
    loader = LevelCurveLoader(TTLCache(300), source)
    await loader.load()
    loader.invalidate()
    await loader.load()
    assert source.calls == 2


@pytest.mark.asyncio
async def test_source_error_falls_back_and_logs():
    loader = LevelCurveLoader(TTLCache(300), CountingSource(error=ConnectionError("db down")))
    with patch("flingo.fallback.logger") as mock_logger:
        levels = await loader.load()
    assert levels == DEFAULT_EXPERIENCE_LEVELS
    mock_logger.warning.assert_called_once()
    event = mock_logger.warning.call_args.args[0]
    assert event == "level_curve_degraded"
    assert "db down" in mock_logger.warning.call_args.kwargs["reason"]


@pytest.mark.asyncio
async def test_empty_table_falls_back():
    loader = LevelCurveLoader(TTLCache(300), CountingSource([{"level": None, "required_xp": 5}]))
    with patch("flingo.fallback.logger") as mock_logger:
        levels = await loader.load()
    assert levels == DEFAULT_EXPERIENCE_LEVELS
    mock_logger.warning.assert_called_once_with("level_curve_degraded", reason="no_valid_rows")


@pytest.mark.asyncio
async def test_current_does_no_io():
    clock = FakeClock()
    source = CountingSource(OVERRIDE_ROWS)
    loader = LevelCurveLoader(TTLCache(300, clock=clock), source)

    assert loader.current() == DEFAULT_EXPERIENCE_LEVELS
    await loader.load()
    clock.now = 10_000
    # Expired, but the last loaded curve is still served.
    assert len(loader.current()) == 2
    assert source.calls == 1
