"""Shared FastAPI dependencies."""

from fastapi import Request

from flingo.experience.level_loader import LevelCurveLoader
from flingo.feed.service import FeedService


def get_level_loader(request: Request) -> LevelCurveLoader:
    """The application's level curve loader (one cache per app)."""
    return request.app.state.level_loader


def get_feed_service(request: Request) -> FeedService:
    return request.app.state.feed_service
