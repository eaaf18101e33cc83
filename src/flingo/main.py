"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from flingo.cache import TTLCache
from flingo.config import Settings, get_settings
from flingo.database import close_db, get_session_factory, init_db
from flingo.experience.level_loader import LevelCurveLoader, table_level_source
from flingo.experience.router import router as experience_router
from flingo.feed.router import router as feed_router
from flingo.feed.service import FeedService
from flingo.games.router import router as games_router
from flingo.health.router import router as health_router
from flingo.middleware import setup_middleware
from flingo.ratings.router import router as ratings_router
from flingo.redis_client import close_redis, init_redis


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url, max_connections=settings.redis_max_connections)

    yield

    await close_db()
    await close_redis()


def build_level_loader(settings: Settings) -> LevelCurveLoader:
    source = table_level_source(get_session_factory) if settings.experience_levels_override else None
    return LevelCurveLoader(TTLCache(settings.level_cache_ttl_seconds), source)


def build_feed_service(settings: Settings) -> FeedService:
    return FeedService(
        TTLCache(settings.game_config_cache_ttl_seconds),
        recent_games_limit=settings.recent_games_limit,
        default_limit=settings.feed_default_limit,
        max_limit=settings.feed_max_limit,
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Flingo API",
        description="Backend API for flingo.fun: game feed, experience and ratings",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # Process-wide caches, one per app instance.
    app.state.level_loader = build_level_loader(settings)
    app.state.feed_service = build_feed_service(settings)

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(feed_router)
    app.include_router(games_router)
    app.include_router(experience_router)
    app.include_router(ratings_router)

    return app


app = create_app()
