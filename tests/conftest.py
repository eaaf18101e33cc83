"""Shared test fixtures.

The suite runs against a throwaway SQLite file per test (aiosqlite) and
without Redis; the rate limiter passes requests through when Redis is not
initialised.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from flingo.auth.jwt import create_access_token
from flingo.config import get_settings
from flingo.database import close_db, get_engine, get_session_factory, init_db
from flingo.db.base import Base
from flingo.db.models import GameConfig, User
from flingo.main import create_app


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh schema in a temporary SQLite database."""
    get_settings.cache_clear()
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'flingo_test.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for seeding and assertions."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to a fresh app instance (fresh caches)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build a bearer header for a user id."""

    def _headers(user_id: str = "player-1", *, beta_tester: bool = False) -> dict[str, str]:
        token = create_access_token(user_id, beta_tester=beta_tester)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Insert a user profile and commit."""

    async def _make(user_id: str = "player-1", **fields: Any) -> User:
        user = User(user_id=user_id, **fields)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def make_game(db_session: AsyncSession) -> Callable[..., Awaitable[GameConfig]]:
    """Insert a game config and commit."""

    async def _make(
        game_id: str,
        *,
        title: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
        metadata: dict[str, Any] | None = None,
        **fields: Any,
    ) -> GameConfig:
        game = GameConfig(
            game_id=game_id,
            title=title or game_id.title(),
            created_at=created_at,
            updated_at=updated_at,
            game_metadata=metadata,
            **fields,
        )
        db_session.add(game)
        await db_session.commit()
        return game

    return _make
