"""Shared test fixtures."""

from __future__ import annotations

import itertools
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dare2earn.auth.jwt import reset_keys
from dare2earn.config import get_settings
from dare2earn.database import close_db, get_engine, get_session, init_db
from dare2earn.db.base import Base
from dare2earn.db.models import Category, User
from dare2earn.main import create_app

PASSWORD = "secret123"

TEST_CATEGORIES = [
    {"name": "Fitness", "description": "Physical challenges and workouts"},
    {"name": "Creative", "description": "Art, music, writing and crafts"},
    {"name": "Food", "description": "Cooking and eating challenges"},
]

UserFactory = Callable[..., Awaitable[dict[str, Any]]]
DareFactory = Callable[..., Awaitable[dict[str, Any]]]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Deterministic settings and a fresh JWT key cache for every test."""
    monkeypatch.setenv("D2E_JWT_SECRET_KEY", "test-signing-secret-0123456789abcdef0123456789")
    monkeypatch.setenv("D2E_LOG_FORMAT", "console")
    monkeypatch.setenv("D2E_ENVIRONMENT", "test")
    get_settings.cache_clear()
    reset_keys()
    yield
    get_settings.cache_clear()
    reset_keys()


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """A fresh SQLite database with the full schema and seeded categories."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'dare2earn_test.db'}")
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(insert(Category), TEST_CATEGORIES)
    yield
    await close_db()


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to a fresh app instance."""
    transport = ASGITransport(app=create_app())
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for setup and assertions. Commit before calling the API."""
    sessions = get_session()
    session = await anext(sessions)
    yield session
    await sessions.aclose()


@pytest_asyncio.fixture
async def category_ids(db_session: AsyncSession) -> dict[str, int]:
    result = await db_session.execute(select(Category.name, Category.id))
    return {name: cid for name, cid in result.all()}


@pytest_asyncio.fixture
async def make_user(client: AsyncClient) -> UserFactory:
    """Sign up a user through the API and return its credentials and token."""
    counter = itertools.count(1)

    async def _make(
        username: str | None = None,
        email: str | None = None,
        password: str = PASSWORD,
        **extra: Any,
    ) -> dict[str, Any]:
        username = username or f"player{next(counter)}"
        email = email or f"{username}@example.com"
        response = await client.post(
            "/auth/signup",
            json={"email": email, "password": password, "username": username, **extra},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return {
            "id": data["user"]["id"],
            "email": email,
            "username": username,
            "password": password,
            "token": data["token"],
            "headers": bearer(data["token"]),
        }

    return _make


@pytest_asyncio.fixture
async def make_admin(make_user: UserFactory, db_session: AsyncSession) -> UserFactory:
    """Same as make_user, then promote the account to admin."""

    async def _make(**kwargs: Any) -> dict[str, Any]:
        user = await make_user(**kwargs)
        await db_session.execute(update(User).where(User.id == user["id"]).values(role="admin"))
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def make_dare(client: AsyncClient) -> DareFactory:
    """Create a dare through the API. The window starts an hour ago and runs a week."""

    async def _make(creator: dict[str, Any], **overrides: Any) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        body = {
            "title": "Cold shower challenge",
            "description": "Take a cold shower every morning for a week",
            "entry_fee": "10.00",
            "start_time": (now - timedelta(hours=1)).isoformat(),
            "end_time": (now + timedelta(days=7)).isoformat(),
            **overrides,
        }
        response = await client.post("/api/dares", json=body, headers=creator["headers"])
        assert response.status_code == 201, response.text
        return response.json()["dare"]

    return _make
