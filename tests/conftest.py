"""
Fixtures for the friendship service and API tests.
"""
import os

os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("AUTH_JWT_KEY", "test-secret")

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Models must be imported so their tables are registered on the metadata
import memoria.models  # noqa: F401
from memoria.core.config import settings
from memoria.core.database import Base, get_db
from memoria.main import app
from memoria.models.friendship import Friendship
from memoria.models.profile import Profile


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite database shared by every session of a test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest_asyncio.fixture
async def profiles(db_session):
    """Seeds four users; alice and alicia share a name prefix."""
    users = {
        "alice": Profile(id="user_alice", username="alice", avatar_url="https://img.test/alice.png"),
        "alicia": Profile(id="user_alicia", username="Alicia"),
        "bob": Profile(id="user_bob", username="bob"),
        "carol": Profile(id="user_carol", username="carol"),
    }
    db_session.add_all(users.values())
    await db_session.commit()
    return users


@pytest_asyncio.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def make_token(user_id, expires_in=timedelta(minutes=5), **claims):
    payload = {"sub": user_id, "exp": datetime.now(timezone.utc) + expires_in}
    payload.update(claims)
    return jwt.encode(payload, settings.AUTH_JWT_KEY, algorithm=settings.AUTH_JWT_ALGORITHMS[0])


@pytest.fixture
def auth_headers():
    def _headers(user_id):
        return {"Authorization": f"Bearer {make_token(user_id)}"}
    return _headers


@pytest.fixture
def count_friendships(session_factory):
    async def _count():
        async with session_factory() as session:
            return await session.scalar(select(func.count()).select_from(Friendship))
    return _count


@pytest.fixture
def token_factory():
    return make_token
