"""
StackIt Backend — Test Configuration (conftest.py)
====================================================

Shared fixtures for the whole suite.

Fixture Hierarchy (all function-scoped):
    database          in-memory SQLite Database with every table created
    ├── db_session    AsyncSession on that database
    ├── app           create_app(database=...)
    │   └── test_client   httpx AsyncClient over ASGITransport
    └── make_user     factory inserting a User with a real argon2 hash
    mock_db_session   AsyncMock standing in for AsyncSession (no DB at all)
"""

import os

# Must run before any stackit import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "1000"

from typing import AsyncGenerator, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from stackit.database import Database
from stackit.models.user import User, UserRole
from stackit.security import create_access_token, hash_password


@pytest.fixture
def mock_db_session():
    """
    A MagicMock shaped like AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = question
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.scalar = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    db = Database("sqlite+aiosqlite://", echo=False)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture
def app(database):
    from stackit.main import create_app
    return create_app(database=database)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX client talking to the app in-process.

    ASGITransport does not run the lifespan; the database fixture already
    created the schema.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_user(database):
    """Factory: `await make_user("alice")` inserts and returns a committed User."""

    async def _make_user(username: str, email: str | None = None,
                         password: str = "secret1", role: str = UserRole.USER.value) -> User:
        async with database.session_factory() as session:
            user = User(
                username=username,
                email=email or f"{username}@example.com",
                password_hash=hash_password(password),
                role=role,
            )
            session.add(user)
            await session.commit()
            return user

    return _make_user


@pytest.fixture
def auth_headers():
    """`auth_headers(user)` → Authorization header carrying a fresh session token."""

    def _auth_headers(user: User) -> Dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user)}"}

    return _auth_headers
