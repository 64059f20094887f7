"""
StackIt Backend — Database Session Management
===============================================

What:  The `Database` storage client (async engine + session factory), the
       declarative Base, and the per-request session dependency.
How:   `create_app()` constructs one Database and stores it on `app.state`.
       Request handlers receive an AsyncSession through `get_db_session`,
       which rolls back on error and always returns the connection to the pool.
When:  Database is built once per process; sessions are created per request.

Lifecycle contract:
    construct     → Database(url)            (no connection is opened yet)
    startup       → await db.wait_until_ready() (SELECT 1 with backoff)
    per request   → async with db.session() as session: ...
    shutdown      → await db.dispose()        (closes all pooled connections)

Connection Pooling Strategy (PostgreSQL):
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour

SQLite (tests, local experiments) uses a single shared StaticPool connection
so an in-memory database survives across sessions.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    stop_after_attempt,
    wait_exponential,
)

from stackit.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic reads for
    --autogenerate and tests use for create_all().
    """
    pass


def _engine_kwargs(url: str) -> dict:
    """Pool arguments appropriate for the URL's backend."""
    if url.startswith("sqlite"):
        return {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": settings.db_pool_pre_ping,
        "pool_recycle": 3600,
    }


class Database:
    """
    Process-wide storage client.

    Owns the async engine (and with it the connection pool) and the session
    factory. Built explicitly and injected; nothing in this module creates
    an engine at import time.
    """

    def __init__(self, url: Optional[str] = None, echo: Optional[bool] = None):
        self.url = url or settings.database_url
        if echo is None:
            echo = settings.log_level == "DEBUG"

        self.engine: AsyncEngine = create_async_engine(
            self.url,
            echo=echo,
            **_engine_kwargs(self.url),
        )
        # expire_on_commit=False: ORM objects stay readable after commit,
        # which the repository relies on when it returns committed rows
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Yields a session; rolls back anything uncommitted on error.

        Services commit their own writes. Anything left open when the block
        exits normally (read-only work) is committed to release locks.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        """Executes SELECT 1; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def wait_until_ready(self) -> None:
        """
        Blocks startup until the database answers, with exponential backoff.

        Raises the last connection error once `db_connect_attempts` is exhausted.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(settings.db_connect_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=settings.db_connect_max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                await self.ping()
        logger.info("Database reachable (%s)", self.dialect_name)

    async def create_all(self) -> None:
        """Creates every table known to Base.metadata (tests, local dev)."""
        # Importing the package registers all models with the metadata
        import stackit.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        """Closes all connections in the pool (application shutdown)."""
        await self.engine.dispose()


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    Example usage in a route:
        @router.get("/questions")
        async def list_questions(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
