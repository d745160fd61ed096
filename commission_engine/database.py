"""
Database engine and session factory.

PostgreSQL (asyncpg) gets a regular connection pool; SQLite (aiosqlite)
runs without pooling, except in-memory databases which must keep their
single connection alive.
"""

from functools import lru_cache

from loguru import logger
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from commission_engine.config.settings import settings
from commission_engine.models import Base


def create_engine(
    database_url: str | None = None, echo: bool | None = None
) -> AsyncEngine:
    """
    Create an async engine.

    Args:
        database_url: Database URL (defaults to DATABASE_URL)
        echo: Log SQL statements (defaults to DATABASE_ECHO)

    Returns:
        AsyncEngine
    """
    url = database_url or settings.database_url
    echo = settings.database_echo if echo is None else echo

    if url.startswith("sqlite"):
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            return create_async_engine(
                url,
                echo=echo,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        return create_async_engine(url, echo=echo, poolclass=NullPool)

    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.database_pool_size,
        pool_pre_ping=True,
    )


def create_session_maker(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create a session maker bound to an engine."""
    if engine is None:
        engine = get_engine()
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    """Get the process-wide engine for DATABASE_URL."""
    return create_engine()


@lru_cache(maxsize=1)
def get_session_maker() -> async_sessionmaker[AsyncSession]:
    """Get the process-wide session maker."""
    return create_session_maker(get_engine())


async def init_models(engine: AsyncEngine | None = None) -> None:
    """
    Create all tables that do not exist yet.

    Intended for tests and local development; deployed databases are
    managed by Alembic migrations.

    Args:
        engine: Engine to use (defaults to the process-wide engine)
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)
    logger.info("Database tables created")
