"""
Unit tests for logging setup and database engine creation.
"""

import sys

import pytest
from loguru import logger
from sqlalchemy import inspect
from sqlalchemy.pool import NullPool, StaticPool

from commission_engine.database import create_engine, init_models
from commission_engine.utils.logging_config import setup_logging


@pytest.fixture
def restore_logger():
    """Reset loguru to a plain stderr sink after the test."""
    yield
    logger.remove()
    logger.add(sys.stderr)


class TestLogging:
    """Test loguru sink configuration."""

    def test_file_sink(self, tmp_path, restore_logger):
        """Records at or above the level reach the log file."""
        log_file = tmp_path / "commission_engine.log"

        setup_logging(level="INFO", log_file=str(log_file))
        logger.debug("hidden detail")
        logger.info("Commission created")

        content = log_file.read_text(encoding="utf-8")
        assert "Commission created" in content
        assert "hidden detail" not in content


class TestEngine:
    """Test engine pooling choices."""

    @pytest.mark.asyncio
    async def test_in_memory_sqlite_keeps_one_connection(self):
        """In-memory databases use a static pool."""
        engine = create_engine("sqlite+aiosqlite://")

        assert isinstance(engine.pool, StaticPool)
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_file_sqlite_is_not_pooled(self, tmp_path):
        """File databases open a connection per checkout."""
        engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'mlm.db'}")

        assert isinstance(engine.pool, NullPool)
        await engine.dispose()

    @pytest.mark.asyncio
    async def test_init_models_creates_tables(self):
        """All four tables are created."""
        engine = create_engine("sqlite+aiosqlite://")

        await init_models(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
        await engine.dispose()

        assert {"users", "orders", "commission_rates", "commissions"} <= set(
            tables
        )
