"""Pytest configuration and shared fixtures for all tests."""

import itertools
import os
from datetime import datetime
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

# Settings are loaded at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio

from commission_engine.config.business_constants import DEFAULT_COMMISSION_RATES
from commission_engine.database import create_engine, create_session_maker
from commission_engine.models import (
    Base,
    Commission,
    CommissionRate,
    CommissionStatus,
    Order,
    OrderStatus,
    User,
    UserStatus,
)


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.flush = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_engine("sqlite+aiosqlite://", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session maker bound to the test engine."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Database session for the code under test."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def default_rates(session):
    """Seed default rates: 10% / 5% / 2%, all active."""
    rates = [
        CommissionRate(level=level, percentage=percentage, is_active=True)
        for level, percentage in DEFAULT_COMMISSION_RATES.items()
    ]
    session.add_all(rates)
    await session.commit()
    return rates


class ModelFactory:
    """Creates committed users, orders and ledger entries."""

    def __init__(self, session) -> None:
        self.session = session
        self._sequence = itertools.count(1)

    async def user(
        self,
        name: str = "User",
        sponsor: User | None = None,
        status: str = UserStatus.ACTIVE,
        **fields,
    ) -> User:
        n = next(self._sequence)
        user = User(
            name=name,
            email=fields.pop("email", f"{name.lower()}{n}@example.com"),
            ibo_number=fields.pop("ibo_number", f"IBO-TEST{n:04d}"),
            sponsor_number=fields.pop("sponsor_number", f"SP-TEST{n:04d}"),
            status=status,
            sponsor_id=sponsor.id if sponsor else None,
            **fields,
        )
        self.session.add(user)
        await self.session.commit()
        return user

    async def chain(self, *names: str) -> list[User]:
        """Create a sponsor line: each user sponsors the next one."""
        users: list[User] = []
        for name in names:
            users.append(
                await self.user(name, sponsor=users[-1] if users else None)
            )
        return users

    async def order(
        self,
        user: User,
        total: str | Decimal = "1000.00",
        status: str = OrderStatus.PROCESSING,
    ) -> Order:
        n = next(self._sequence)
        order = Order(
            order_number=f"MLO-TEST-{n:05d}",
            user_id=user.id,
            total_amount=Decimal(total),
            status=status,
        )
        self.session.add(order)
        await self.session.commit()
        return order

    async def commission(
        self,
        user: User,
        order: Order,
        amount: str | Decimal,
        created_at: datetime,
        level: int = 1,
        status: str = CommissionStatus.PENDING,
    ) -> Commission:
        commission = Commission(
            user_id=user.id,
            order_id=order.id,
            level=level,
            rate=Decimal("0.10"),
            commission_amount=Decimal(amount),
            status=status,
            created_at=created_at,
        )
        self.session.add(commission)
        await self.session.commit()
        return commission


@pytest.fixture
def factory(session):
    """Model factory writing through the test session."""
    return ModelFactory(session)
