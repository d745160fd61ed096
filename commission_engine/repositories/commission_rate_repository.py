"""
Commission rate repository.

Data access layer for CommissionRate model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.commission_rate import CommissionRate
from commission_engine.repositories.base import BaseRepository


class CommissionRateRepository(BaseRepository[CommissionRate]):
    """Commission rate repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission rate repository."""
        super().__init__(CommissionRate, session)

    async def get_all_ordered(self) -> list[CommissionRate]:
        """
        Get all rate rows (including inactive) ordered by level.

        Rows of the same level are ordered most recently updated first.

        Returns:
            List of rates
        """
        stmt = select(CommissionRate).order_by(
            CommissionRate.level,
            CommissionRate.updated_at.desc(),
            CommissionRate.id.desc(),
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_active_rates(self) -> list[CommissionRate]:
        """
        Get active rate rows ordered by level.

        Returns:
            List of active rates
        """
        stmt = (
            select(CommissionRate)
            .where(CommissionRate.is_active == True)  # noqa: E712
            .order_by(
                CommissionRate.level,
                CommissionRate.updated_at.desc(),
                CommissionRate.id.desc(),
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_level(self, level: int) -> list[CommissionRate]:
        """
        Get all rows for one level, most recently updated first.

        Args:
            level: Commission level (1-3)

        Returns:
            List of rates for the level
        """
        stmt = (
            select(CommissionRate)
            .where(CommissionRate.level == level)
            .order_by(
                CommissionRate.updated_at.desc(),
                CommissionRate.id.desc(),
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
