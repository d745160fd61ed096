"""
User repository.

Data access layer for User model, including sponsor-graph lookups.
"""

from sqlalchemy import Row, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.user import User
from commission_engine.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> User | None:
        """
        Get user by email (case-insensitive).

        Args:
            email: Email address

        Returns:
            User or None
        """
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_ibo_number(self, ibo_number: str) -> User | None:
        """
        Get user by IBO number.

        Args:
            ibo_number: IBO number (e.g. IBO-4K2J9QXA)

        Returns:
            User or None
        """
        return await self.get_by(ibo_number=ibo_number)

    async def get_by_sponsor_number(self, sponsor_number: str) -> User | None:
        """
        Get user by sponsor number.

        Args:
            sponsor_number: Sponsor number (e.g. SP-7ZK3PQ)

        Returns:
            User or None
        """
        return await self.get_by(sponsor_number=sponsor_number)

    async def get_sponsor_link(self, user_id: int) -> Row | None:
        """
        Get the sponsor pointer of one user without loading the entity.

        Args:
            user_id: User ID

        Returns:
            Row with id, sponsor_id, status or None if user does not exist
        """
        stmt = select(User.id, User.sponsor_id, User.status).where(
            User.id == user_id
        )
        result = await self.session.execute(stmt)
        return result.one_or_none()

    async def get_recruit_ids(self, sponsor_ids: list[int]) -> list[Row]:
        """
        Get direct recruits of the given sponsors.

        Args:
            sponsor_ids: Sponsor user IDs

        Returns:
            Rows with id and sponsor_id, ordered by id
        """
        if not sponsor_ids:
            return []

        stmt = (
            select(User.id, User.sponsor_id)
            .where(User.sponsor_id.in_(sponsor_ids))
            .order_by(User.id)
        )
        result = await self.session.execute(stmt)
        return list(result.all())

    async def ibo_number_exists(self, ibo_number: str) -> bool:
        """Check whether an IBO number is taken."""
        return await self.exists(ibo_number=ibo_number)

    async def sponsor_number_exists(self, sponsor_number: str) -> bool:
        """Check whether a sponsor number is taken."""
        return await self.exists(sponsor_number=sponsor_number)
