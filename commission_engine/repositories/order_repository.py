"""
Order repository.

Data access layer for Order model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.order import Order
from commission_engine.repositories.base import BaseRepository


class OrderRepository(BaseRepository[Order]):
    """Order repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize order repository."""
        super().__init__(Order, session)

    async def get_for_update(self, order_id: int) -> Order | None:
        """
        Get order and lock the row for a status change.

        Args:
            order_id: Order ID

        Returns:
            Order or None
        """
        stmt = select(Order).where(Order.id == order_id).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
