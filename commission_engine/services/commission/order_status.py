"""
Order status service.

The only place the engine writes Order rows. Moving an order into the
qualifying status (payment confirmed) generates its commissions in the same
transaction as the status change.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import ORDER_STATUS_TRANSITIONS
from commission_engine.config.settings import settings
from commission_engine.models.enums import OrderStatus
from commission_engine.models.order import Order
from commission_engine.repositories.order_repository import OrderRepository
from commission_engine.services.base_service import BaseService, log_operation
from commission_engine.services.commission.generation import (
    CommissionGenerationService,
    GenerationOutcome,
    GenerationResult,
)
from commission_engine.utils.db_decorators import with_rollback_on_error
from commission_engine.utils.exceptions import (
    EntityNotFoundError,
    InvalidStatusTransitionError,
)


@dataclass
class OrderStatusChange:
    """Result of an order status change."""

    order: Order
    previous_status: str
    changed: bool
    generation: GenerationResult | None = None


class OrderStatusService(BaseService):
    """Moves orders through their lifecycle."""

    def __init__(
        self,
        session: AsyncSession,
        generation_service: CommissionGenerationService | None = None,
    ) -> None:
        """Initialize order status service."""
        super().__init__(session)
        self.order_repo = OrderRepository(session)
        self.generation_service = (
            generation_service or CommissionGenerationService(session)
        )

    @log_operation
    @with_rollback_on_error
    async def change_order_status(
        self, order_id: int, new_status: OrderStatus | str
    ) -> OrderStatusChange:
        """
        Change order status and generate commissions on payment.

        Re-applying the current status does not touch the order. For the
        qualifying status generation still runs, which completes a run that
        failed after the status was stored; it is a no-op otherwise.

        Args:
            order_id: Order ID
            new_status: Requested status

        Returns:
            OrderStatusChange

        Raises:
            EntityNotFoundError: If the order does not exist
            InvalidStatusTransitionError: If the lifecycle forbids the change
        """
        order = await self.order_repo.get_for_update(order_id)
        if not order:
            raise EntityNotFoundError("Order", order_id)

        previous = OrderStatus(order.status)
        try:
            requested = OrderStatus(new_status)
        except ValueError as e:
            raise InvalidStatusTransitionError(
                "Order", previous, str(new_status)
            ) from e

        changed = self._apply_transition(order, requested)
        if changed:
            await self.session.flush()

        generation = None
        if requested == settings.commission_qualifying_status:
            generation = await self.generation_service.generate_in_transaction(
                order_id
            )
            if generation.outcome == GenerationOutcome.ALREADY_GENERATED:
                # A lost insert race rolls back the flushed status and the lock
                order = await self.order_repo.get_for_update(order_id)
                if not order:
                    raise EntityNotFoundError("Order", order_id)
                self._apply_transition(order, requested)

        await self.session.commit()

        self.logger.info(
            "Order status changed" if changed else "Order status unchanged",
            extra={
                "order_id": order_id,
                "previous_status": previous,
                "status": requested,
                "generation": generation.outcome if generation else None,
            },
        )
        return OrderStatusChange(
            order=order,
            previous_status=previous,
            changed=changed,
            generation=generation,
        )

    @staticmethod
    def _apply_transition(order: Order, requested: OrderStatus) -> bool:
        """Set the order status if the lifecycle allows it."""
        current = OrderStatus(order.status)
        if requested == current:
            return False
        if requested not in ORDER_STATUS_TRANSITIONS[current]:
            raise InvalidStatusTransitionError("Order", current, requested)
        order.status = requested
        return True
