"""
Commission generation.

Turns a paid order into pending commission ledger entries for up to three
sponsor levels, exactly once per order.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import (
    COMMISSION_DEPTH,
    COMMISSION_ELIGIBLE_ORDER_STATUSES,
)
from commission_engine.config.settings import settings
from commission_engine.models.commission import Commission
from commission_engine.models.enums import CommissionStatus
from commission_engine.repositories.commission_repository import (
    CommissionRepository,
)
from commission_engine.repositories.order_repository import OrderRepository
from commission_engine.services.base_service import BaseService, log_operation
from commission_engine.services.commission.calculator import plan_commissions
from commission_engine.services.commission.rate_table import (
    CommissionRateService,
    RateTable,
)
from commission_engine.services.sponsorship.chain_manager import (
    SponsorChainManager,
)
from commission_engine.utils.datetime_utils import utc_now
from commission_engine.utils.db_decorators import with_rollback_on_error
from commission_engine.utils.exceptions import (
    EntityNotFoundError,
    OrderNotEligibleError,
)


class GenerationOutcome(StrEnum):
    """How a generation call ended (all are successful outcomes)."""

    CREATED = "created"
    ALREADY_GENERATED = "already_generated"
    NO_ANCESTORS = "no_ancestors"
    NO_ACTIVE_RATES = "no_active_rates"


@dataclass
class GenerationResult:
    """Result of generating commissions for one order."""

    order_id: int
    outcome: GenerationOutcome
    commissions: list[Commission] = field(default_factory=list)

    @property
    def created(self) -> bool:
        """Whether this call wrote new ledger entries."""
        return self.outcome == GenerationOutcome.CREATED

    @property
    def total_amount(self) -> Decimal:
        """Sum of the entries for the order."""
        return sum(
            (c.commission_amount for c in self.commissions), Decimal("0")
        )


class CommissionGenerationService(BaseService):
    """
    Generates commission ledger entries for paid orders.

    A call is all-or-nothing: every qualifying level is written in one
    transaction or none is. Repeated calls for the same order are no-ops,
    both when entries are found up front and when a concurrent call wins
    the (order_id, user_id, level) unique constraint.
    """

    def __init__(
        self,
        session: AsyncSession,
        pay_inactive_sponsors: bool | None = None,
    ) -> None:
        """
        Initialize generation service.

        Args:
            session: Async database session
            pay_inactive_sponsors: Whether inactive sponsors earn
                (defaults to COMMISSION_PAY_INACTIVE_SPONSORS)
        """
        super().__init__(session)
        self.order_repo = OrderRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.chain_manager = SponsorChainManager(session)
        self.rate_service = CommissionRateService(session)
        self.pay_inactive_sponsors = (
            settings.commission_pay_inactive_sponsors
            if pay_inactive_sponsors is None
            else pay_inactive_sponsors
        )

    @log_operation
    @with_rollback_on_error
    async def generate_for_order(
        self, order_id: int, rates: RateTable | None = None
    ) -> GenerationResult:
        """
        Generate and commit commissions for an order.

        Args:
            order_id: Order that reached a paid status
            rates: Rate snapshot (defaults to the currently active rates)

        Returns:
            GenerationResult

        Raises:
            EntityNotFoundError: If the order does not exist
            OrderNotEligibleError: If the order is not paid
            SponsorGraphCorruptionError: If the sponsor chain has a cycle
            TransientStorageError: If the database is unreachable
        """
        result = await self.generate_in_transaction(order_id, rates)
        await self.session.commit()
        return result

    async def generate_in_transaction(
        self, order_id: int, rates: RateTable | None = None
    ) -> GenerationResult:
        """
        Generate commissions inside the caller's transaction (no commit).

        Used by the order status boundary so that the status change and the
        ledger entries are committed together.

        Args:
            order_id: Order that reached a paid status
            rates: Rate snapshot (defaults to the currently active rates)

        Returns:
            GenerationResult
        """
        order = await self.order_repo.get_by_id(order_id)
        if not order:
            raise EntityNotFoundError("Order", order_id)

        if order.status not in COMMISSION_ELIGIBLE_ORDER_STATUSES:
            raise OrderNotEligibleError(
                f"Order {order_id} has status '{order.status}'; "
                f"commissions require a paid order"
            )

        existing = await self.commission_repo.get_by_order(order_id)
        if existing:
            logger.info(
                "Commissions already generated for order",
                extra={"order_id": order_id, "entries": len(existing)},
            )
            return GenerationResult(
                order_id=order_id,
                outcome=GenerationOutcome.ALREADY_GENERATED,
                commissions=existing,
            )

        chain = await self.chain_manager.get_ancestor_chain(
            order.user_id, COMMISSION_DEPTH
        )
        if not chain:
            logger.debug(
                "No sponsors for purchaser",
                extra={"order_id": order_id, "user_id": order.user_id},
            )
            return GenerationResult(
                order_id=order_id, outcome=GenerationOutcome.NO_ANCESTORS
            )

        if rates is None:
            rates = await self.rate_service.get_rate_table()

        drafts = plan_commissions(
            order_id=order.id,
            order_total=order.total_amount,
            chain=chain,
            rates=rates,
            pay_inactive_sponsors=self.pay_inactive_sponsors,
        )
        if not drafts:
            logger.info(
                "No active commission levels for order",
                extra={
                    "order_id": order_id,
                    "chain_length": len(chain),
                    "active_levels": rates.active_levels,
                },
            )
            return GenerationResult(
                order_id=order_id, outcome=GenerationOutcome.NO_ACTIVE_RATES
            )

        created_at = utc_now()
        try:
            commissions = await self.commission_repo.bulk_create([
                {
                    "order_id": draft.order_id,
                    "user_id": draft.user_id,
                    "level": draft.level,
                    "rate": draft.rate,
                    "commission_amount": draft.commission_amount,
                    "status": CommissionStatus.PENDING,
                    "created_at": created_at,
                }
                for draft in drafts
            ])
        except IntegrityError:
            # Concurrent run committed first; its entries are the result
            await self.session.rollback()
            existing = await self.commission_repo.get_by_order(order_id)
            if not existing:
                raise
            logger.info(
                "Concurrent commission generation detected, skipping",
                extra={"order_id": order_id, "entries": len(existing)},
            )
            return GenerationResult(
                order_id=order_id,
                outcome=GenerationOutcome.ALREADY_GENERATED,
                commissions=existing,
            )

        commissions.sort(key=lambda c: c.level)
        for commission in commissions:
            logger.info(
                "Commission created",
                extra={
                    "order_id": order_id,
                    "user_id": commission.user_id,
                    "level": commission.level,
                    "rate": str(commission.rate),
                    "amount": str(commission.commission_amount),
                },
            )

        return GenerationResult(
            order_id=order_id,
            outcome=GenerationOutcome.CREATED,
            commissions=commissions,
        )
