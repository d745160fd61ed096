"""
Payout settlement.

Moves pending commission entries to paid with a single conditional UPDATE
per call. The rows returned by that UPDATE are the only source for the
reported count and total.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

from sqlalchemy import Row
from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.models.commission import Commission
from commission_engine.models.enums import CommissionStatus
from commission_engine.repositories.commission_repository import (
    CommissionRepository,
)
from commission_engine.repositories.user_repository import UserRepository
from commission_engine.services.base_service import BaseService, log_operation
from commission_engine.utils.datetime_utils import ensure_utc, utc_now
from commission_engine.utils.db_decorators import with_auto_commit
from commission_engine.utils.exceptions import (
    EntityNotFoundError,
    InvalidStatusTransitionError,
)
from commission_engine.utils.money import quantize_money


class PayoutOutcome(StrEnum):
    """How a settlement call ended (all are successful outcomes)."""

    PAID = "paid"
    NOTHING_TO_PAY = "nothing_to_pay"
    ALREADY_PAID = "already_paid"


@dataclass(frozen=True)
class PayoutResult:
    """Result of a settlement call, for audit and confirmation display."""

    outcome: PayoutOutcome
    paid_count: int = 0
    paid_total: Decimal = Decimal("0.00")
    commission_ids: tuple[int, ...] = field(default_factory=tuple)
    user_id: int | None = None
    cutoff: datetime | None = None

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Row],
        user_id: int | None = None,
        cutoff: datetime | None = None,
    ) -> "PayoutResult":
        """Build a result from the rows returned by the paying UPDATE."""
        return cls(
            outcome=PayoutOutcome.PAID if rows else PayoutOutcome.NOTHING_TO_PAY,
            paid_count=len(rows),
            paid_total=quantize_money(
                sum((row.commission_amount for row in rows), Decimal("0"))
            ),
            commission_ids=tuple(sorted(row.id for row in rows)),
            user_id=user_id,
            cutoff=cutoff,
        )


class PayoutSettlementService(BaseService):
    """Settles pending commissions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize settlement service."""
        super().__init__(session)
        self.commission_repo = CommissionRepository(session)
        self.user_repo = UserRepository(session)

    @log_operation
    @with_auto_commit
    async def pay_user_commissions(
        self,
        user_id: int,
        cutoff: datetime | None = None,
        note: str | None = None,
    ) -> PayoutResult:
        """
        Pay every pending entry of a user created at or before the cutoff.

        Entries generated after the cutoff stay pending, which makes it safe
        to run while new orders are generating commissions. Calling again
        with the same or an earlier cutoff pays nothing.

        Args:
            user_id: Earning user
            cutoff: Snapshot boundary (defaults to now; naive values are UTC)
            note: Optional payout memo stored on each entry

        Returns:
            PayoutResult with the count and total actually transitioned

        Raises:
            EntityNotFoundError: If the user does not exist
            TransientStorageError: If the database is unreachable
        """
        cutoff = ensure_utc(cutoff) if cutoff else utc_now()

        if not await self.user_repo.exists(id=user_id):
            raise EntityNotFoundError("User", user_id)

        rows = await self.commission_repo.mark_pending_as_paid(
            Commission.user_id == user_id,
            Commission.created_at <= cutoff,
            paid_at=utc_now(),
            note=note,
        )
        result = PayoutResult.from_rows(rows, user_id=user_id, cutoff=cutoff)

        self.logger.info(
            "User commissions paid",
            extra={
                "user_id": user_id,
                "cutoff": cutoff.isoformat(),
                "paid_count": result.paid_count,
                "paid_total": str(result.paid_total),
            },
        )
        return result

    @log_operation
    @with_auto_commit
    async def pay_commissions(
        self, commission_ids: Iterable[int], note: str | None = None
    ) -> PayoutResult:
        """
        Pay a selected set of entries (admin bulk action).

        Entries that are already paid are skipped, not re-paid.

        Args:
            commission_ids: Entries to pay
            note: Optional payout memo

        Returns:
            PayoutResult with the entries actually transitioned
        """
        ids = sorted(set(commission_ids))
        if not ids:
            return PayoutResult(outcome=PayoutOutcome.NOTHING_TO_PAY)

        rows = await self.commission_repo.mark_pending_as_paid(
            Commission.id.in_(ids),
            paid_at=utc_now(),
            note=note,
        )
        result = PayoutResult.from_rows(rows)

        self.logger.info(
            "Selected commissions paid",
            extra={
                "requested": len(ids),
                "paid_count": result.paid_count,
                "paid_total": str(result.paid_total),
            },
        )
        return result

    @with_auto_commit
    async def mark_commission_paid(
        self, commission_id: int, note: str | None = None
    ) -> PayoutResult:
        """
        Pay a single entry (admin override).

        Args:
            commission_id: Entry to pay
            note: Optional payout memo

        Returns:
            PayoutResult (ALREADY_PAID if the entry was paid before)

        Raises:
            EntityNotFoundError: If the entry does not exist
        """
        rows = await self.commission_repo.mark_pending_as_paid(
            Commission.id == commission_id,
            paid_at=utc_now(),
            note=note,
        )
        if rows:
            return PayoutResult.from_rows(rows, user_id=rows[0].user_id)

        status = await self.commission_repo.get_status(commission_id)
        if status is None:
            raise EntityNotFoundError("Commission", commission_id)

        return PayoutResult(outcome=PayoutOutcome.ALREADY_PAID)

    async def set_commission_status(
        self,
        commission_id: int,
        status: CommissionStatus | str,
        note: str | None = None,
    ) -> PayoutResult:
        """
        Apply an admin status change to one entry.

        Only pending -> paid is a real transition. Re-applying the current
        status is a no-op; paid -> pending is rejected.

        Args:
            commission_id: Entry to change
            status: Requested status
            note: Optional payout memo

        Returns:
            PayoutResult

        Raises:
            InvalidStatusTransitionError: On paid -> pending or an unknown status
            EntityNotFoundError: If the entry does not exist
        """
        current = await self.commission_repo.get_status(commission_id)
        if current is None:
            raise EntityNotFoundError("Commission", commission_id)

        try:
            requested = CommissionStatus(status)
        except ValueError as e:
            raise InvalidStatusTransitionError(
                "Commission", current, str(status)
            ) from e

        if requested == CommissionStatus.PAID:
            return await self.mark_commission_paid(commission_id, note)

        if current == CommissionStatus.PAID:
            self.logger.warning(
                "Rejected paid -> pending change",
                extra={"commission_id": commission_id},
            )
            raise InvalidStatusTransitionError(
                "Commission", current, requested
            )

        return PayoutResult(outcome=PayoutOutcome.NOTHING_TO_PAY)
