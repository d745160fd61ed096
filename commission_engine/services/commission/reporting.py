"""
Commission reporting.

Read-only projections over the commission ledger. Every view is a live
query; nothing here is cached or materialized.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from commission_engine.config.business_constants import COMMISSION_LEVELS
from commission_engine.models.enums import CommissionStatus
from commission_engine.repositories.commission_repository import (
    CommissionRepository,
)
from commission_engine.services.base_service import BaseService
from commission_engine.utils.datetime_utils import ensure_utc
from commission_engine.utils.money import quantize_money

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class UserPayable:
    """Pending commission totals of one earning user."""

    user_id: int
    name: str
    email: str
    ibo_number: str
    bank_name: str | None
    bank_account_number: str | None
    bank_branch_code: str | None
    bank_account_type: str | None
    bank_account_holder: str | None
    pending_count: int
    pending_total: Decimal
    first_pending_at: datetime | None
    last_pending_at: datetime | None


@dataclass(frozen=True)
class CommissionHistoryEntry:
    """One ledger entry of a user with its order and purchaser."""

    id: int
    level: int
    rate: Decimal
    commission_amount: Decimal
    status: str
    created_at: datetime
    paid_at: datetime | None
    payout_note: str | None
    order_id: int
    order_number: str
    order_total: Decimal
    customer_id: int
    customer_name: str
    customer_ibo_number: str


@dataclass(frozen=True)
class CommissionListEntry:
    """One row of the admin commission listing."""

    id: int
    level: int
    commission_amount: Decimal
    status: str
    created_at: datetime
    user_id: int
    user_name: str
    user_email: str
    user_ibo_number: str
    order_id: int
    order_number: str
    order_total: Decimal


@dataclass
class EarningsSummary:
    """Commission totals of one earning user."""

    user_id: int
    entry_count: int = 0
    total_earnings: Decimal = ZERO
    pending_earnings: Decimal = ZERO
    paid_earnings: Decimal = ZERO
    by_level: dict[int, Decimal] = field(
        default_factory=lambda: {level: ZERO for level in COMMISSION_LEVELS}
    )


@dataclass
class CommissionStats:
    """Platform-wide ledger statistics."""

    total_count: int = 0
    pending_count: int = 0
    paid_count: int = 0
    total_pending_amount: Decimal = ZERO
    total_paid_amount: Decimal = ZERO
    count_by_level: dict[int, int] = field(
        default_factory=lambda: {level: 0 for level in COMMISSION_LEVELS}
    )


class CommissionReportingService(BaseService):
    """Builds reporting views from the commission ledger."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize reporting service."""
        super().__init__(session)
        self.commission_repo = CommissionRepository(session)

    async def get_user_payables(self) -> list[UserPayable]:
        """
        Get users with pending commissions, largest pending total first.

        Drives the bulk "pay all" screen.

        Returns:
            List of UserPayable
        """
        rows = await self.commission_repo.get_user_payables()
        return [
            UserPayable(
                user_id=row.user_id,
                name=row.name,
                email=row.email,
                ibo_number=row.ibo_number,
                bank_name=row.bank_name,
                bank_account_number=row.bank_account_number,
                bank_branch_code=row.bank_branch_code,
                bank_account_type=row.bank_account_type,
                bank_account_holder=row.bank_account_holder,
                pending_count=row.pending_count,
                pending_total=quantize_money(row.pending_total),
                first_pending_at=ensure_utc(row.first_pending_at),
                last_pending_at=ensure_utc(row.last_pending_at),
            )
            for row in rows
        ]

    async def get_user_commission_history(
        self,
        user_id: int,
        status: CommissionStatus | None = None,
        level: int | None = None,
    ) -> list[CommissionHistoryEntry]:
        """
        Get the full commission history of a user, newest first.

        Args:
            user_id: Earning user
            status: Optional status filter
            level: Optional level filter

        Returns:
            List of CommissionHistoryEntry
        """
        rows = await self.commission_repo.get_user_history(
            user_id, status=status, level=level
        )
        return [
            CommissionHistoryEntry(
                id=row.id,
                level=row.level,
                rate=row.rate,
                commission_amount=row.commission_amount,
                status=row.status,
                created_at=ensure_utc(row.created_at),
                paid_at=ensure_utc(row.paid_at),
                payout_note=row.payout_note,
                order_id=row.order_id,
                order_number=row.order_number,
                order_total=row.order_total,
                customer_id=row.customer_id,
                customer_name=row.customer_name,
                customer_ibo_number=row.customer_ibo_number,
            )
            for row in rows
        ]

    async def get_earnings_summary(self, user_id: int) -> EarningsSummary:
        """
        Get total, pending, paid and per-level earnings of a user.

        Args:
            user_id: Earning user

        Returns:
            EarningsSummary
        """
        rows = await self.commission_repo.get_totals_by_status_and_level(
            user_id
        )
        summary = EarningsSummary(user_id=user_id)

        for row in rows:
            total = quantize_money(row.total)
            summary.entry_count += row.count
            summary.total_earnings += total
            if row.status == CommissionStatus.PENDING:
                summary.pending_earnings += total
            elif row.status == CommissionStatus.PAID:
                summary.paid_earnings += total
            summary.by_level[row.level] = (
                summary.by_level.get(row.level, ZERO) + total
            )

        return summary

    async def get_commission_stats(self) -> CommissionStats:
        """
        Get platform-wide ledger statistics for the admin dashboard.

        Returns:
            CommissionStats
        """
        rows = await self.commission_repo.get_totals_by_status_and_level()
        stats = CommissionStats()

        for row in rows:
            total = quantize_money(row.total)
            stats.total_count += row.count
            if row.status == CommissionStatus.PENDING:
                stats.pending_count += row.count
                stats.total_pending_amount += total
            elif row.status == CommissionStatus.PAID:
                stats.paid_count += row.count
                stats.total_paid_amount += total
            stats.count_by_level[row.level] = (
                stats.count_by_level.get(row.level, 0) + row.count
            )

        return stats

    async def list_commissions(
        self,
        status: CommissionStatus | None = None,
        level: int | None = None,
        search: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[CommissionListEntry], int]:
        """
        List ledger entries for the admin screen, newest first.

        Args:
            status: Optional status filter
            level: Optional level filter
            search: Matches earner name, email, IBO number or order number
            limit: Page size
            offset: Rows to skip

        Returns:
            Tuple of (entries, total matching count)
        """
        rows, total = await self.commission_repo.search(
            status=status,
            level=level,
            search=search,
            limit=limit,
            offset=offset,
        )
        entries = [
            CommissionListEntry(
                id=row.id,
                level=row.level,
                commission_amount=row.commission_amount,
                status=row.status,
                created_at=ensure_utc(row.created_at),
                user_id=row.user_id,
                user_name=row.user_name,
                user_email=row.user_email,
                user_ibo_number=row.user_ibo_number,
                order_id=row.order_id,
                order_number=row.order_number,
                order_total=row.order_total,
            )
            for row in rows
        ]
        return entries, total
