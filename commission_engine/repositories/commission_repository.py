"""
Commission repository.

Data access layer for the commission ledger. All writes are either inserts
guarded by the (order_id, user_id, level) unique constraint or conditional
bulk updates; there is no read-modify-write of ledger rows.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import ColumnElement, Row, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from commission_engine.models.commission import Commission
from commission_engine.models.enums import CommissionStatus
from commission_engine.models.order import Order
from commission_engine.models.user import User
from commission_engine.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[Commission]):
    """Commission repository with ledger-specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(Commission, session)

    async def get_by_order(self, order_id: int) -> list[Commission]:
        """
        Get all entries generated for an order, by level.

        Args:
            order_id: Order ID

        Returns:
            List of commissions ordered by level
        """
        stmt = (
            select(Commission)
            .where(Commission.order_id == order_id)
            .order_by(Commission.level)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_status(self, commission_id: int) -> str | None:
        """
        Get current status of one entry without loading it.

        Args:
            commission_id: Commission ID

        Returns:
            Status or None if entry does not exist
        """
        stmt = select(Commission.status).where(Commission.id == commission_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_pending_as_paid(
        self,
        *criteria: ColumnElement[bool],
        paid_at: datetime,
        note: str | None = None,
    ) -> list[Row]:
        """
        Atomically move matching pending entries to paid.

        Executes a single UPDATE ... WHERE status = 'pending' AND <criteria>
        RETURNING. Only rows still pending at execution time match, so two
        concurrent calls can never both transition the same row.

        Args:
            *criteria: Additional WHERE clauses (user, cutoff, ids)
            paid_at: Settlement timestamp
            note: Optional payout memo

        Returns:
            Rows (id, user_id, commission_amount) actually transitioned
        """
        stmt = (
            update(Commission)
            .where(Commission.status == CommissionStatus.PENDING, *criteria)
            .values(
                status=CommissionStatus.PAID,
                paid_at=paid_at,
                payout_note=note,
            )
            .returning(
                Commission.id,
                Commission.user_id,
                Commission.commission_amount,
            )
            .execution_options(synchronize_session="fetch")
        )
        result = await self.session.execute(stmt)
        return list(result.all())

    async def get_user_payables(self) -> list[Row]:
        """
        Get pending totals grouped by earning user.

        Returns:
            Rows with user and banking details, pending_count,
            pending_total, first_pending_at, last_pending_at;
            largest pending_total first
        """
        pending = (
            select(
                Commission.user_id.label("user_id"),
                func.count(Commission.id).label("pending_count"),
                func.sum(Commission.commission_amount).label("pending_total"),
                func.min(Commission.created_at).label("first_pending_at"),
                func.max(Commission.created_at).label("last_pending_at"),
            )
            .where(Commission.status == CommissionStatus.PENDING)
            .group_by(Commission.user_id)
            .subquery()
        )

        stmt = (
            select(
                User.id.label("user_id"),
                User.name,
                User.email,
                User.ibo_number,
                User.bank_name,
                User.bank_account_number,
                User.bank_branch_code,
                User.bank_account_type,
                User.bank_account_holder,
                pending.c.pending_count,
                pending.c.pending_total,
                pending.c.first_pending_at,
                pending.c.last_pending_at,
            )
            .join(pending, pending.c.user_id == User.id)
            .order_by(pending.c.pending_total.desc(), User.id)
        )
        result = await self.session.execute(stmt)
        return list(result.all())

    async def get_user_history(
        self,
        user_id: int,
        status: str | None = None,
        level: int | None = None,
    ) -> list[Row]:
        """
        Get a user's entries joined with order and purchaser details.

        Args:
            user_id: Earning user ID
            status: Optional status filter
            level: Optional level filter

        Returns:
            Rows ordered newest first
        """
        purchaser = aliased(User, name="purchaser")

        stmt = (
            select(
                Commission.id,
                Commission.level,
                Commission.rate,
                Commission.commission_amount,
                Commission.status,
                Commission.created_at,
                Commission.paid_at,
                Commission.payout_note,
                Order.id.label("order_id"),
                Order.order_number,
                Order.total_amount.label("order_total"),
                purchaser.id.label("customer_id"),
                purchaser.name.label("customer_name"),
                purchaser.ibo_number.label("customer_ibo_number"),
            )
            .join(Order, Order.id == Commission.order_id)
            .join(purchaser, purchaser.id == Order.user_id)
            .where(Commission.user_id == user_id)
            .order_by(Commission.created_at.desc(), Commission.id.desc())
        )
        if status:
            stmt = stmt.where(Commission.status == status)
        if level:
            stmt = stmt.where(Commission.level == level)

        result = await self.session.execute(stmt)
        return list(result.all())

    async def get_totals_by_status_and_level(
        self, user_id: int | None = None
    ) -> list[Row]:
        """
        Get entry counts and amounts grouped by status and level.

        Args:
            user_id: Restrict to one earning user (None = platform-wide)

        Returns:
            Rows with status, level, count, total
        """
        stmt = (
            select(
                Commission.status,
                Commission.level,
                func.count(Commission.id).label("count"),
                func.coalesce(
                    func.sum(Commission.commission_amount), Decimal("0")
                ).label("total"),
            )
            .group_by(Commission.status, Commission.level)
        )
        if user_id is not None:
            stmt = stmt.where(Commission.user_id == user_id)

        result = await self.session.execute(stmt)
        return list(result.all())

    async def search(
        self,
        status: str | None = None,
        level: int | None = None,
        search: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list[Row], int]:
        """
        Search the ledger for the admin listing.

        Text search matches earner name, email, IBO number and order number.

        Args:
            status: Optional status filter
            level: Optional level filter
            search: Optional case-insensitive text
            limit: Page size
            offset: Rows to skip

        Returns:
            Tuple of (rows newest first, total matching count)
        """
        filters: list[Any] = []
        if status:
            filters.append(Commission.status == status)
        if level:
            filters.append(Commission.level == level)
        if search:
            pattern = f"%{search.strip().lower()}%"
            filters.append(
                or_(
                    func.lower(User.name).like(pattern),
                    func.lower(User.email).like(pattern),
                    func.lower(User.ibo_number).like(pattern),
                    func.lower(Order.order_number).like(pattern),
                )
            )

        base = (
            select(Commission.id)
            .join(User, User.id == Commission.user_id)
            .join(Order, Order.id == Commission.order_id)
            .where(*filters)
        )
        count_result = await self.session.execute(
            select(func.count()).select_from(base.subquery())
        )
        total = count_result.scalar() or 0

        stmt = (
            select(
                Commission.id,
                Commission.level,
                Commission.commission_amount,
                Commission.status,
                Commission.created_at,
                Commission.user_id,
                User.name.label("user_name"),
                User.email.label("user_email"),
                User.ibo_number.label("user_ibo_number"),
                Commission.order_id,
                Order.order_number,
                Order.total_amount.label("order_total"),
            )
            .join(User, User.id == Commission.user_id)
            .join(Order, Order.id == Commission.order_id)
            .where(*filters)
            .order_by(Commission.created_at.desc(), Commission.id.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.all()), total
