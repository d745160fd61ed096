"""
Commission model.

One commission ledger entry: the obligation owed to one earning user for
one order at one sponsor level.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base
from commission_engine.models.enums import CommissionStatus
from commission_engine.models.types import MoneyType, RateType

if TYPE_CHECKING:
    from commission_engine.models.order import Order
    from commission_engine.models.user import User


class Commission(Base):
    """
    Commission ledger entry.

    Invariants:
    - one entry per (order_id, user_id, level)
    - commission_amount and rate are fixed at generation time
    - status only moves pending -> paid
    - entries are never deleted

    Attributes:
        id: Primary key
        user_id: Earning user (ancestor of the purchaser)
        order_id: Source order
        level: Distance between purchaser and earner (1-3)
        rate: Rate snapshot used for the calculation
        commission_amount: order total * rate, rounded half-up to cents
        status: pending or paid
        created_at: When the entry was generated
        paid_at: When the entry was settled
        payout_note: Memo recorded by the settlement run
    """

    __tablename__ = "commissions"
    __table_args__ = (
        UniqueConstraint(
            "order_id", "user_id", "level",
            name="uq_commissions_order_user_level",
        ),
        CheckConstraint(
            "level BETWEEN 1 AND 3", name="check_commission_level"
        ),
        CheckConstraint(
            "commission_amount >= 0",
            name="check_commission_amount_non_negative",
        ),
        CheckConstraint(
            "status IN ('pending', 'paid')", name="check_commission_status"
        ),
        Index(
            "idx_commissions_user_status_created",
            "user_id", "status", "created_at",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Earning user
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Source order
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    level: Mapped[int] = mapped_column(Integer, nullable=False)
    rate: Mapped[Decimal] = mapped_column(RateType, nullable=False)
    commission_amount: Mapped[Decimal] = mapped_column(
        MoneyType, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(20),
        default=CommissionStatus.PENDING,
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    payout_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="commissions")
    order: Mapped["Order"] = relationship(
        "Order", back_populates="commissions"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Commission(id={self.id}, user_id={self.user_id}, "
            f"order_id={self.order_id}, level={self.level}, "
            f"amount={self.commission_amount}, status={self.status})>"
        )
