"""
Order model.

Represents a purchase event. Orders are captured by the checkout flow;
this package only reads them and moves them through their status lifecycle.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base
from commission_engine.models.enums import OrderStatus
from commission_engine.models.types import MoneyType

if TYPE_CHECKING:
    from commission_engine.models.commission import Commission
    from commission_engine.models.user import User


class Order(Base):
    """
    Order entity.

    Lifecycle:
        pending -> processing -> shipped -> delivered
        pending | processing -> cancelled

    Entering 'processing' (payment confirmed) triggers commission generation.

    Attributes:
        id: Primary key
        order_number: Human-facing order reference (e.g. MLO-LQ3K2-8ZK1A)
        user_id: Purchasing user
        total_amount: Order total (sum of line items)
        status: Current lifecycle status
        created_at: When the order was placed
        updated_at: Last status change
    """

    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint(
            "total_amount >= 0", name="check_order_total_non_negative"
        ),
        CheckConstraint(
            "status IN ('pending', 'processing', 'shipped', "
            "'delivered', 'cancelled')",
            name="check_order_status",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    order_number: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True, index=True
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    total_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=OrderStatus.PENDING, nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="orders")
    commissions: Mapped[list["Commission"]] = relationship(
        "Commission", back_populates="order"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Order(id={self.id}, order_number={self.order_number}, "
            f"user_id={self.user_id}, total_amount={self.total_amount}, "
            f"status={self.status})>"
        )
