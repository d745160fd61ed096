"""
User model.

Represents a participant node in the sponsorship forest.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from commission_engine.models.base import Base
from commission_engine.models.enums import UserRole, UserStatus

if TYPE_CHECKING:
    from commission_engine.models.commission import Commission
    from commission_engine.models.order import Order


class User(Base):
    """User model - admins and distributors (IBOs)."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "sponsor_id IS NULL OR sponsor_id <> id",
            name="check_user_not_own_sponsor",
        ),
        CheckConstraint(
            "role IN ('admin', 'distributor')", name="check_user_role"
        ),
        CheckConstraint(
            "status IN ('active', 'inactive')", name="check_user_status"
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Identity
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True
    )
    ibo_number: Mapped[str] = mapped_column(
        String(32), nullable=False, unique=True, index=True
    )
    sponsor_number: Mapped[str | None] = mapped_column(
        String(32), nullable=True, unique=True, index=True
    )
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    role: Mapped[str] = mapped_column(
        String(20), default=UserRole.DISTRIBUTOR, nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(20), default=UserStatus.ACTIVE, nullable=False, index=True
    )

    # Sponsorship (parent pointer; NULL for roots)
    sponsor_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Banking details for payouts
    bank_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    bank_account_number: Mapped[str | None] = mapped_column(
        String(50), nullable=True
    )
    bank_branch_code: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )
    bank_account_type: Mapped[str | None] = mapped_column(
        String(30), nullable=True
    )
    bank_account_holder: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    # Address
    address_line1: Mapped[str | None] = mapped_column(String(255), nullable=True)
    address_line2: Mapped[str | None] = mapped_column(String(255), nullable=True)
    suburb: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    province: Mapped[str | None] = mapped_column(String(100), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Timestamps
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
    sponsor: Mapped[Optional["User"]] = relationship(
        "User", remote_side=[id], back_populates="recruits"
    )
    recruits: Mapped[list["User"]] = relationship(
        "User", back_populates="sponsor"
    )
    orders: Mapped[list["Order"]] = relationship(
        "Order", back_populates="user"
    )
    commissions: Mapped[list["Commission"]] = relationship(
        "Commission", back_populates="user"
    )

    @property
    def is_active(self) -> bool:
        """Check if user account is active."""
        return self.status == UserStatus.ACTIVE

    @property
    def has_banking_details(self) -> bool:
        """Check if payout banking details are on file."""
        return bool(self.bank_account_number and self.bank_account_holder)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, ibo_number={self.ibo_number}, "
            f"sponsor_id={self.sponsor_id}, status={self.status})>"
        )
