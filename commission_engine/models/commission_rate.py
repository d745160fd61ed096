"""
CommissionRate model.

Per-level commission percentage configuration, edited by admins.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column, validates

from commission_engine.models.base import Base
from commission_engine.models.types import RateType


class CommissionRate(Base):
    """Commission rate for one sponsor level."""

    __tablename__ = "commission_rates"
    __table_args__ = (
        CheckConstraint(
            "level BETWEEN 1 AND 3", name="check_commission_rate_level"
        ),
        CheckConstraint(
            "percentage >= 0 AND percentage <= 1",
            name="check_commission_rate_percentage_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    # Sponsor level (1 = direct sponsor)
    level: Mapped[int] = mapped_column(Integer, index=True, nullable=False)

    # Fraction of the order total (0.10 = 10%)
    percentage: Mapped[Decimal] = mapped_column(RateType, nullable=False)

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, index=True, nullable=False
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

    @validates("level")
    def _validate_level(self, key: str, value: int) -> int:
        # Deferred: validators import business constants, which import models
        from commission_engine.validators.commission import validate_level

        return validate_level(value)

    @validates("percentage")
    def _validate_percentage(self, key: str, value: Decimal) -> Decimal:
        from commission_engine.validators.commission import validate_percentage

        return validate_percentage(self.level, value)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionRate(id={self.id}, level={self.level}, "
            f"percentage={self.percentage}, is_active={self.is_active})>"
        )
