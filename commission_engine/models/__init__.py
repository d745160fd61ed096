"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from commission_engine.models.base import Base
from commission_engine.models.commission import Commission
from commission_engine.models.commission_rate import CommissionRate
from commission_engine.models.enums import (
    CommissionStatus,
    OrderStatus,
    UserRole,
    UserStatus,
)
from commission_engine.models.order import Order
from commission_engine.models.user import User

__all__ = [
    # Base
    "Base",
    # Enums
    "CommissionStatus",
    "OrderStatus",
    "UserRole",
    "UserStatus",
    # Core Models
    "User",
    "Order",
    "CommissionRate",
    "Commission",
]
