"""
Status and role enumerations shared by models and services.
"""

from enum import StrEnum


class UserRole(StrEnum):
    """User role enumeration."""

    ADMIN = "admin"
    DISTRIBUTOR = "distributor"


class UserStatus(StrEnum):
    """User account status enumeration."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class OrderStatus(StrEnum):
    """Order lifecycle status enumeration."""

    PENDING = "pending"
    PROCESSING = "processing"  # Payment confirmed
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class CommissionStatus(StrEnum):
    """Commission ledger entry status enumeration."""

    PENDING = "pending"
    PAID = "paid"
