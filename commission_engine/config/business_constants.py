"""
Business constants for the commission engine.

Single source of truth for commission depth, default rates and money rounding.
"""

from decimal import ROUND_HALF_UP, Decimal

from commission_engine.models.enums import OrderStatus

# ============================================================================
# COMMISSION STRUCTURE
# ============================================================================

# Number of sponsor levels that earn commission on a purchase
COMMISSION_DEPTH = 3

COMMISSION_LEVELS = tuple(range(1, COMMISSION_DEPTH + 1))

# Default seed rates (fractions of order total), all active
DEFAULT_COMMISSION_RATES: dict[int, Decimal] = {
    1: Decimal("0.10"),  # 10% for level 1 (direct sponsor)
    2: Decimal("0.05"),  # 5% for level 2
    3: Decimal("0.02"),  # 2% for level 3
}

MIN_COMMISSION_RATE = Decimal("0")
MAX_COMMISSION_RATE = Decimal("1")

# Stored precision of rates (DECIMAL(5, 4))
RATE_DECIMAL_PLACES = 4

# ============================================================================
# ORDER STATUSES
# ============================================================================

# Orders in these statuses have been paid for and may carry commissions
COMMISSION_ELIGIBLE_ORDER_STATUSES = frozenset({
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
})

ORDER_STATUS_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# ============================================================================
# MONEY
# ============================================================================

# Smallest currency unit (cents)
MONEY_QUANTUM = Decimal("0.01")
MONEY_ROUNDING = ROUND_HALF_UP

# ============================================================================
# IDENTIFIERS
# ============================================================================

IBO_NUMBER_PREFIX = "IBO"
SPONSOR_NUMBER_PREFIX = "SP"
IBO_NUMBER_RANDOM_LENGTH = 8
SPONSOR_NUMBER_RANDOM_LENGTH = 6
IDENTIFIER_MAX_ATTEMPTS = 10
