"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import DECIMAL

# Standard money type for order totals and commission amounts
# Precision: 18 digits total, 2 after decimal point (cents)
# Range: up to 9,999,999,999,999,999.99
MoneyType = DECIMAL(18, 2)

# Commission rate stored as a fraction (0.1000 = 10%)
# Precision: 5 digits total, 4 after decimal point
# Range: 0.0000 to 9.9999 (values above 1 are rejected by validation)
RateType = DECIMAL(5, 4)
