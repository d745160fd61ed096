"""
Commission configuration and registration validators.

Rate validators raise RateConfigurationError so that invalid configuration
is rejected when it is written, never when an order is processed.
"""

import re
from decimal import Decimal

from commission_engine.config.business_constants import (
    COMMISSION_LEVELS,
    MAX_COMMISSION_RATE,
    MIN_COMMISSION_RATE,
    RATE_DECIMAL_PLACES,
)
from commission_engine.utils.exceptions import RateConfigurationError
from commission_engine.utils.money import to_decimal

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_level(level: int) -> int:
    """
    Validate commission level.

    Args:
        level: Sponsor level

    Returns:
        The level

    Raises:
        RateConfigurationError: If level is not 1, 2 or 3
    """
    if isinstance(level, bool) or not isinstance(level, int):
        raise RateConfigurationError(level, None, "level must be an integer")
    if level not in COMMISSION_LEVELS:
        raise RateConfigurationError(
            level, None, f"level must be one of {list(COMMISSION_LEVELS)}"
        )
    return level


def validate_percentage(
    level: int | None, percentage: Decimal | float | str
) -> Decimal:
    """
    Validate commission percentage (a fraction, 0.10 = 10%).

    Args:
        level: Level the rate belongs to (for the error message)
        percentage: Rate to validate

    Returns:
        Percentage as Decimal

    Raises:
        RateConfigurationError: If percentage is not a number in [0, 1]

    Examples:
        >>> validate_percentage(1, "0.10")
        Decimal('0.10')
        >>> validate_percentage(1, 10)
        Traceback (most recent call last):
        ...
        RateConfigurationError: ...
    """
    if percentage is None or isinstance(percentage, bool):
        raise RateConfigurationError(level, percentage, "percentage is required")

    try:
        value = to_decimal(percentage)
    except ValueError as e:
        raise RateConfigurationError(level, percentage, str(e)) from e

    if value < MIN_COMMISSION_RATE or value > MAX_COMMISSION_RATE:
        raise RateConfigurationError(
            level,
            percentage,
            f"percentage must be between {MIN_COMMISSION_RATE} "
            f"and {MAX_COMMISSION_RATE}",
        )
    if value.normalize().as_tuple().exponent < -RATE_DECIMAL_PLACES:
        raise RateConfigurationError(
            level,
            percentage,
            f"percentage allows at most {RATE_DECIMAL_PLACES} decimal places",
        )
    return value


def validate_email(value: str) -> tuple[bool, str | None, str | None]:
    """
    Validate email address.

    Args:
        value: Email to validate

    Returns:
        Tuple of (is_valid, normalized_email, error_message)
    """
    if not value or not isinstance(value, str):
        return False, None, "Email cannot be empty"

    normalized = value.strip().lower()
    if not EMAIL_PATTERN.match(normalized):
        return False, None, "Invalid email format"

    return True, normalized, None
