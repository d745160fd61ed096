"""
Money utilities.

All currency arithmetic goes through Decimal; amounts are rounded per entry
to the smallest currency unit using round-half-up.
"""

from decimal import Decimal, InvalidOperation

from commission_engine.config.business_constants import (
    MONEY_QUANTUM,
    MONEY_ROUNDING,
)


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a value to Decimal without binary float artifacts.

    Floats are converted through their string form, so 0.1 becomes
    Decimal("0.1") rather than 0.1000000000000000055511151231257827.

    Args:
        value: Numeric value

    Returns:
        Decimal value

    Raises:
        ValueError: If value is not a finite number
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Not a number: {value!r}") from e

    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def quantize_money(amount: Decimal) -> Decimal:
    """
    Round amount to cents using ROUND_HALF_UP.

    Examples:
        quantize_money(Decimal("12.345")) -> Decimal("12.35")
        quantize_money(Decimal("12.344")) -> Decimal("12.34")

    Args:
        amount: Amount to round

    Returns:
        Amount with exactly two decimal places
    """
    return amount.quantize(MONEY_QUANTUM, rounding=MONEY_ROUNDING)


def calculate_commission_amount(total: Decimal, rate: Decimal) -> Decimal:
    """
    Calculate a single commission amount.

    Formula: round_half_up(total * rate, 0.01)

    Args:
        total: Order total
        rate: Commission rate as a fraction (0.10 = 10%)

    Returns:
        Commission amount in cents precision
    """
    return quantize_money(to_decimal(total) * to_decimal(rate))
