"""
Commission calculator.

Pure planning step of commission generation: turns an order total, a sponsor
chain and a rate snapshot into the ledger entries to write. No I/O.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from commission_engine.services.commission.rate_table import RateTable
from commission_engine.services.sponsorship.chain_manager import SponsorLink
from commission_engine.utils.money import calculate_commission_amount


@dataclass(frozen=True)
class CommissionDraft:
    """A ledger entry to be written for one (order, earner, level)."""

    order_id: int
    user_id: int
    level: int
    rate: Decimal
    commission_amount: Decimal


def plan_commissions(
    order_id: int,
    order_total: Decimal,
    chain: Sequence[SponsorLink],
    rates: RateTable,
    pay_inactive_sponsors: bool = True,
) -> list[CommissionDraft]:
    """
    Plan the commission entries for one order.

    For each ancestor the level's active rate is applied to the order total
    and rounded half-up to cents. Levels without an active rate, inactive
    ancestors (when excluded) and zero amounts produce no entry.

    Args:
        order_id: Source order ID
        order_total: Order total amount
        chain: Ancestors ordered closest first
        rates: Rate snapshot
        pay_inactive_sponsors: Whether inactive ancestors earn

    Returns:
        Drafts ordered by level

    Example:
        total 1000.00, chain [B (L1), A (L2)], rates {1: 0.10, 2: 0.05}
        -> [B: 100.00 (L1), A: 50.00 (L2)]
    """
    drafts: list[CommissionDraft] = []

    for link in chain:
        rate = rates.rate_for(link.level)
        if rate is None:
            continue
        if not link.is_active and not pay_inactive_sponsors:
            continue

        amount = calculate_commission_amount(order_total, rate)
        if amount <= 0:
            continue

        drafts.append(
            CommissionDraft(
                order_id=order_id,
                user_id=link.user_id,
                level=link.level,
                rate=rate,
                commission_amount=amount,
            )
        )

    return drafts
