"""
Commission services package.

Contains services for the commission ledger:
- rate_table: rate snapshot and rate configuration
- calculator: pure planning of ledger entries
- generation: per-order commission generation
- settlement: payout of pending entries
- reporting: payables, history and earnings views
- order_status: order lifecycle boundary that triggers generation
"""

from commission_engine.services.commission.calculator import (
    CommissionDraft,
    plan_commissions,
)
from commission_engine.services.commission.generation import (
    CommissionGenerationService,
    GenerationOutcome,
    GenerationResult,
)
from commission_engine.services.commission.order_status import (
    OrderStatusChange,
    OrderStatusService,
)
from commission_engine.services.commission.rate_table import (
    CommissionRateService,
    RateTable,
)
from commission_engine.services.commission.reporting import (
    CommissionHistoryEntry,
    CommissionListEntry,
    CommissionReportingService,
    CommissionStats,
    EarningsSummary,
    UserPayable,
)
from commission_engine.services.commission.settlement import (
    PayoutOutcome,
    PayoutResult,
    PayoutSettlementService,
)


__all__ = [
    # Rates
    "CommissionRateService",
    "RateTable",
    # Generation
    "CommissionDraft",
    "CommissionGenerationService",
    "GenerationOutcome",
    "GenerationResult",
    "plan_commissions",
    # Settlement
    "PayoutOutcome",
    "PayoutResult",
    "PayoutSettlementService",
    # Reporting
    "CommissionHistoryEntry",
    "CommissionListEntry",
    "CommissionReportingService",
    "CommissionStats",
    "EarningsSummary",
    "UserPayable",
    # Orders
    "OrderStatusChange",
    "OrderStatusService",
]
