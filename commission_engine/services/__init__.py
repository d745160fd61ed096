"""
Services.

Business logic layer.
"""

from commission_engine.services.base_service import BaseService, log_operation

# Commission Services
from commission_engine.services.commission import (
    CommissionGenerationService,
    CommissionRateService,
    CommissionReportingService,
    OrderStatusService,
    PayoutSettlementService,
)

# Sponsorship Services
from commission_engine.services.sponsorship import (
    SponsorChainManager,
    UserRegistrationService,
)


__all__ = [
    "BaseService",
    "log_operation",
    "CommissionGenerationService",
    "CommissionRateService",
    "CommissionReportingService",
    "OrderStatusService",
    "PayoutSettlementService",
    "SponsorChainManager",
    "UserRegistrationService",
]
