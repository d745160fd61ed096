"""
Sponsorship services package.

Contains services for the sponsor forest:
- chain_manager: ancestor resolution, sponsor assignment, downline
- registration: user registration and referral code resolution
"""

from commission_engine.services.sponsorship.chain_manager import (
    SponsorChainManager,
    SponsorLink,
    SponsorNode,
    resolve_ancestors,
)
from commission_engine.services.sponsorship.registration import (
    UserRegistrationService,
    parse_referral_code,
)


__all__ = [
    "SponsorChainManager",
    "SponsorLink",
    "SponsorNode",
    "resolve_ancestors",
    "UserRegistrationService",
    "parse_referral_code",
]
