"""
Referral services package.

- config: Role parsing and commission rates
- code_generator: Referral code issuance
- query_manager: Code resolution and account reads
- tracking_ledger: Referred signup state machine
"""

from ledger.services.referral.code_generator import (
    CodeGenerator,
    derive_name_prefix,
)
from ledger.services.referral.config import (
    commission_rate_for,
    parse_owner_role,
)
from ledger.services.referral.query_manager import (
    ReferralQueryManager,
    normalize_code,
)
from ledger.services.referral.tracking_ledger import TrackingLedger


__all__ = [
    "CodeGenerator",
    "ReferralQueryManager",
    "TrackingLedger",
    "commission_rate_for",
    "derive_name_prefix",
    "normalize_code",
    "parse_owner_role",
]
