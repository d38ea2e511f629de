"""
Repositories.

Data access layer; repositories flush but never commit.
"""

from ledger.repositories.commission_balance_repository import (
    CommissionBalanceRepository,
)
from ledger.repositories.commission_withdrawal_repository import (
    CommissionWithdrawalRepository,
)
from ledger.repositories.owner_notification_repository import (
    OwnerNotificationRepository,
)
from ledger.repositories.referral_account_repository import (
    ReferralAccountRepository,
)
from ledger.repositories.referral_code_repository import ReferralCodeRepository
from ledger.repositories.referral_tracking_repository import (
    ReferralTrackingRepository,
)


__all__ = [
    "CommissionBalanceRepository",
    "CommissionWithdrawalRepository",
    "OwnerNotificationRepository",
    "ReferralAccountRepository",
    "ReferralCodeRepository",
    "ReferralTrackingRepository",
]
