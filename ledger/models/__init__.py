"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from ledger.models.base import Base
from ledger.models.commission_balance import CommissionBalance
from ledger.models.commission_withdrawal import CommissionWithdrawal
from ledger.models.enums import (
    NotificationType,
    OwnerRole,
    PayoutMethod,
    TrackingStatus,
    WithdrawalStatus,
)
from ledger.models.owner_notification import OwnerNotification
from ledger.models.referral_account import ReferralAccount
from ledger.models.referral_code import ReferralCode
from ledger.models.referral_tracking import ReferralTracking


__all__ = [
    "Base",
    "CommissionBalance",
    "CommissionWithdrawal",
    "NotificationType",
    "OwnerNotification",
    "OwnerRole",
    "PayoutMethod",
    "ReferralAccount",
    "ReferralCode",
    "ReferralTracking",
    "TrackingStatus",
    "WithdrawalStatus",
]
