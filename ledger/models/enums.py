"""
Ledger enumerations.

Status and role values are stored as plain strings; use `.value`
when writing to the database.
"""

from enum import StrEnum


class OwnerRole(StrEnum):
    """Roles that qualify for a referral code."""

    ALUMNI = "alumni"
    AGENT = "agent"


class TrackingStatus(StrEnum):
    """Lifecycle of a referred signup."""

    REGISTERED = "registered"  # Signed up with a code, not paid yet
    PAYMENT_SUBMITTED = "payment_submitted"  # Proof submitted, awaiting admin
    CONVERTED = "converted"  # Payment approved, commission credited
    PAYMENT_REJECTED = "payment_rejected"  # Payment rejected, no commission


class WithdrawalStatus(StrEnum):
    """Lifecycle of a withdrawal request."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


class PayoutMethod(StrEnum):
    """Where a withdrawal is paid out."""

    BANK_TRANSFER = "bank_transfer"
    E_WALLET = "e_wallet"


class NotificationType(StrEnum):
    """Owner-facing notification kinds."""

    REFERRAL_USED = "referral_used"
    COMMISSION_EARNED = "commission_earned"
    WITHDRAWAL_CONFIRMED = "withdrawal_confirmed"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"
