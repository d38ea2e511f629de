"""Input validators for ledger requests."""

from ledger.validators.payout import (
    PayoutDetails,
    validate_payout,
    validate_positive_amount,
    validate_withdrawal_amount,
)


__all__ = [
    "PayoutDetails",
    "validate_payout",
    "validate_positive_amount",
    "validate_withdrawal_amount",
]
