"""
Withdrawal services package.

- withdrawal_request_handler: Request validation and balance reservation
- withdrawal_lifecycle_handler: Admin confirmation and rejection
- withdrawal_query_service: History, admin queue and summaries
"""

from ledger.services.withdrawal.withdrawal_lifecycle_handler import (
    WithdrawalLifecycleHandler,
)
from ledger.services.withdrawal.withdrawal_query_service import (
    WithdrawalQueryService,
)
from ledger.services.withdrawal.withdrawal_request_handler import (
    WithdrawalRequestHandler,
)


__all__ = [
    "WithdrawalLifecycleHandler",
    "WithdrawalQueryService",
    "WithdrawalRequestHandler",
]
