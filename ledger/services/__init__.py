"""
Ledger services.

- ledger_service: Public facade (inbound hooks, reads, withdrawals)
- referral: Code generation, code/account reads, tracking ledger
- balance_ledger: Atomic balance mutations
- withdrawal_service: Withdrawal workflow facade
- notification_service: Owner notifications from ledger events
- reconciliation_service: Balance drift audit
"""

from ledger.services.actor import Actor
from ledger.services.balance_ledger import BalanceSnapshot
from ledger.services.events import EventBus, LedgerEvent, LedgerEventType
from ledger.services.ledger_service import LedgerService
from ledger.services.reconciliation_service import ReconciliationReport


__all__ = [
    "Actor",
    "BalanceSnapshot",
    "EventBus",
    "LedgerEvent",
    "LedgerEventType",
    "LedgerService",
    "ReconciliationReport",
]
