"""
Referral code and commission ledger.

Issues referral codes, tracks referred signups through payment approval,
and keeps per-owner commission balances and withdrawals consistent.
"""

__version__ = "1.0.0"
