"""
Standard type definitions for database models.

Provides consistent types for monetary fields across all models.
"""

from sqlalchemy import BigInteger, String

# Standard money type for amounts, balances, commissions
# Integer Rupiah (smallest currency unit), no fractional part
# Range: up to 9,223,372,036,854,775,807
MoneyType = BigInteger

# Identity issued by the external auth collaborator
OwnerIdType = String(128)

# SULTANAH-AHM4821 style codes
ReferralCodeType = String(32)
