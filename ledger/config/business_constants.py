"""
Business logic constants for the commission ledger.

Central location for business rules shared by the services and the
settings defaults. Amounts are integer Rupiah.
"""

# =============================================================================
# COMMISSION RATES
# =============================================================================
# Commission is granted only after the referred pilgrim's payment
# has been approved by an admin.

# Alumni (affiliator) tier: Rp200.000 per converted pilgrim
COMMISSION_RATE_ALUMNI = 200_000

# Agent (reseller) tier: Rp500.000 per converted pilgrim
COMMISSION_RATE_AGENT = 500_000


# =============================================================================
# WITHDRAWALS
# =============================================================================

# Minimum withdrawal request (policy, enforced at the request boundary)
MIN_WITHDRAWAL_AMOUNT = 50_000


# =============================================================================
# REFERRAL CODES
# =============================================================================

# Brand prefix: SULTANAH-AHM4821
REFERRAL_CODE_PREFIX = "SULTANAH"

# Owner-name part of the code
REFERRAL_NAME_PREFIX_LENGTH = 3
REFERRAL_NAME_PREFIX_PAD = "X"
REFERRAL_NAME_PREFIX_DEFAULT = "USR"

# Random suffix range (4 digits)
REFERRAL_SUFFIX_MIN = 1000
REFERRAL_SUFFIX_MAX = 9999

# Random draws before the timestamp fallback
CODE_GENERATION_MAX_ATTEMPTS = 5


# =============================================================================
# READ MODELS
# =============================================================================

DEFAULT_LIST_LIMIT = 50
MAX_LIST_LIMIT = 500

# Owners audited per batch by the reconciliation job
RECONCILIATION_BATCH_SIZE = 200
