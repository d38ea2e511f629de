"""
Operational constants.

Retry and time-limit values for background jobs.
"""

# =============================================================================
# RETRY CONFIGURATION
# =============================================================================

# Default retry count for background jobs
DEFAULT_MAX_RETRIES = 3

# Exponential backoff bounds (milliseconds)
RETRY_MIN_BACKOFF_MS = 1_000
RETRY_MAX_BACKOFF_MS = 60_000


# =============================================================================
# DRAMATIQ TASK TIME LIMITS (milliseconds)
# =============================================================================

# Long tasks (10 minutes) - balance reconciliation
DRAMATIQ_TIME_LIMIT_LONG = 600_000
