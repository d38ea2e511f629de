"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def epoch_millis() -> int:
    """Current UTC time as milliseconds since the epoch."""
    return int(utc_now().timestamp() * 1000)
