"""
Exception handling utilities.

Defines the ledger error taxonomy and the categories used by the
transaction wrapper to decide how loudly a failure is logged.
"""

from sqlalchemy.exc import OperationalError


class LedgerError(Exception):
    """Base class for all ledger errors."""

    error_code = "LEDGER_ERROR"

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class PermissionDenied(LedgerError):
    """Caller is not authorized to act for the target owner."""

    error_code = "PERMISSION_DENIED"


class InvalidCode(LedgerError):
    """Referral code does not resolve, or resolves to another owner."""

    error_code = "INVALID_CODE"


class InvalidTransition(LedgerError):
    """State machine precondition violated."""

    error_code = "INVALID_TRANSITION"

    def __init__(
        self,
        message: str,
        current_status: str | None = None,
        requested: str | None = None,
        **context: object,
    ) -> None:
        super().__init__(message, **context)
        self.current_status = current_status
        self.requested = requested


class InsufficientBalance(LedgerError):
    """Withdrawal exceeds available funds."""

    error_code = "INSUFFICIENT_BALANCE"

    def __init__(
        self,
        message: str,
        available: int = 0,
        requested: int = 0,
        **context: object,
    ) -> None:
        super().__init__(message, **context)
        self.available = available
        self.requested = requested


class NotFound(LedgerError):
    """Lookup miss."""

    error_code = "NOT_FOUND"


class CodeSpaceExhausted(LedgerError):
    """Referral code generator ran out of attempts."""

    error_code = "CODE_SPACE_EXHAUSTED"


class InvalidRequest(LedgerError):
    """Malformed input (amount, payout details, role)."""

    error_code = "INVALID_REQUEST"


class LedgerConsistencyError(LedgerError):
    """A stored invariant would be broken by the requested mutation."""

    error_code = "LEDGER_CONSISTENCY"


# Exception categories based on handling strategy

# Expected outcomes of a request - logged as warnings, always re-raised
DOMAIN_ERRORS = (
    PermissionDenied,
    InvalidCode,
    InvalidTransition,
    InsufficientBalance,
    NotFound,
    InvalidRequest,
)

# Must log with traceback - infrastructure or invariant failures
MUST_LOG = (
    OperationalError,
    LedgerConsistencyError,
    CodeSpaceExhausted,
)


def is_domain_error(exc: Exception) -> bool:
    """
    Check if exception is an expected domain outcome.

    Args:
        exc: Exception to check

    Returns:
        True if exception is part of the request/response contract
    """
    return isinstance(exc, DOMAIN_ERRORS)


def must_log(exc: Exception) -> bool:
    """
    Check if exception must be logged with a traceback.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be logged
    """
    return isinstance(exc, MUST_LOG) or not is_domain_error(exc)
