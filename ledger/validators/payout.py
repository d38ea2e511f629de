"""
Withdrawal input validators.

Each validator returns a tuple of (is_valid, parsed_value, error_message).
"""

from dataclasses import dataclass, fields

from ledger.models.enums import PayoutMethod


BANK_FIELDS = ("bank_name", "account_number", "account_holder_name")
EWALLET_FIELDS = ("ewallet_provider", "ewallet_number", "ewallet_account_name")


@dataclass(frozen=True)
class PayoutDetails:
    """
    Destination of a withdrawal as submitted by the owner.

    Either the three bank fields or the three e-wallet fields are filled.
    """

    bank_name: str | None = None
    account_number: str | None = None
    account_holder_name: str | None = None
    ewallet_provider: str | None = None
    ewallet_number: str | None = None
    ewallet_account_name: str | None = None

    def cleaned(self) -> dict[str, str | None]:
        """Field values with surrounding whitespace removed, blanks as None."""
        result: dict[str, str | None] = {}
        for field in fields(self):
            value = getattr(self, field.name)
            if isinstance(value, str):
                value = value.strip() or None
            result[field.name] = value
        return result


def validate_positive_amount(value: object) -> tuple[bool, int | None, str | None]:
    """
    Validate a money amount in Rupiah.

    Args:
        value: Amount to validate

    Returns:
        Tuple of (is_valid, amount, error_message)

    Examples:
        >>> validate_positive_amount(200000)
        (True, 200000, None)
        >>> validate_positive_amount(0)
        (False, None, "Amount must be a positive integer")
    """
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, int):
        return False, None, "Amount must be a positive integer"

    if value <= 0:
        return False, None, "Amount must be a positive integer"

    return True, value, None


def validate_withdrawal_amount(
    value: object, minimum: int
) -> tuple[bool, int | None, str | None]:
    """
    Validate a withdrawal amount against the configured minimum.

    Args:
        value: Requested amount
        minimum: Minimum withdrawal amount

    Returns:
        Tuple of (is_valid, amount, error_message)
    """
    is_valid, amount, error = validate_positive_amount(value)
    if not is_valid:
        return False, None, error

    if amount < minimum:
        return False, None, f"Minimum withdrawal amount is {minimum}"

    return True, amount, None


def validate_payout(
    payout: PayoutDetails | None,
) -> tuple[bool, tuple[PayoutMethod, dict[str, str | None]] | None, str | None]:
    """
    Validate that exactly one payout set is fully populated.

    Args:
        payout: Submitted payout details

    Returns:
        Tuple of (is_valid, (method, cleaned_fields), error_message)
    """
    if payout is None:
        return False, None, "Payout details are required"

    raw = {field.name: getattr(payout, field.name) for field in fields(payout)}
    not_text = [
        name
        for name, value in raw.items()
        if value is not None and not isinstance(value, str)
    ]
    if not_text:
        return False, None, f"Payout details must be text: {', '.join(not_text)}"

    values = payout.cleaned()
    bank_filled = [name for name in BANK_FIELDS if values[name]]
    ewallet_filled = [name for name in EWALLET_FIELDS if values[name]]

    if bank_filled and ewallet_filled:
        return False, None, "Provide either bank or e-wallet details, not both"

    if not bank_filled and not ewallet_filled:
        return False, None, "Payout details are required"

    if bank_filled:
        missing = [name for name in BANK_FIELDS if not values[name]]
        if missing:
            return False, None, f"Missing bank details: {', '.join(missing)}"
        return True, (PayoutMethod.BANK_TRANSFER, values), None

    missing = [name for name in EWALLET_FIELDS if not values[name]]
    if missing:
        return False, None, f"Missing e-wallet details: {', '.join(missing)}"
    return True, (PayoutMethod.E_WALLET, values), None
