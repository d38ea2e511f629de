"""
Formatters utility.

Utility functions for formatting ledger data for logs and notifications.
"""


def format_rupiah(amount: int) -> str:
    """
    Format integer Rupiah amount with Indonesian thousands separators.

    Args:
        amount: Amount in Rupiah

    Returns:
        Formatted string like "Rp200.000"
    """
    sign = "-" if amount < 0 else ""
    return f"{sign}Rp{abs(amount):,}".replace(",", ".")


def mask_account_number(value: str | None, visible: int = 4) -> str:
    """
    Mask all but the last digits of a bank account or e-wallet number.

    Args:
        value: Account number
        visible: Number of trailing characters left visible

    Returns:
        Masked string like "******7890"
    """
    if not value:
        return ""
    if len(value) <= visible:
        return value
    return "*" * (len(value) - visible) + value[-visible:]
