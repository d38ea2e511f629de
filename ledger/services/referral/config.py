"""
Referral program configuration.

Maps owner roles to their configured commission per conversion.
"""

from typing import TYPE_CHECKING

from ledger.models.enums import OwnerRole
from ledger.utils.exceptions import InvalidRequest

if TYPE_CHECKING:
    from ledger.config.settings import Settings


def parse_owner_role(value: str | OwnerRole) -> OwnerRole:
    """
    Parse a role name into an OwnerRole.

    Raises:
        InvalidRequest: Role does not qualify for a referral code
    """
    try:
        return OwnerRole(str(value).strip().lower())
    except ValueError:
        raise InvalidRequest(
            "Only alumni and agents can hold a referral code",
            role=str(value),
        ) from None


def commission_rates(settings: "Settings") -> dict[OwnerRole, int]:
    """Configured commission per conversion for every role."""
    return {
        OwnerRole.ALUMNI: settings.commission_rate_alumni,
        OwnerRole.AGENT: settings.commission_rate_agent,
    }


def commission_rate_for(settings: "Settings", role: str | OwnerRole) -> int:
    """Configured commission per conversion for one role."""
    return commission_rates(settings)[parse_owner_role(role)]
