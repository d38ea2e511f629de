"""
Caller identity.

The ledger does not authenticate; the auth collaborator passes the
verified caller in as an Actor.
"""

from dataclasses import dataclass

from ledger.utils.exceptions import PermissionDenied


@dataclass(frozen=True)
class Actor:
    """Authenticated caller of a ledger operation."""

    user_id: str
    is_admin: bool = False

    def can_act_for(self, owner_id: str) -> bool:
        """Whether the caller may act on behalf of owner_id."""
        return self.is_admin or self.user_id == owner_id

    def ensure_can_act_for(self, owner_id: str) -> None:
        """
        Require the caller to be the owner or an admin.

        Raises:
            PermissionDenied: Caller is neither
        """
        if not self.can_act_for(owner_id):
            raise PermissionDenied(
                "Not allowed to act for this owner",
                actor_id=self.user_id,
                owner_id=owner_id,
            )

    def ensure_admin(self) -> None:
        """
        Require the caller to be an admin.

        Raises:
            PermissionDenied: Caller is not an admin
        """
        if not self.is_admin:
            raise PermissionDenied(
                "Admin privileges required", actor_id=self.user_id
            )
