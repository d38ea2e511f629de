"""
Referral code repository.

Data access layer for the ReferralCode master index.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.referral_code import ReferralCode
from ledger.repositories.base import BaseRepository


class ReferralCodeRepository(BaseRepository[ReferralCode]):
    """Referral code repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral code repository."""
        super().__init__(ReferralCode, session)

    async def get_by_code(self, code: str) -> ReferralCode | None:
        """
        Get code record by its code value (active or not).

        Args:
            code: Normalized referral code

        Returns:
            ReferralCode or None
        """
        return await self.get_by(code=code)

    async def get_active_by_code(self, code: str) -> ReferralCode | None:
        """
        Get active code record by its code value.

        Args:
            code: Normalized referral code

        Returns:
            Active ReferralCode or None
        """
        return await self.get_by(code=code, is_active=True)

    async def get_active_by_owner(self, owner_id: str) -> ReferralCode | None:
        """
        Get the owner's active code.

        Args:
            owner_id: Code owner identity

        Returns:
            Active ReferralCode or None
        """
        return await self.get_by(owner_id=owner_id, is_active=True)

    async def code_exists(self, code: str) -> bool:
        """Check whether a code value was ever issued."""
        return await self.exists(code=code)

    async def deactivate(self, code: str) -> int:
        """
        Deactivate a code.

        Args:
            code: Normalized referral code

        Returns:
            Number of rows deactivated (0 if missing or already inactive)
        """
        return await self.update_where(
            [ReferralCode.code == code, ReferralCode.is_active.is_(True)],
            is_active=False,
        )
