"""
Referral account repository.

Data access layer for per-owner referral totals.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.referral_account import ReferralAccount
from ledger.repositories.base import BaseRepository


class ReferralAccountRepository(BaseRepository[ReferralAccount]):
    """Referral account repository with counter updates."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral account repository."""
        super().__init__(ReferralAccount, session)

    async def get_by_owner(self, owner_id: str) -> ReferralAccount | None:
        """
        Get account by owner.

        Args:
            owner_id: Code owner identity

        Returns:
            ReferralAccount or None
        """
        return await self.get_by(owner_id=owner_id)

    async def increment_referrals(self, owner_id: str) -> int:
        """
        Increment total_referrals by one.

        Args:
            owner_id: Code owner identity

        Returns:
            Number of rows updated (0 if the account does not exist)
        """
        return await self.update_where(
            [ReferralAccount.owner_id == owner_id],
            total_referrals=ReferralAccount.total_referrals + 1,
        )

    async def record_conversion(self, owner_id: str, commission: int) -> int:
        """
        Count a conversion and add its commission.

        Args:
            owner_id: Code owner identity
            commission: Commission granted for the conversion

        Returns:
            Number of rows updated (0 if the account does not exist)
        """
        return await self.update_where(
            [
                ReferralAccount.owner_id == owner_id,
                ReferralAccount.successful_referrals
                < ReferralAccount.total_referrals,
            ],
            successful_referrals=ReferralAccount.successful_referrals + 1,
            total_commission=ReferralAccount.total_commission + commission,
        )

    async def repoint_code(self, owner_id: str, code: str) -> int:
        """Move the account's back-reference to a newly issued code."""
        return await self.update_where(
            [ReferralAccount.owner_id == owner_id],
            code=code,
        )

    async def search(
        self,
        code_query: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ReferralAccount]:
        """
        List accounts across owners, newest first.

        Args:
            code_query: Substring of the account's code to match
            limit: Max number of results
            offset: Number of results to skip

        Returns:
            List of referral accounts
        """
        stmt = (
            select(ReferralAccount)
            .order_by(ReferralAccount.created_at.desc(), ReferralAccount.id.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        if code_query:
            stmt = stmt.where(
                ReferralAccount.code.icontains(code_query, autoescape=True)
            )

        result = await self.session.execute(stmt)
        return list(result.scalars().all())
