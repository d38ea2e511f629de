"""
Commission balance repository.

Atomic balance mutations. Every method is one conditional UPDATE, so
the precondition check and the write cannot be separated by another
transaction.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.commission_balance import CommissionBalance
from ledger.repositories.base import BaseRepository


class CommissionBalanceRepository(BaseRepository[CommissionBalance]):
    """Commission balance repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission balance repository."""
        super().__init__(CommissionBalance, session)

    async def get_by_owner(self, owner_id: str) -> CommissionBalance | None:
        """
        Get balance row by owner.

        Args:
            owner_id: Code owner identity

        Returns:
            CommissionBalance or None
        """
        return await self.get_by(owner_id=owner_id)

    async def credit(self, owner_id: str, amount: int) -> int:
        """Add earned commission to available balance."""
        return await self.update_where(
            [CommissionBalance.owner_id == owner_id],
            balance=CommissionBalance.balance + amount,
            total_earned=CommissionBalance.total_earned + amount,
        )

    async def reserve(self, owner_id: str, amount: int) -> int:
        """Move funds from available to reserved if enough is available."""
        return await self.update_where(
            [
                CommissionBalance.owner_id == owner_id,
                CommissionBalance.balance >= amount,
            ],
            balance=CommissionBalance.balance - amount,
            reserved=CommissionBalance.reserved + amount,
        )

    async def release(self, owner_id: str, amount: int) -> int:
        """Return reserved funds to available balance."""
        return await self.update_where(
            [
                CommissionBalance.owner_id == owner_id,
                CommissionBalance.reserved >= amount,
            ],
            balance=CommissionBalance.balance + amount,
            reserved=CommissionBalance.reserved - amount,
        )

    async def settle(self, owner_id: str, amount: int) -> int:
        """Move reserved funds to withdrawn permanently."""
        return await self.update_where(
            [
                CommissionBalance.owner_id == owner_id,
                CommissionBalance.reserved >= amount,
            ],
            reserved=CommissionBalance.reserved - amount,
            total_withdrawn=CommissionBalance.total_withdrawn + amount,
        )

    async def get_owner_ids(
        self, limit: int, offset: int = 0
    ) -> list[str]:
        """
        Get owner IDs in stable order (for batch audits).

        Args:
            limit: Max number of owners
            offset: Number of owners to skip

        Returns:
            List of owner IDs
        """
        stmt = (
            select(CommissionBalance.owner_id)
            .order_by(CommissionBalance.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]
