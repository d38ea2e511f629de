"""
Commission withdrawal repository.

Data access layer for withdrawal requests.
"""

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.commission_withdrawal import CommissionWithdrawal
from ledger.models.enums import WithdrawalStatus
from ledger.repositories.base import BaseRepository


class CommissionWithdrawalRepository(BaseRepository[CommissionWithdrawal]):
    """Commission withdrawal repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission withdrawal repository."""
        super().__init__(CommissionWithdrawal, session)

    async def get_by_owner(
        self,
        owner_id: str,
        status: WithdrawalStatus | None = None,
        limit: int | None = None,
    ) -> list[CommissionWithdrawal]:
        """
        Get withdrawals of an owner, newest first.

        Args:
            owner_id: Code owner identity
            status: Optional status filter
            limit: Max number of results

        Returns:
            List of withdrawal requests
        """
        filters: dict[str, str] = {"owner_id": owner_id}
        if status:
            filters["status"] = status.value

        return await self.find_all(
            limit=limit,
            order_by=[
                CommissionWithdrawal.request_date.desc(),
                CommissionWithdrawal.id.desc(),
            ],
            **filters,
        )

    async def get_pending(self, limit: int) -> list[CommissionWithdrawal]:
        """
        Get pending withdrawals, oldest first (admin queue).

        Args:
            limit: Max number of results

        Returns:
            List of pending withdrawal requests
        """
        return await self.find_all(
            limit=limit,
            order_by=[
                CommissionWithdrawal.request_date.asc(),
                CommissionWithdrawal.id.asc(),
            ],
            status=WithdrawalStatus.PENDING.value,
        )

    async def get_all(
        self,
        status: WithdrawalStatus | None = None,
        limit: int | None = None,
    ) -> list[CommissionWithdrawal]:
        """
        Get withdrawals of every owner, newest first (admin history).

        Args:
            status: Optional status filter
            limit: Max number of results

        Returns:
            List of withdrawal requests
        """
        filters: dict[str, str] = {}
        if status:
            filters["status"] = status.value

        return await self.find_all(
            limit=limit,
            order_by=[
                CommissionWithdrawal.request_date.desc(),
                CommissionWithdrawal.id.desc(),
            ],
            **filters,
        )

    async def close(
        self,
        request_id: int,
        to_status: WithdrawalStatus,
        processed_by: str | None,
        note: str | None = None,
        transfer_proof_ref: str | None = None,
    ) -> int:
        """
        Move a pending request to a terminal status.

        Args:
            request_id: Withdrawal request ID
            to_status: confirmed or rejected
            processed_by: Admin identity
            note: Admin note
            transfer_proof_ref: Transfer receipt reference

        Returns:
            1 if the request was pending and is now closed, 0 otherwise
        """
        return await self.update_where(
            [
                CommissionWithdrawal.id == request_id,
                CommissionWithdrawal.status == WithdrawalStatus.PENDING.value,
            ],
            status=to_status.value,
            processed_by=processed_by,
            processed_date=datetime.now(UTC),
            note=note,
            transfer_proof_ref=transfer_proof_ref,
        )

    async def get_status_totals(
        self, owner_id: str
    ) -> dict[str, dict[str, int]]:
        """
        Get count and amount per status in a single query.

        Args:
            owner_id: Code owner identity

        Returns:
            Dict mapping every status to {"count": int, "amount": int}
        """
        stmt = (
            select(
                CommissionWithdrawal.status,
                func.count(CommissionWithdrawal.id).label("count"),
                func.coalesce(func.sum(CommissionWithdrawal.amount), 0).label(
                    "amount"
                ),
            )
            .where(CommissionWithdrawal.owner_id == owner_id)
            .group_by(CommissionWithdrawal.status)
        )
        result = await self.session.execute(stmt)

        totals = {
            status.value: {"count": 0, "amount": 0}
            for status in WithdrawalStatus
        }
        for row in result.all():
            totals[row.status] = {"count": row.count, "amount": int(row.amount)}
        return totals
