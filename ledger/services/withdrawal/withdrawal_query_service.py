"""
Withdrawal query module.

Read-only access to withdrawal history and the admin queue.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.config.business_constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ledger.models.commission_withdrawal import CommissionWithdrawal
from ledger.models.enums import WithdrawalStatus
from ledger.repositories.commission_withdrawal_repository import (
    CommissionWithdrawalRepository,
)
from ledger.utils.exceptions import InvalidRequest, NotFound


def _parse_status(
    status: WithdrawalStatus | str | None,
) -> WithdrawalStatus | None:
    if status is None:
        return None
    try:
        return WithdrawalStatus(status)
    except ValueError:
        raise InvalidRequest(
            "Unknown withdrawal status", status=str(status)
        ) from None


class WithdrawalQueryService:
    """Handles withdrawal queries and history."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.withdrawal_repo = CommissionWithdrawalRepository(session)

    async def get_withdrawal(self, request_id: int) -> CommissionWithdrawal:
        """Get a withdrawal request or raise NotFound."""
        withdrawal = await self.withdrawal_repo.get_by_id(request_id)
        if not withdrawal:
            raise NotFound("Withdrawal not found", request_id=request_id)
        return withdrawal

    async def list_withdrawals(
        self,
        owner_id: str,
        status: WithdrawalStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[CommissionWithdrawal]:
        """
        Get owner's withdrawal history, newest first.

        Args:
            owner_id: Owner identity
            status: Optional status filter
            limit: Max number of results

        Returns:
            List of withdrawal requests
        """
        return await self.withdrawal_repo.get_by_owner(
            owner_id,
            status=_parse_status(status),
            limit=min(limit, MAX_LIST_LIMIT),
        )

    async def list_all_withdrawals(
        self,
        status: WithdrawalStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[CommissionWithdrawal]:
        """Withdrawals of every owner in any status, newest first (admin)."""
        return await self.withdrawal_repo.get_all(
            status=_parse_status(status), limit=min(limit, MAX_LIST_LIMIT)
        )

    async def list_pending(
        self, limit: int = DEFAULT_LIST_LIMIT
    ) -> list[CommissionWithdrawal]:
        """Pending requests for the admin queue, oldest first."""
        return await self.withdrawal_repo.get_pending(min(limit, MAX_LIST_LIMIT))

    async def get_summary(self, owner_id: str) -> dict[str, Any]:
        """
        Get withdrawal counts and amounts per status.

        Returns:
            Dict with per-status totals plus overall count and amount
        """
        totals = await self.withdrawal_repo.get_status_totals(owner_id)
        return {
            "owner_id": owner_id,
            "by_status": totals,
            "total_count": sum(item["count"] for item in totals.values()),
            "total_amount": sum(item["amount"] for item in totals.values()),
        }
