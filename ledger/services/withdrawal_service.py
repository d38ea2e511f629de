"""
Withdrawal service - Main service facade.

Delegates to the specialized modules in the withdrawal package:
- withdrawal/withdrawal_request_handler: Request creation and validation
- withdrawal/withdrawal_lifecycle_handler: Confirmation and rejection
- withdrawal/withdrawal_query_service: Queries and history
"""

from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.config.business_constants import DEFAULT_LIST_LIMIT
from ledger.models.commission_withdrawal import CommissionWithdrawal
from ledger.models.enums import WithdrawalStatus
from ledger.services.actor import Actor
from ledger.services.base_service import BaseService
from ledger.services.withdrawal.withdrawal_lifecycle_handler import (
    WithdrawalLifecycleHandler,
)
from ledger.services.withdrawal.withdrawal_query_service import (
    WithdrawalQueryService,
)
from ledger.services.withdrawal.withdrawal_request_handler import (
    WithdrawalRequestHandler,
)
from ledger.validators.payout import PayoutDetails

if TYPE_CHECKING:
    from ledger.config.settings import Settings


class WithdrawalService(BaseService):
    """
    Withdrawal service for managing commission withdrawals.

    Sub-components share this service's event queue, so the caller
    collects every event from `service.events`.
    """

    def __init__(self, session: AsyncSession, settings: "Settings") -> None:
        """Initialize withdrawal service and all sub-components."""
        super().__init__(session)

        self.request_handler = WithdrawalRequestHandler(
            session, settings, self.events
        )
        self.lifecycle_handler = WithdrawalLifecycleHandler(
            session, self.events
        )
        self.query_service = WithdrawalQueryService(session)

    # ========================================================================
    # REQUEST HANDLING (delegates to WithdrawalRequestHandler)
    # ========================================================================

    @property
    def min_withdrawal_amount(self) -> int:
        return self.request_handler.min_withdrawal_amount

    async def request_withdrawal(
        self,
        actor: Actor,
        owner_id: str,
        amount: int,
        payout: PayoutDetails,
    ) -> CommissionWithdrawal:
        """Request withdrawal with balance reservation."""
        return await self.request_handler.request_withdrawal(
            actor, owner_id, amount, payout
        )

    # ========================================================================
    # LIFECYCLE MANAGEMENT (delegates to WithdrawalLifecycleHandler)
    # ========================================================================

    async def confirm_withdrawal(
        self,
        actor: Actor,
        request_id: int,
        note: str | None = None,
        transfer_proof_ref: str | None = None,
    ) -> CommissionWithdrawal:
        """Confirm withdrawal (admin only)."""
        return await self.lifecycle_handler.confirm(
            actor, request_id, note, transfer_proof_ref
        )

    async def reject_withdrawal(
        self,
        actor: Actor,
        request_id: int,
        note: str | None = None,
    ) -> CommissionWithdrawal:
        """Reject withdrawal and return the amount to the balance (admin only)."""
        return await self.lifecycle_handler.reject(actor, request_id, note)

    # ========================================================================
    # QUERIES (delegates to WithdrawalQueryService)
    # ========================================================================

    async def get_withdrawal(self, request_id: int) -> CommissionWithdrawal:
        return await self.query_service.get_withdrawal(request_id)

    async def list_withdrawals(
        self,
        owner_id: str,
        status: WithdrawalStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[CommissionWithdrawal]:
        return await self.query_service.list_withdrawals(
            owner_id, status, limit
        )

    async def list_pending_withdrawals(
        self, limit: int = DEFAULT_LIST_LIMIT
    ) -> list[CommissionWithdrawal]:
        return await self.query_service.list_pending(limit)

    async def list_all_withdrawals(
        self,
        status: WithdrawalStatus | str | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[CommissionWithdrawal]:
        return await self.query_service.list_all_withdrawals(status, limit)

    async def get_withdrawal_summary(self, owner_id: str) -> dict[str, Any]:
        return await self.query_service.get_summary(owner_id)
