"""
Withdrawal request handling module.

Validates a cash-out request, reserves the amount from the owner's
balance and stores the request, all in one transaction.
"""

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.commission_withdrawal import CommissionWithdrawal
from ledger.repositories.commission_withdrawal_repository import (
    CommissionWithdrawalRepository,
)
from ledger.services.actor import Actor
from ledger.services.balance_ledger import BalanceLedger
from ledger.services.base_service import BaseService, transaction
from ledger.services.events import LedgerEvent, LedgerEventType
from ledger.utils.exceptions import InvalidRequest
from ledger.utils.formatters import mask_account_number
from ledger.validators.payout import (
    PayoutDetails,
    validate_payout,
    validate_withdrawal_amount,
)

if TYPE_CHECKING:
    from ledger.config.settings import Settings


class WithdrawalRequestHandler(BaseService):
    """Handles withdrawal request creation and validation."""

    def __init__(
        self,
        session: AsyncSession,
        settings: "Settings",
        events: list[LedgerEvent] | None = None,
    ) -> None:
        """
        Initialize withdrawal request handler.

        Args:
            session: Database session
            settings: Ledger settings (minimum withdrawal)
            events: Event queue shared with the withdrawal facade
        """
        super().__init__(session, events)
        self.settings = settings
        self.withdrawal_repo = CommissionWithdrawalRepository(session)
        self.balance_ledger = BalanceLedger(session)

    @property
    def min_withdrawal_amount(self) -> int:
        return self.settings.min_withdrawal_amount

    @transaction
    async def request_withdrawal(
        self,
        actor: Actor,
        owner_id: str,
        amount: int,
        payout: PayoutDetails,
    ) -> CommissionWithdrawal:
        """
        Request withdrawal with balance reservation.

        Args:
            actor: Caller (owner or admin)
            owner_id: Owner whose balance is withdrawn
            amount: Amount in Rupiah
            payout: Bank or e-wallet destination

        Returns:
            Pending withdrawal request

        Raises:
            PermissionDenied: Caller may not act for the owner
            InvalidRequest: Bad amount, below minimum, or bad payout details
            InsufficientBalance: Available balance is below amount
        """
        actor.ensure_can_act_for(owner_id)

        is_valid, amount, error = validate_withdrawal_amount(
            amount, self.min_withdrawal_amount
        )
        if not is_valid:
            raise InvalidRequest(error, owner_id=owner_id)

        is_valid, parsed, error = validate_payout(payout)
        if not is_valid:
            raise InvalidRequest(error, owner_id=owner_id)
        method, details = parsed

        # Nothing is stored if the reservation fails
        await self.balance_ledger.reserve(owner_id, amount)

        withdrawal = await self.withdrawal_repo.create(
            owner_id=owner_id,
            amount=amount,
            payout_method=method.value,
            **details,
        )

        self.emit(
            LedgerEventType.WITHDRAWAL_REQUESTED,
            owner_id,
            amount=amount,
            reference_id=withdrawal.id,
            payout_method=method.value,
        )
        self.logger.info(
            "Withdrawal requested",
            extra={
                "withdrawal_id": withdrawal.id,
                "owner_id": owner_id,
                "amount": amount,
                "payout_method": method.value,
                "destination": mask_account_number(
                    details["account_number"] or details["ewallet_number"]
                ),
            },
        )
        return withdrawal
