"""
Withdrawal lifecycle handling module.

Admin confirmation and rejection of pending withdrawals:

    pending -> confirmed   settles the reserved amount
    pending -> rejected    returns the reserved amount to the balance

The status write is conditional on `pending`, so each request is
settled or released exactly once.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.commission_withdrawal import CommissionWithdrawal
from ledger.models.enums import WithdrawalStatus
from ledger.repositories.commission_withdrawal_repository import (
    CommissionWithdrawalRepository,
)
from ledger.services.actor import Actor
from ledger.services.balance_ledger import BalanceLedger
from ledger.services.base_service import BaseService, transaction
from ledger.services.events import LedgerEvent, LedgerEventType
from ledger.utils.exceptions import InvalidTransition, NotFound


class WithdrawalLifecycleHandler(BaseService):
    """Handles withdrawal confirmation and rejection."""

    def __init__(
        self,
        session: AsyncSession,
        events: list[LedgerEvent] | None = None,
    ) -> None:
        super().__init__(session, events)
        self.withdrawal_repo = CommissionWithdrawalRepository(session)
        self.balance_ledger = BalanceLedger(session)

    async def _close(
        self,
        actor: Actor,
        request_id: int,
        target: WithdrawalStatus,
        note: str | None,
        transfer_proof_ref: str | None = None,
    ) -> tuple[CommissionWithdrawal, bool]:
        actor.ensure_admin()

        moved = await self.withdrawal_repo.close(
            request_id,
            target,
            processed_by=actor.user_id,
            note=note,
            transfer_proof_ref=transfer_proof_ref,
        )
        withdrawal = await self.withdrawal_repo.get_by_id(request_id)
        if not withdrawal:
            raise NotFound("Withdrawal not found", request_id=request_id)

        if not moved and withdrawal.status != target:
            raise InvalidTransition(
                f"Withdrawal is already {withdrawal.status}",
                current_status=withdrawal.status,
                requested=target.value,
                request_id=request_id,
            )
        return withdrawal, moved

    @transaction
    async def confirm(
        self,
        actor: Actor,
        request_id: int,
        note: str | None = None,
        transfer_proof_ref: str | None = None,
    ) -> CommissionWithdrawal:
        """
        Confirm a pending withdrawal after the transfer was made.

        Args:
            actor: Admin
            request_id: Withdrawal request ID
            note: Admin note
            transfer_proof_ref: Reference to the stored transfer receipt

        Returns:
            The withdrawal request

        Raises:
            PermissionDenied: Caller is not an admin
            NotFound: Unknown request
            InvalidTransition: Request was rejected
            LedgerConsistencyError: Reserved balance is lower than the amount
        """
        withdrawal, moved = await self._close(
            actor,
            request_id,
            WithdrawalStatus.CONFIRMED,
            note,
            transfer_proof_ref,
        )
        if not moved:
            return withdrawal

        await self.balance_ledger.settle(withdrawal.owner_id, withdrawal.amount)

        self.emit(
            LedgerEventType.WITHDRAWAL_CONFIRMED,
            withdrawal.owner_id,
            amount=withdrawal.amount,
            reference_id=withdrawal.id,
            transfer_proof_ref=transfer_proof_ref,
        )
        self.logger.info(
            "Withdrawal confirmed",
            extra={
                "withdrawal_id": request_id,
                "owner_id": withdrawal.owner_id,
                "amount": withdrawal.amount,
                "admin_id": actor.user_id,
            },
        )
        return withdrawal

    @transaction
    async def reject(
        self,
        actor: Actor,
        request_id: int,
        note: str | None = None,
    ) -> CommissionWithdrawal:
        """
        Reject a pending withdrawal and release its reservation.

        Raises:
            PermissionDenied: Caller is not an admin
            NotFound: Unknown request
            InvalidTransition: Request was confirmed
            LedgerConsistencyError: Reserved balance is lower than the amount
        """
        withdrawal, moved = await self._close(
            actor, request_id, WithdrawalStatus.REJECTED, note
        )
        if not moved:
            return withdrawal

        await self.balance_ledger.release(withdrawal.owner_id, withdrawal.amount)

        self.emit(
            LedgerEventType.WITHDRAWAL_REJECTED,
            withdrawal.owner_id,
            amount=withdrawal.amount,
            reference_id=withdrawal.id,
            note=note,
        )
        self.logger.info(
            "Withdrawal rejected, balance returned",
            extra={
                "withdrawal_id": request_id,
                "owner_id": withdrawal.owner_id,
                "amount": withdrawal.amount,
                "admin_id": actor.user_id,
            },
        )
        return withdrawal
