"""
Commission balance ledger.

Every mutation is a single conditional UPDATE on the owner's balance row
and runs inside the caller's transaction. Only the tracking ledger
(credit) and the withdrawal workflow (reserve, release, settle) call
the mutators.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.commission_balance import CommissionBalance
from ledger.repositories.commission_balance_repository import (
    CommissionBalanceRepository,
)
from ledger.services.base_service import BaseService
from ledger.utils.exceptions import (
    InsufficientBalance,
    InvalidRequest,
    LedgerConsistencyError,
    NotFound,
)
from ledger.validators.payout import validate_positive_amount


@dataclass(frozen=True)
class BalanceSnapshot:
    """Read-only view of an owner's balance."""

    owner_id: str
    balance: int = 0
    reserved: int = 0
    total_earned: int = 0
    total_withdrawn: int = 0

    @classmethod
    def from_model(cls, row: CommissionBalance) -> "BalanceSnapshot":
        return cls(
            owner_id=row.owner_id,
            balance=row.balance,
            reserved=row.reserved,
            total_earned=row.total_earned,
            total_withdrawn=row.total_withdrawn,
        )

    @property
    def is_consistent(self) -> bool:
        """Whether balance == total_earned - total_withdrawn - reserved."""
        return (
            self.balance
            == self.total_earned - self.total_withdrawn - self.reserved
        )


def _require_amount(amount: object) -> int:
    is_valid, value, error = validate_positive_amount(amount)
    if not is_valid:
        raise InvalidRequest(error, amount=amount)
    return value


class BalanceLedger(BaseService):
    """Atomic balance mutations and balance reads."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.balance_repo = CommissionBalanceRepository(session)

    async def open_balance(self, owner_id: str) -> CommissionBalance:
        """Return the owner's balance row, creating a zeroed one if missing."""
        row = await self.balance_repo.get_by_owner(owner_id)
        if row:
            return row
        return await self.balance_repo.create(owner_id=owner_id)

    async def credit(self, owner_id: str, amount: int) -> None:
        """
        Add earned commission.

        Raises:
            InvalidRequest: Amount is not a positive integer
            NotFound: Owner has no balance row
        """
        amount = _require_amount(amount)
        updated = await self.balance_repo.credit(owner_id, amount)
        if not updated:
            raise NotFound("Commission balance not found", owner_id=owner_id)

        self.logger.info(
            "Commission credited",
            extra={"owner_id": owner_id, "amount": amount},
        )

    async def reserve(self, owner_id: str, amount: int) -> None:
        """
        Hold funds for a withdrawal.

        Raises:
            InvalidRequest: Amount is not a positive integer
            InsufficientBalance: Available balance is below amount
        """
        amount = _require_amount(amount)
        updated = await self.balance_repo.reserve(owner_id, amount)
        if not updated:
            row = await self.balance_repo.get_by_owner(owner_id)
            available = row.balance if row else 0
            raise InsufficientBalance(
                "Insufficient commission balance",
                available=available,
                requested=amount,
                owner_id=owner_id,
            )

        self.logger.info(
            "Balance reserved",
            extra={"owner_id": owner_id, "amount": amount},
        )

    async def release(self, owner_id: str, amount: int) -> None:
        """
        Return held funds to the available balance.

        Raises:
            InvalidRequest: Amount is not a positive integer
            LedgerConsistencyError: Less than amount is reserved
        """
        amount = _require_amount(amount)
        updated = await self.balance_repo.release(owner_id, amount)
        if not updated:
            raise LedgerConsistencyError(
                "Reserved balance is lower than the released amount",
                owner_id=owner_id,
                amount=amount,
            )

        self.logger.info(
            "Reservation released",
            extra={"owner_id": owner_id, "amount": amount},
        )

    async def settle(self, owner_id: str, amount: int) -> None:
        """
        Pay out held funds permanently.

        Raises:
            InvalidRequest: Amount is not a positive integer
            LedgerConsistencyError: Less than amount is reserved
        """
        amount = _require_amount(amount)
        updated = await self.balance_repo.settle(owner_id, amount)
        if not updated:
            raise LedgerConsistencyError(
                "Reserved balance is lower than the settled amount",
                owner_id=owner_id,
                amount=amount,
            )

        self.logger.info(
            "Reservation settled",
            extra={"owner_id": owner_id, "amount": amount},
        )

    async def get_balance(self, owner_id: str) -> BalanceSnapshot:
        """
        Get the owner's balance.

        Unknown owners get a zero snapshot rather than an error.
        """
        row = await self.balance_repo.get_by_owner(owner_id)
        if not row:
            return BalanceSnapshot(owner_id=owner_id)
        return BalanceSnapshot.from_model(row)
