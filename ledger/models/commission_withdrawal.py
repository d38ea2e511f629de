"""
CommissionWithdrawal model.

Cash-out requests against an owner's commission balance.
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger.models.base import Base
from ledger.models.enums import PayoutMethod, WithdrawalStatus
from ledger.models.types import MoneyType, OwnerIdType


class CommissionWithdrawal(Base):
    """
    Withdrawal request.

    The requested amount is reserved from the balance when the request is
    created. Confirmation settles the reservation; rejection releases it.

    Exactly one payout field set is populated:
    - bank_transfer: bank_name, account_number, account_holder_name
    - e_wallet: ewallet_provider, ewallet_number, ewallet_account_name
    """

    __tablename__ = "commission_withdrawals"
    __table_args__ = (
        Index("idx_commission_withdrawals_owner_status", "owner_id", "status"),
        Index("idx_commission_withdrawals_status_date", "status", "request_date"),
        CheckConstraint("amount > 0", name="amount_positive"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    owner_id: Mapped[str] = mapped_column(
        OwnerIdType, nullable=False, index=True
    )

    amount: Mapped[int] = mapped_column(MoneyType, nullable=False)

    payout_method: Mapped[str] = mapped_column(
        String(32), nullable=False
    )

    # Bank transfer
    bank_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    account_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    account_holder_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    # E-wallet
    ewallet_provider: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    ewallet_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ewallet_account_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )

    status: Mapped[str] = mapped_column(
        String(16),
        default=WithdrawalStatus.PENDING.value,
        nullable=False,
    )

    # Admin processing
    processed_by: Mapped[str | None] = mapped_column(
        OwnerIdType, nullable=True
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    transfer_proof_ref: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
        comment="Reference to the externally stored transfer receipt",
    )

    request_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    processed_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionWithdrawal(id={self.id}, owner_id={self.owner_id}, "
            f"amount={self.amount}, status={self.status})>"
        )

    @property
    def payout_destination(self) -> str:
        """Short human-readable payout destination."""
        if self.payout_method == PayoutMethod.E_WALLET.value:
            return f"{self.ewallet_provider} {self.ewallet_number}"
        return f"{self.bank_name} {self.account_number}"
