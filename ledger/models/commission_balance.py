"""
CommissionBalance model.

Per-owner running commission balance.
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from ledger.models.base import Base
from ledger.models.types import MoneyType, OwnerIdType


class CommissionBalance(Base):
    """
    Commission balance of one owner.

    - balance: available for withdrawal
    - reserved: held by pending withdrawal requests
    - total_earned: lifetime commission credited (never decreases)
    - total_withdrawn: lifetime confirmed withdrawals (never decreases)

    balance == total_earned - total_withdrawn - reserved holds for every row.
    """

    __tablename__ = "commission_balances"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="balance_non_negative"),
        CheckConstraint("reserved >= 0", name="reserved_non_negative"),
        CheckConstraint("total_earned >= 0", name="total_earned_non_negative"),
        CheckConstraint(
            "total_withdrawn >= 0", name="total_withdrawn_non_negative"
        ),
        CheckConstraint(
            "balance = total_earned - total_withdrawn - reserved",
            name="balance_conservation",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    owner_id: Mapped[str] = mapped_column(
        OwnerIdType, unique=True, nullable=False
    )

    balance: Mapped[int] = mapped_column(
        MoneyType, default=0, nullable=False
    )
    reserved: Mapped[int] = mapped_column(
        MoneyType, default=0, nullable=False
    )
    total_earned: Mapped[int] = mapped_column(
        MoneyType, default=0, nullable=False
    )
    total_withdrawn: Mapped[int] = mapped_column(
        MoneyType, default=0, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionBalance(owner_id={self.owner_id}, "
            f"balance={self.balance}, reserved={self.reserved}, "
            f"earned={self.total_earned}, withdrawn={self.total_withdrawn})>"
        )
