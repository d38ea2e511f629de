"""
ReferralAccount model.

Per-owner referral totals.
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Integer
from sqlalchemy.orm import Mapped, mapped_column

from ledger.models.base import Base
from ledger.models.types import MoneyType, OwnerIdType, ReferralCodeType


class ReferralAccount(Base):
    """
    ReferralAccount entity.

    Aggregates an owner's referral activity:
    - total_referrals: signups that used the owner's code
    - successful_referrals: signups whose payment was approved
    - total_commission: lifetime commission granted (never decreases)

    total_commission always equals the sum of commission_amount over the
    owner's converted tracking entries.
    """

    __tablename__ = "referral_accounts"
    __table_args__ = (
        CheckConstraint(
            "total_referrals >= 0", name="total_referrals_non_negative"
        ),
        CheckConstraint(
            "successful_referrals >= 0 AND successful_referrals <= total_referrals",
            name="successful_within_total",
        ),
        CheckConstraint(
            "total_commission >= 0", name="total_commission_non_negative"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    owner_id: Mapped[str] = mapped_column(
        OwnerIdType, unique=True, nullable=False
    )

    # Back-reference to the owner's active code
    code: Mapped[str] = mapped_column(
        ReferralCodeType, nullable=False, index=True
    )

    total_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    successful_referrals: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    total_commission: Mapped[int] = mapped_column(
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
            f"<ReferralAccount(owner_id={self.owner_id}, code={self.code}, "
            f"referrals={self.successful_referrals}/{self.total_referrals}, "
            f"commission={self.total_commission})>"
        )

    @property
    def conversion_rate_percent(self) -> float:
        """Share of referrals that converted, as a percentage."""
        if self.total_referrals <= 0:
            return 0.0
        return self.successful_referrals / self.total_referrals * 100
