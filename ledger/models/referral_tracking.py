"""
ReferralTracking model.

One row per referred signup, carrying its lifecycle status.
"""

from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger.models.base import Base
from ledger.models.enums import TrackingStatus
from ledger.models.types import MoneyType, OwnerIdType, ReferralCodeType


class ReferralTracking(Base):
    """
    Tracking entry for a referred signup.

    Status lifecycle:
    - registered: user signed up with the code
    - payment_submitted: user submitted a payment proof
    - converted: admin approved the payment, commission credited (terminal)
    - payment_rejected: admin rejected the payment (terminal)

    commission_amount stays 0 until conversion and is fixed afterwards.
    """

    __tablename__ = "referral_tracking"
    __table_args__ = (
        Index("idx_referral_tracking_referrer_status", "referrer_id", "status"),
        CheckConstraint(
            "commission_amount >= 0", name="commission_amount_non_negative"
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    referrer_id: Mapped[str] = mapped_column(
        OwnerIdType, nullable=False, index=True
    )
    # A user is referred at most once
    referred_user_id: Mapped[str] = mapped_column(
        OwnerIdType, unique=True, nullable=False
    )
    referral_code: Mapped[str] = mapped_column(
        ReferralCodeType, nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(32),
        default=TrackingStatus.REGISTERED.value,
        nullable=False,
    )

    commission_amount: Mapped[int] = mapped_column(
        MoneyType, default=0, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    payment_submitted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    converted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    rejected_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
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
            f"<ReferralTracking(id={self.id}, referrer_id={self.referrer_id}, "
            f"referred_user_id={self.referred_user_id}, status={self.status})>"
        )
