"""
OwnerNotification model.

Notifications shown to referrers on their dashboard.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger.models.base import Base
from ledger.models.types import MoneyType, OwnerIdType


class OwnerNotification(Base):
    """Notification for a code owner (referral used, commission earned, ...)."""

    __tablename__ = "owner_notifications"
    __table_args__ = (
        Index("idx_owner_notifications_owner_read", "owner_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    owner_id: Mapped[str] = mapped_column(OwnerIdType, nullable=False)

    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    amount: Mapped[int | None] = mapped_column(MoneyType, nullable=True)
    # Tracking entry or withdrawal id the notification refers to
    reference_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_read: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<OwnerNotification(id={self.id}, owner_id={self.owner_id}, "
            f"type={self.type}, read={self.is_read})>"
        )
