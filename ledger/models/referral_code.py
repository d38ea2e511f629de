"""
ReferralCode model.

Master index of issued referral codes, keyed by the code itself.
"""

from datetime import UTC, datetime

from sqlalchemy import Boolean, DateTime, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ledger.models.base import Base
from ledger.models.types import MoneyType, OwnerIdType, ReferralCodeType


class ReferralCode(Base):
    """
    ReferralCode entity.

    One row per issued code. A code is never reused or edited once issued;
    deactivating it stops it from resolving to its owner.

    Attributes:
        id: Primary key
        code: Shareable code (SULTANAH-AHM4821), unique
        owner_id: Identity of the alumni/agent holding the code
        owner_role: alumni or agent
        commission_per_conversion: Configured rate at issue time (Rupiah)
        is_active: Whether the code still resolves
        created_at: Issue timestamp
        updated_at: Last modification
    """

    __tablename__ = "referral_codes"
    __table_args__ = (
        # At most one active code per owner
        Index(
            "uq_referral_codes_active_owner",
            "owner_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    code: Mapped[str] = mapped_column(
        ReferralCodeType, unique=True, nullable=False
    )

    owner_id: Mapped[str] = mapped_column(
        OwnerIdType, nullable=False, index=True
    )
    owner_role: Mapped[str] = mapped_column(
        String(16), nullable=False
    )

    commission_per_conversion: Mapped[int] = mapped_column(
        MoneyType,
        nullable=False,
        comment="Configured commission rate when the code was issued",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
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
            f"<ReferralCode(code={self.code}, owner_id={self.owner_id}, "
            f"role={self.owner_role}, active={self.is_active})>"
        )
