"""
Referral tracking repository.

Data access layer for tracking entries and their status transitions.
"""

from datetime import UTC, datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.enums import TrackingStatus
from ledger.models.referral_tracking import ReferralTracking
from ledger.repositories.base import BaseRepository


class ReferralTrackingRepository(BaseRepository[ReferralTracking]):
    """Referral tracking repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral tracking repository."""
        super().__init__(ReferralTracking, session)

    async def get_by_referred_user(
        self, referred_user_id: str
    ) -> ReferralTracking | None:
        """
        Get the entry created when this user signed up.

        Args:
            referred_user_id: Identity of the referred user

        Returns:
            ReferralTracking or None
        """
        return await self.get_by(referred_user_id=referred_user_id)

    async def get_by_referrer(
        self,
        referrer_id: str,
        status: TrackingStatus | None = None,
        limit: int | None = None,
    ) -> list[ReferralTracking]:
        """
        Get entries of a referrer, newest first.

        Args:
            referrer_id: Code owner identity
            status: Optional status filter
            limit: Max number of results

        Returns:
            List of tracking entries
        """
        filters: dict[str, str] = {"referrer_id": referrer_id}
        if status:
            filters["status"] = status.value

        return await self.find_all(
            limit=limit,
            order_by=[
                ReferralTracking.created_at.desc(),
                ReferralTracking.id.desc(),
            ],
            **filters,
        )

    async def transition(
        self,
        entry_id: int,
        from_status: TrackingStatus,
        to_status: TrackingStatus,
        **values: object,
    ) -> int:
        """
        Move an entry between statuses if it is still in from_status.

        Args:
            entry_id: Tracking entry ID
            from_status: Required current status
            to_status: New status
            **values: Extra columns to set in the same statement

        Returns:
            1 if the transition happened, 0 otherwise
        """
        return await self.update_where(
            [
                ReferralTracking.id == entry_id,
                ReferralTracking.status == from_status.value,
            ],
            status=to_status.value,
            **values,
        )

    async def mark_payment_submitted(self, entry_id: int) -> int:
        """registered -> payment_submitted."""
        return await self.transition(
            entry_id,
            TrackingStatus.REGISTERED,
            TrackingStatus.PAYMENT_SUBMITTED,
            payment_submitted_at=datetime.now(UTC),
        )

    async def mark_converted(self, entry_id: int, commission: int) -> int:
        """payment_submitted -> converted, fixing the commission."""
        return await self.transition(
            entry_id,
            TrackingStatus.PAYMENT_SUBMITTED,
            TrackingStatus.CONVERTED,
            commission_amount=commission,
            converted_at=datetime.now(UTC),
        )

    async def mark_rejected(self, entry_id: int) -> int:
        """payment_submitted -> payment_rejected."""
        return await self.transition(
            entry_id,
            TrackingStatus.PAYMENT_SUBMITTED,
            TrackingStatus.PAYMENT_REJECTED,
            rejected_at=datetime.now(UTC),
        )

    async def sum_converted_commission(self, referrer_id: str) -> int:
        """
        Sum commission over the referrer's converted entries.

        Args:
            referrer_id: Code owner identity

        Returns:
            Total converted commission
        """
        stmt = select(
            func.coalesce(func.sum(ReferralTracking.commission_amount), 0)
        ).where(
            ReferralTracking.referrer_id == referrer_id,
            ReferralTracking.status == TrackingStatus.CONVERTED.value,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)

    async def count_converted(self, referrer_id: str) -> int:
        """Count the referrer's converted entries."""
        return await self.count(
            referrer_id=referrer_id,
            status=TrackingStatus.CONVERTED.value,
        )
