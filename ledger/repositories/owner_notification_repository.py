"""
Owner notification repository.

Data access layer for referrer-facing notifications.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.owner_notification import OwnerNotification
from ledger.repositories.base import BaseRepository


class OwnerNotificationRepository(BaseRepository[OwnerNotification]):
    """Owner notification repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize owner notification repository."""
        super().__init__(OwnerNotification, session)

    async def get_for_owner(
        self, owner_id: str, unread_only: bool = False, limit: int = 50
    ) -> list[OwnerNotification]:
        """
        Get notifications of an owner, newest first.

        Args:
            owner_id: Code owner identity
            unread_only: Only unread notifications
            limit: Max number of results

        Returns:
            List of notifications
        """
        filters: dict[str, object] = {"owner_id": owner_id}
        if unread_only:
            filters["is_read"] = False

        return await self.find_all(
            limit=limit,
            order_by=[
                OwnerNotification.created_at.desc(),
                OwnerNotification.id.desc(),
            ],
            **filters,
        )

    async def mark_read(self, owner_id: str, notification_id: int) -> int:
        """Mark one of the owner's notifications as read."""
        return await self.update_where(
            [
                OwnerNotification.id == notification_id,
                OwnerNotification.owner_id == owner_id,
            ],
            is_read=True,
        )

    async def count_unread(self, owner_id: str) -> int:
        """Count the owner's unread notifications."""
        return await self.count(owner_id=owner_id, is_read=False)
