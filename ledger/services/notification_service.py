"""
Owner notification service.

Turns committed ledger events into notifications on the referrer's
dashboard and serves the notification list.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ledger.config.business_constants import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT
from ledger.models.enums import NotificationType
from ledger.models.owner_notification import OwnerNotification
from ledger.repositories.owner_notification_repository import (
    OwnerNotificationRepository,
)
from ledger.services.base_service import BaseService, transaction
from ledger.services.events import LedgerEvent, LedgerEventType
from ledger.utils.exceptions import NotFound
from ledger.utils.formatters import format_rupiah


def render_notification(
    event: LedgerEvent,
) -> tuple[NotificationType, str, str] | None:
    """
    Build (type, title, message) for an event, or None if not notified.

    Args:
        event: Committed ledger event

    Returns:
        Notification parts or None
    """
    if event.type == LedgerEventType.REFERRAL_REGISTERED:
        code = event.payload.get("code", "")
        return (
            NotificationType.REFERRAL_USED,
            "Kode Referral Digunakan!",
            f"Pengguna baru mendaftar menggunakan kode referral Anda ({code})",
        )

    if event.type == LedgerEventType.COMMISSION_EARNED:
        return (
            NotificationType.COMMISSION_EARNED,
            "Komisi Diperoleh!",
            "Pembayaran referral Anda telah disetujui admin. "
            f"Anda mendapatkan komisi {format_rupiah(event.amount or 0)}",
        )

    if event.type == LedgerEventType.WITHDRAWAL_CONFIRMED:
        return (
            NotificationType.WITHDRAWAL_CONFIRMED,
            "Penarikan Komisi Berhasil",
            f"Penarikan {format_rupiah(event.amount or 0)} telah ditransfer",
        )

    if event.type == LedgerEventType.WITHDRAWAL_REJECTED:
        note = event.payload.get("note")
        message = (
            f"Penarikan {format_rupiah(event.amount or 0)} ditolak. "
            "Saldo telah dikembalikan"
        )
        if note:
            message = f"{message}. Catatan admin: {note}"
        return (
            NotificationType.WITHDRAWAL_REJECTED,
            "Penarikan Komisi Ditolak",
            message,
        )

    return None


class NotificationService(BaseService):
    """Owner notification reads and writes."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.notification_repo = OwnerNotificationRepository(session)

    @transaction
    async def record(self, event: LedgerEvent) -> OwnerNotification | None:
        """Store the notification for an event, if the event has one."""
        parts = render_notification(event)
        if parts is None:
            return None

        notification_type, title, message = parts
        return await self.notification_repo.create(
            owner_id=event.owner_id,
            type=notification_type.value,
            title=title,
            message=message,
            amount=event.amount,
            reference_id=event.reference_id,
        )

    async def list_notifications(
        self,
        owner_id: str,
        unread_only: bool = False,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[OwnerNotification]:
        return await self.notification_repo.get_for_owner(
            owner_id, unread_only=unread_only, limit=min(limit, MAX_LIST_LIMIT)
        )

    @transaction
    async def mark_read(self, owner_id: str, notification_id: int) -> None:
        """
        Mark a notification as read.

        Raises:
            NotFound: Notification does not exist or belongs to someone else
        """
        updated = await self.notification_repo.mark_read(
            owner_id, notification_id
        )
        if not updated:
            raise NotFound(
                "Notification not found",
                owner_id=owner_id,
                notification_id=notification_id,
            )

    async def count_unread(self, owner_id: str) -> int:
        return await self.notification_repo.count_unread(owner_id)


class NotificationRecorder:
    """
    Event bus subscriber that stores owner notifications.

    Each event is written in its own session, after the ledger change
    that raised it has already been committed.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    async def __call__(self, event: LedgerEvent) -> None:
        async with self.session_maker() as session:
            await NotificationService(session).record(event)
