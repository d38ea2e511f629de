"""
Ledger events.

In-process observer interface. Services collect events while they work;
the ledger facade publishes them only after the transaction committed.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Any

from loguru import logger

from ledger.utils.datetime_utils import utc_now


class LedgerEventType(StrEnum):
    """Committed ledger changes."""

    REFERRAL_CODE_ISSUED = "referral_code_issued"
    REFERRAL_REGISTERED = "referral_registered"
    PAYMENT_SUBMITTED = "payment_submitted"
    COMMISSION_EARNED = "commission_earned"
    CONVERSION_REJECTED = "conversion_rejected"
    WITHDRAWAL_REQUESTED = "withdrawal_requested"
    WITHDRAWAL_CONFIRMED = "withdrawal_confirmed"
    WITHDRAWAL_REJECTED = "withdrawal_rejected"


@dataclass(frozen=True)
class LedgerEvent:
    """
    A committed change to one owner's ledger.

    Attributes:
        type: Event type
        owner_id: Owner whose ledger changed
        amount: Money moved, if any
        reference_id: Tracking entry or withdrawal id
        payload: Extra event-specific data
        occurred_at: When the change was made
    """

    type: LedgerEventType
    owner_id: str
    amount: int | None = None
    reference_id: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)


EventHandler = Callable[[LedgerEvent], Awaitable[None]]


class EventBus:
    """
    Async publish/subscribe hub for ledger events.

    Subscribers are called in subscription order. A failing subscriber is
    logged and skipped; it never affects the ledger or other subscribers.
    """

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """
        Register a handler.

        Args:
            handler: Async callable receiving each event

        Returns:
            Callable that removes the handler again
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._handlers)

    async def publish(self, event: LedgerEvent) -> None:
        """Deliver one event to every subscriber."""
        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception as e:
                logger.warning(
                    "Ledger event subscriber failed",
                    extra={
                        "event_type": event.type.value,
                        "owner_id": event.owner_id,
                        "handler": getattr(handler, "__qualname__", repr(handler)),
                        "error": str(e),
                    },
                )

    async def publish_all(self, events: list[LedgerEvent]) -> None:
        """Deliver events in the order they were raised."""
        for event in events:
            await self.publish(event)
