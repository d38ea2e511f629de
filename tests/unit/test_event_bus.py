"""Unit tests for the ledger event bus."""

import pytest

from ledger.services.events import EventBus, LedgerEvent, LedgerEventType


def _event(owner_id: str = "owner-1") -> LedgerEvent:
    return LedgerEvent(
        type=LedgerEventType.COMMISSION_EARNED,
        owner_id=owner_id,
        amount=200_000,
        reference_id=1,
    )


class TestEventBus:
    """Test subscription and delivery."""

    @pytest.mark.asyncio
    async def test_delivers_in_subscription_order(self):
        """Every subscriber receives the event, in order."""
        bus = EventBus()
        received = []

        async def first(event):
            received.append(("first", event.owner_id))

        async def second(event):
            received.append(("second", event.owner_id))

        bus.subscribe(first)
        bus.subscribe(second)

        await bus.publish(_event())

        assert received == [("first", "owner-1"), ("second", "owner-1")]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        """Unsubscribed handlers stop receiving events."""
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event)

        unsubscribe = bus.subscribe(handler)
        unsubscribe()
        unsubscribe()  # second call is harmless

        await bus.publish(_event())

        assert received == []
        assert bus.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_failing_subscriber_is_isolated(self):
        """A raising subscriber does not stop the others."""
        bus = EventBus()
        received = []

        async def broken(event):
            raise RuntimeError("notification store down")

        async def healthy(event):
            received.append(event.reference_id)

        bus.subscribe(broken)
        bus.subscribe(healthy)

        await bus.publish(_event())

        assert received == [1]

    @pytest.mark.asyncio
    async def test_publish_all_keeps_order(self):
        """Batches are delivered in the order they were raised."""
        bus = EventBus()
        received = []

        async def handler(event):
            received.append(event.owner_id)

        bus.subscribe(handler)

        await bus.publish_all([_event("a"), _event("b"), _event("c")])

        assert received == ["a", "b", "c"]
