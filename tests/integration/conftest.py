"""
Shared fixtures for integration tests.

Integration tests run the real services against in-memory SQLite.
"""

from typing import Any

import pytest
from sqlalchemy import delete, func, select, update

from ledger.services.events import LedgerEvent
from ledger.services.ledger_service import LedgerService


@pytest.fixture
def make_ledger(test_settings, session_maker, event_bus):
    """Factory for ledger services with scripted code suffixes."""
    created: list[LedgerService] = []

    def factory(rng=None, clock=None, settings=None) -> LedgerService:
        service = LedgerService(
            settings or test_settings,
            session_maker,
            event_bus=event_bus,
            rng=rng,
            clock=clock,
            record_notifications=False,
        )
        created.append(service)
        return service

    yield factory

    for service in created:
        if service._unsubscribe is not None:
            service._unsubscribe()


@pytest.fixture
def published(event_bus) -> list[LedgerEvent]:
    """Every event published on the test bus."""
    events: list[LedgerEvent] = []

    async def collect(event: LedgerEvent) -> None:
        events.append(event)

    event_bus.subscribe(collect)
    return events


@pytest.fixture
def count_rows(session_maker):
    """Count rows of a model in a fresh session."""

    async def counter(model: Any, **filters: Any) -> int:
        async with session_maker() as session:
            stmt = select(func.count()).select_from(model).filter_by(**filters)
            result = await session.execute(stmt)
            return result.scalar() or 0

    return counter


@pytest.fixture
def force_update(session_maker):
    """Write rows directly, bypassing the ledger (for corruption tests)."""

    async def writer(model: Any, conditions: list, **values: Any) -> None:
        async with session_maker() as session:
            await session.execute(
                update(model).where(*conditions).values(**values)
            )
            await session.commit()

    return writer


@pytest.fixture
def force_delete(session_maker):
    """Delete rows directly, bypassing the ledger."""

    async def deleter(model: Any, conditions: list) -> None:
        async with session_maker() as session:
            await session.execute(delete(model).where(*conditions))
            await session.commit()

    return deleter
