"""Pytest configuration and shared fixtures for all tests."""

import os
import random

# Minimal environment for Settings; must be set before ledger imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")

import dramatiq
import pytest
import pytest_asyncio
from dramatiq.brokers.stub import StubBroker

# Actors declared by job modules bind to this broker instead of Redis
stub_broker = StubBroker()
stub_broker.emit_after("process_boot")
dramatiq.set_broker(stub_broker)

from ledger.config.database import create_engine_from_settings, create_session_maker
from ledger.config.settings import Settings
from ledger.models import Base
from ledger.services.actor import Actor
from ledger.services.events import EventBus
from ledger.services.ledger_service import LedgerService
from ledger.validators.payout import PayoutDetails


@pytest.fixture
def test_settings() -> Settings:
    """Settings bound to a private in-memory database."""
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        environment="test",
        log_file=None,
    )


@pytest_asyncio.fixture
async def engine(test_settings):
    """In-memory SQLite engine with all ledger tables created."""
    engine = create_engine_from_settings(test_settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Session for direct repository/service tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def fixed_rng() -> random.Random:
    """Seeded random source so issued codes are reproducible."""
    return random.Random(1234)


@pytest_asyncio.fixture
async def ledger(test_settings, session_maker, event_bus, fixed_rng):
    """LedgerService on the shared in-memory database."""
    service = LedgerService(
        test_settings,
        session_maker,
        event_bus=event_bus,
        rng=fixed_rng,
    )
    yield service
    await service.close()


@pytest.fixture
def admin() -> Actor:
    return Actor(user_id="admin-1", is_admin=True)


@pytest.fixture
def ahmad() -> Actor:
    """Alumni owner used across scenarios."""
    return Actor(user_id="user-ahmad")


@pytest.fixture
def bank_payout() -> PayoutDetails:
    return PayoutDetails(
        bank_name="BCA",
        account_number="1234567890",
        account_holder_name="Ahmad Fauzi",
    )


@pytest.fixture
def ewallet_payout() -> PayoutDetails:
    return PayoutDetails(
        ewallet_provider="GoPay",
        ewallet_number="081234567890",
        ewallet_account_name="Ahmad Fauzi",
    )


class SequenceRandom(random.Random):
    """Random source returning scripted suffixes for randint()."""

    def __init__(self, values: list[int]) -> None:
        super().__init__(0)
        self.values = list(values)

    def randint(self, a: int, b: int) -> int:
        return self.values.pop(0)


@pytest.fixture
def sequence_rng():
    """Factory for scripted random sources."""
    return SequenceRandom


async def earn_commission(
    ledger: LedgerService,
    owner_id: str,
    referred_user_id: str,
    amount: int,
) -> int:
    """Register, submit and approve one referral; returns the entry id."""
    code = await ledger.get_active_code(owner_id)
    entry = await ledger.record_registration(
        owner_id, referred_user_id, code.code
    )
    await ledger.on_payment_submitted(entry.id)
    await ledger.on_payment_approved(entry.id, amount)
    return entry.id


@pytest.fixture
def earn():
    """Helper that drives one referral to conversion."""
    return earn_commission
