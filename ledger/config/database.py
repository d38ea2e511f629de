"""
Database configuration.

Builds the async engine and session factory from settings.
"""

from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

if TYPE_CHECKING:
    from ledger.config.settings import Settings


def create_engine_from_settings(
    settings: "Settings", use_null_pool: bool = False
) -> AsyncEngine:
    """
    Create the async engine.

    In-memory SQLite gets a single shared connection so every session
    sees the same database.

    Args:
        settings: Ledger settings
        use_null_pool: Open a fresh connection per checkout (job workers)

    Returns:
        AsyncEngine
    """
    url = settings.database_url
    options: dict[str, Any] = {"echo": settings.database_echo}

    if url.startswith("sqlite") and ":memory:" in url:
        options["poolclass"] = StaticPool
        options["connect_args"] = {"check_same_thread": False}
    elif use_null_pool:
        options["poolclass"] = NullPool
    else:
        options["pool_pre_ping"] = True

    return create_async_engine(url, **options)


def create_session_maker(
    engine: AsyncEngine,
) -> async_sessionmaker[AsyncSession]:
    """Session factory; objects stay usable after commit."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
