"""
Async runner for dramatiq tasks.

Runs ledger coroutines inside synchronous dramatiq actors, one event
loop per worker thread.
"""

import asyncio
import threading
from collections.abc import AsyncIterator, Coroutine
from contextlib import asynccontextmanager
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.config.database import create_engine_from_settings, create_session_maker
from ledger.config.settings import settings

T = TypeVar("T")

# Thread-local storage for event loops
_thread_local = threading.local()


def get_event_loop() -> asyncio.AbstractEventLoop:
    """
    Get or create event loop for current thread.

    Reusing one loop per thread prevents "Future attached to a different
    loop" errors with pooled connections.
    """
    loop = getattr(_thread_local, "loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        _thread_local.loop = loop
        logger.debug(
            f"Created new event loop for thread {threading.current_thread().name}"
        )
    return loop


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in the thread's event loop.

    Args:
        coro: Async coroutine to run

    Returns:
        Result of the coroutine
    """
    return get_event_loop().run_until_complete(coro)


@asynccontextmanager
async def create_local_session() -> AsyncIterator[AsyncSession]:
    """
    Create a database session bound to the current event loop.

    Uses a throwaway engine without connection pooling, so worker
    threads never share connections.

    Yields:
        AsyncSession
    """
    local_engine = create_engine_from_settings(settings, use_null_pool=True)
    local_session_maker = create_session_maker(local_engine)

    try:
        async with local_session_maker() as session:
            yield session
    finally:
        await local_engine.dispose()
