"""
Base service class.

Provides common functionality for all ledger services including session
management, logging, event collection and the transaction decorator.
"""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.services.events import LedgerEvent, LedgerEventType
from ledger.utils.exceptions import must_log


# Type variable for generic decorator return types
T = TypeVar("T")


class BaseService:
    """
    Base service class.

    Provides common functionality for all service classes:
    - Session management
    - Logging with bound service context
    - Collection of events to publish after commit
    """

    def __init__(
        self,
        session: AsyncSession,
        events: list[LedgerEvent] | None = None,
    ) -> None:
        """
        Initialize base service.

        Args:
            session: Async database session
            events: Event queue shared with a parent facade
        """
        self.session = session
        self.logger = logger.bind(service=self.__class__.__name__)
        self.events: list[LedgerEvent] = events if events is not None else []

    async def commit(self) -> None:
        """Commit current transaction."""
        await self.session.commit()

    async def rollback(self) -> None:
        """Rollback current transaction."""
        await self.session.rollback()

    def emit(
        self,
        event_type: LedgerEventType,
        owner_id: str,
        amount: int | None = None,
        reference_id: int | None = None,
        **payload: Any,
    ) -> None:
        """Queue an event; it is published only if the transaction commits."""
        self.events.append(
            LedgerEvent(
                type=event_type,
                owner_id=owner_id,
                amount=amount,
                reference_id=reference_id,
                payload=payload,
            )
        )


def transaction(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator to wrap method in transaction with automatic commit/rollback.

    Commits on success. On any exception rolls back, drops the events
    queued by the call and re-raises. Domain errors are logged as
    warnings; anything else is logged with its traceback.

    Usage:
        @transaction
        async def my_service_method(self, ...):
            # Your code here
            pass

    Args:
        func: Async method to wrap

    Returns:
        Wrapped async method
    """
    @functools.wraps(func)
    async def wrapper(self: BaseService, *args: Any, **kwargs: Any) -> Any:
        queued = len(self.events)
        try:
            result = await func(self, *args, **kwargs)
            await self.commit()
            return result
        except Exception as e:
            await self.rollback()
            del self.events[queued:]
            if must_log(e):
                self.logger.opt(exception=e).error(
                    f"Transaction failed in {func.__name__}",
                    extra={
                        "error": str(e),
                        "function": func.__name__,
                    },
                )
            else:
                self.logger.warning(
                    f"Rejected {func.__name__}",
                    extra={
                        "function": func.__name__,
                        "error_code": getattr(e, "error_code", None),
                        "error": str(e),
                    },
                )
            raise

    return wrapper
