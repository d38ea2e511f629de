"""
Base repository.

Generic data access operations for all ledger repositories.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ledger.models.base import Base

# Generic type for model
ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository with generic data access operations.

    Provides async database operations for any ledger model. Repositories
    never commit; the calling service owns the transaction.

    Type Parameters:
        ModelType: SQLAlchemy model class

    Example:
        class ReferralAccountRepository(BaseRepository[ReferralAccount]):
            def __init__(self, session: AsyncSession):
                super().__init__(ReferralAccount, session)
    """

    def __init__(
        self, model: type[ModelType], session: AsyncSession
    ) -> None:
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get_by_id(self, id: int) -> ModelType | None:
        """
        Get entity by ID, always reloading its state from the database.

        Args:
            id: Entity ID

        Returns:
            Entity or None if not found
        """
        return await self.session.get(
            self.model, id, populate_existing=True
        )

    async def get_by(self, **filters: Any) -> ModelType | None:
        """
        Get single entity by filters.

        Args:
            **filters: Column filters

        Returns:
            Matching entity or None
        """
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_all(
        self,
        limit: int | None = None,
        offset: int | None = None,
        order_by: Any = None,
        **filters: Any,
    ) -> list[ModelType]:
        """
        Find all entities matching filters.

        Args:
            limit: Max number of results
            offset: Number of results to skip
            order_by: Column expression(s) to order by
            **filters: Column filters

        Returns:
            List of matching entities
        """
        stmt = (
            select(self.model)
            .filter_by(**filters)
            .execution_options(populate_existing=True)
        )

        if order_by is not None:
            if isinstance(order_by, (list, tuple)):
                stmt = stmt.order_by(*order_by)
            else:
                stmt = stmt.order_by(order_by)
        if offset:
            stmt = stmt.offset(offset)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **data: Any) -> ModelType:
        """
        Create new entity.

        Args:
            **data: Entity data

        Returns:
            Created entity
        """
        entity = self.model(**data)
        self.session.add(entity)
        await self.session.flush()
        await self.session.refresh(entity)
        return entity

    async def update_where(
        self,
        conditions: list[ColumnElement[bool]],
        **values: Any,
    ) -> int:
        """
        Conditionally update rows in a single statement.

        The check and the write happen in one UPDATE, so two concurrent
        callers can never both pass the same condition.

        Args:
            conditions: WHERE clauses that must all hold
            **values: Column values or SQL expressions to set

        Returns:
            Number of rows updated
        """
        stmt = (
            update(self.model)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def count(self, **filters: Any) -> int:
        """
        Count entities matching filters.

        Args:
            **filters: Column filters

        Returns:
            Count of matching entities
        """
        stmt = select(func.count()).select_from(self.model)

        if filters:
            stmt = stmt.filter_by(**filters)

        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def exists(self, **filters: Any) -> bool:
        """
        Check if entity exists.

        Args:
            **filters: Column filters

        Returns:
            True if exists, False otherwise
        """
        count = await self.count(**filters)
        return count > 0
