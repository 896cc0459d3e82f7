"""
WriterID Portal Backend — Generic Repository & Unit of Work
============================================================

What:  A typed repository per entity plus a unit of work that groups them
       over one AsyncSession.
How:   Every read goes through `_active_clause()`, so soft-deleted rows are
       hidden from all listings and lookups unless a caller explicitly asks
       for `include_inactive=True`. Writes are staged in the session and
       made durable by `UnitOfWork.commit()`. A failed flush or commit is
       rolled back and surfaces as DatabaseError (500, details logged only).
Who:   Services receive a UnitOfWork per call; routes obtain one through
       `dependencies.get_unit_of_work`.

Example:
    uow = UnitOfWork(session)
    datasets = await uow.datasets.find(Dataset.user_id == user_id)
    dataset.name = "renamed"
    await uow.datasets.update(dataset)
    await uow.commit()
"""

import logging
import uuid
from typing import Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import ColumnElement, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from writerid_portal.exceptions import DatabaseError
from writerid_portal.models import Dataset, Task, User, WriterModel
from writerid_portal.models.mixins import EntityMixin, utcnow

EntityT = TypeVar("EntityT", bound=EntityMixin)

logger = logging.getLogger(__name__)


async def _write(session: AsyncSession, operation: str, action) -> None:
    """Runs a flush or commit, rolling back and raising DatabaseError if it fails."""
    try:
        await action()
    except SQLAlchemyError as e:
        logger.error("Database %s failed: %s", operation, str(e), exc_info=True)
        await session.rollback()
        raise DatabaseError(
            context={"operation": operation, "error_type": type(e).__name__},
        ) from e


class GenericRepository(Generic[EntityT]):
    """CRUD plus predicate queries for one entity type."""

    def __init__(self, session: AsyncSession, entity_type: Type[EntityT]):
        self.session = session
        self.entity_type = entity_type

    def _active_clause(self) -> ColumnElement[bool]:
        return self.entity_type.is_active.is_(True)

    def _where(self, predicates: Sequence[Any], include_inactive: bool) -> List[Any]:
        clauses = list(predicates)
        if not include_inactive:
            clauses.append(self._active_clause())
        return clauses

    async def get_by_id(
        self,
        entity_id: uuid.UUID,
        include_inactive: bool = False,
    ) -> Optional[EntityT]:
        """Returns the entity, or None when it is missing (or inactive)."""
        return await self.first_or_default(
            self.entity_type.id == entity_id,
            include_inactive=include_inactive,
        )

    async def find(
        self,
        *predicates: Any,
        include_inactive: bool = False,
        order_by: Optional[Any] = None,
    ) -> List[EntityT]:
        stmt = select(self.entity_type).where(*self._where(predicates, include_inactive))
        stmt = stmt.order_by(order_by if order_by is not None else self.entity_type.created_at.desc())
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def first_or_default(
        self,
        *predicates: Any,
        include_inactive: bool = False,
    ) -> Optional[EntityT]:
        stmt = (
            select(self.entity_type)
            .where(*self._where(predicates, include_inactive))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def count(self, *predicates: Any, include_inactive: bool = False) -> int:
        stmt = (
            select(func.count())
            .select_from(self.entity_type)
            .where(*self._where(predicates, include_inactive))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def add(self, entity: EntityT) -> EntityT:
        """Stages a new entity and flushes so defaults (id, timestamps) are populated."""
        self.session.add(entity)
        await _write(self.session, "flush", self.session.flush)
        return entity

    async def update(self, entity: EntityT) -> EntityT:
        entity.updated_at = utcnow()
        self.session.add(entity)
        await _write(self.session, "flush", self.session.flush)
        return entity

    async def soft_delete(self, entity: EntityT) -> EntityT:
        entity.is_active = False
        return await self.update(entity)


class UnitOfWork:
    """
    Transactional boundary over one AsyncSession.

    Exposes one repository per portal entity. `commit()` persists every
    staged change; `rollback()` discards them.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users: GenericRepository[User] = GenericRepository(session, User)
        self.datasets: GenericRepository[Dataset] = GenericRepository(session, Dataset)
        self.models: GenericRepository[WriterModel] = GenericRepository(session, WriterModel)
        self.tasks: GenericRepository[Task] = GenericRepository(session, Task)

    def repository(self, entity_type: Type[EntityT]) -> GenericRepository[EntityT]:
        return GenericRepository(self.session, entity_type)

    async def commit(self) -> None:
        await _write(self.session, "commit", self.session.commit)

    async def rollback(self) -> None:
        await self.session.rollback()
