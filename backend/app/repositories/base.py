"""Repository base (storage collaborator).

Repositories are the only layer permitted to talk to the database.
- Accepts Session or AsyncSession; every round-trip is an awaitable method.
- A single-record miss is returned as None, never raised.
- SQLAlchemy errors roll the session back and surface as StorageFailure
  (transient for connection-level errors). Nothing is retried here.
- Updates are single UPDATE statements, optionally guarded by extra
  criteria, so a reader never observes a partially applied patch.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, Optional, Sequence, TypeVar, Union, cast

from sqlalchemy import delete, insert, select, update
from sqlalchemy.engine import Result
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session
from sqlalchemy.sql import ColumnElement, Executable

from app.core.base import Base, new_id
from domain.core.errors import StorageFailure


logger = logging.getLogger(__name__)

SessionLike = Union[Session, AsyncSession]
T = TypeVar("T", bound=Base)


class BaseRepository(Generic[T]):
    """Generic CRUD over one mapped model."""

    model: type[T]

    def __init__(self, session: SessionLike) -> None:
        self._session: SessionLike = session

    def _sync_session(self) -> Session:
        if isinstance(self._session, AsyncSession):
            return cast(Session, self._session.sync_session)
        return cast(Session, self._session)

    async def _rollback(self) -> None:
        if isinstance(self._session, AsyncSession):
            await self._session.rollback()
        else:
            self._sync_session().rollback()

    async def _execute(self, stmt: Executable, *, params: Optional[dict[str, Any]] = None) -> Result[Any]:
        try:
            if isinstance(self._session, AsyncSession):
                return await self._session.execute(stmt, params or {})
            # NOTE: In async contexts a sync session blocks the loop for the
            # duration of the call; the repository stays transport-agnostic.
            return self._sync_session().execute(stmt, params or {})
        except SQLAlchemyError as e:
            await self._rollback()
            logger.warning("Storage error on %s: %s", self.model.__tablename__, e.__class__.__name__)
            raise StorageFailure(
                f"Storage error on {self.model.__tablename__}: {e}",
                transient=isinstance(e, OperationalError),
                cause=e,
            ) from e

    async def _commit(self) -> None:
        try:
            if isinstance(self._session, AsyncSession):
                await self._session.commit()
            else:
                self._sync_session().commit()
        except SQLAlchemyError as e:
            await self._rollback()
            raise StorageFailure(
                f"Storage commit failed on {self.model.__tablename__}: {e}",
                transient=isinstance(e, OperationalError),
                cause=e,
            ) from e

    async def get_by_id(self, record_id: str) -> Optional[T]:
        stmt = select(self.model).where(self.model.id == record_id).execution_options(populate_existing=True)
        return (await self._execute(stmt)).scalars().first()

    async def query(
        self,
        *criteria: ColumnElement[bool],
        order_by: Sequence[Any] = (),
        limit: Optional[int] = None,
    ) -> list[T]:
        stmt = select(self.model).where(*criteria).execution_options(populate_existing=True)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self._execute(stmt)).scalars().all())

    async def insert(self, values: dict[str, Any]) -> T:
        record = dict(values)
        if not record.get("id"):
            record["id"] = new_id()
        await self._execute(insert(self.model).values(**record))
        await self._commit()
        row = await self.get_by_id(record["id"])
        if row is None:
            raise StorageFailure(f"Inserted {self.model.__tablename__} row '{record['id']}' could not be read back.")
        return row

    async def update(self, record_id: str, patch: dict[str, Any], *criteria: ColumnElement[bool]) -> Optional[T]:
        """Apply `patch` in one statement; None when no row matched id + criteria."""
        stmt = (
            update(self.model)
            .where(self.model.id == record_id, *criteria)
            .values(**patch)
            .execution_options(synchronize_session=False)
        )
        result = await self._execute(stmt)
        await self._commit()
        if not result.rowcount:
            return None
        return await self.get_by_id(record_id)

    async def delete(self, record_id: str) -> Optional[T]:
        row = await self.get_by_id(record_id)
        if row is None:
            return None
        await self._execute(
            delete(self.model).where(self.model.id == record_id).execution_options(synchronize_session=False)
        )
        await self._commit()
        return row
