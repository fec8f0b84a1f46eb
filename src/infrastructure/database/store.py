# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title memory persistent store.

The store is a small collection-style facade over the title_memories
table: filtered find, count, insert, insert-many, find-by-id and
update-by-id. Every operation opens its own session, so independent reads
(a page fetch and its total count) can run concurrently.

Query construction lives in src.domains.title_memory.query; the store only
executes the statements it is given.

Example:
    >>> store = TitleMemoryStore(get_sessionmaker())
    >>> records = await store.find(stmt, offset=0, limit=10)
    >>> total = await store.count(stmt)
"""

import logging
from typing import Any, Sequence

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models import DELETED_STATUS, TITLE_CODE_UNIQUE_INDEX, TitleMemory

logger = logging.getLogger(__name__)


class DuplicateTitleCodeError(DatabaseError):
    """Raised when an insert or update collides with an active titleCode."""

    pass


def _violated_constraint(error: IntegrityError) -> str | None:
    """Name of the constraint behind an IntegrityError, if the driver reports it."""
    # asyncpg errors are chained behind the DBAPI adapter exception
    for candidate in (error.orig, getattr(error.orig, "__cause__", None)):
        name = getattr(candidate, "constraint_name", None)
        if name:
            return name
    return None


def _integrity_error(error: IntegrityError, message: str) -> DatabaseError:
    constraint = _violated_constraint(error)
    if constraint == TITLE_CODE_UNIQUE_INDEX or (
        constraint is None and TITLE_CODE_UNIQUE_INDEX in str(error.orig)
    ):
        return DuplicateTitleCodeError("Title code already exists", error)
    logger.error("%s: %s", message, str(error.orig))
    return DatabaseError(message, error)


class TitleMemoryStore:
    """Collection-style access to title memory rows.

    Attributes:
        _sessionmaker: Factory for per-operation async sessions.
    """

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]) -> None:
        self._sessionmaker = sessionmaker

    async def find(
        self,
        stmt: Select[tuple[TitleMemory]],
        offset: int = 0,
        limit: int | None = None,
    ) -> list[TitleMemory]:
        """Execute a select and return one window of records.

        Args:
            stmt: Filtered and ordered select over TitleMemory.
            offset: Number of matching rows to skip.
            limit: Maximum rows to return (None for all).

        Returns:
            Matching records in statement order.
        """
        windowed = stmt.offset(offset)
        if limit is not None:
            windowed = windowed.limit(limit)

        try:
            async with self._sessionmaker() as session:
                result = await session.execute(windowed)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to query title memories", e) from e

    async def count(self, stmt: Select[tuple[TitleMemory]]) -> int:
        """Count rows matching a select, ignoring its ordering and window."""
        count_stmt = select(func.count()).select_from(
            stmt.order_by(None).limit(None).offset(None).subquery()
        )
        try:
            async with self._sessionmaker() as session:
                result = await session.execute(count_stmt)
                return result.scalar() or 0
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to count title memories", e) from e

    async def get_by_id(self, title_memory_id: str) -> TitleMemory | None:
        """Fetch a record by id, deleted or not."""
        try:
            async with self._sessionmaker() as session:
                return await session.get(TitleMemory, title_memory_id)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to load title memory {title_memory_id}", e) from e

    async def insert(self, record: TitleMemory) -> TitleMemory:
        """Persist one new record and return it with store-maintained fields."""
        inserted = await self.insert_many([record])
        return inserted[0]

    async def insert_many(self, records: Sequence[TitleMemory]) -> list[TitleMemory]:
        """Persist several records in a single transaction.

        Raises:
            DuplicateTitleCodeError: If a titleCode is already in use.
            DatabaseError: For any other database failure.
        """
        try:
            async with self._sessionmaker() as session:
                session.add_all(records)
                await session.commit()
                for record in records:
                    await session.refresh(record)
        except IntegrityError as e:
            raise _integrity_error(e, "Failed to insert title memories") from e
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to insert title memories", e) from e

        logger.debug("Inserted %d title memories", len(records))
        return list(records)

    async def update_by_id(
        self,
        title_memory_id: str,
        values: dict[str, Any],
    ) -> TitleMemory | None:
        """Apply column values to a record.

        Args:
            title_memory_id: Record identifier.
            values: Column name to new value.

        Returns:
            The updated record, or None if it does not exist.
        """
        try:
            async with self._sessionmaker() as session:
                record = await session.get(TitleMemory, title_memory_id)
                if record is None:
                    return None
                for column, value in values.items():
                    setattr(record, column, value)
                await session.commit()
                await session.refresh(record)
                return record
        except IntegrityError as e:
            raise _integrity_error(e, f"Failed to update title memory {title_memory_id}") from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to update title memory {title_memory_id}", e) from e

    async def find_active_title_codes(
        self,
        title_codes: Sequence[str],
        exclude_id: str | None = None,
    ) -> set[str]:
        """Return which of the given codes belong to non-deleted records."""
        if not title_codes:
            return set()

        stmt = select(TitleMemory.title_code).where(
            TitleMemory.title_code.in_(list(title_codes)),
            TitleMemory.status != DELETED_STATUS,
        )
        if exclude_id is not None:
            stmt = stmt.where(TitleMemory.id != exclude_id)

        try:
            async with self._sessionmaker() as session:
                result = await session.execute(stmt)
                return set(result.scalars().all())
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to check title codes", e) from e
