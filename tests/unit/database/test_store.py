# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the title memory store.

Sessions are mocked; statements and error mapping are checked without a
database.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from src.domains.title_memory.query import TitleMemoryFilter, TitleMemoryQueryBuilder
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.models import TITLE_CODE_UNIQUE_INDEX
from src.infrastructure.database.store import DuplicateTitleCodeError, TitleMemoryStore


class ConstraintViolation(Exception):
    """Driver error carrying the violated constraint name."""

    def __init__(self, message: str, constraint_name: str | None = None) -> None:
        super().__init__(message)
        self.constraint_name = constraint_name


@pytest.fixture
def session():
    """Create mock async session."""
    session = MagicMock()
    session.commit = AsyncMock()
    session.refresh = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    return session


@pytest.fixture
def store(session) -> TitleMemoryStore:
    """Create store over a sessionmaker yielding the mock session."""
    sessionmaker = MagicMock()
    sessionmaker.return_value.__aenter__.return_value = session
    return TitleMemoryStore(sessionmaker)


def integrity_error(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO title_memories ...", {}, orig)


class TestIntegrityErrorMapping:
    """Tests for mapping constraint violations to store errors."""

    @pytest.mark.asyncio
    async def test_title_code_index_by_constraint_name(self, store, session, title_memory_factory) -> None:
        session.commit.side_effect = integrity_error(
            ConstraintViolation("duplicate key", constraint_name=TITLE_CODE_UNIQUE_INDEX)
        )

        with pytest.raises(DuplicateTitleCodeError):
            await store.insert(title_memory_factory())

    @pytest.mark.asyncio
    async def test_title_code_index_by_message(self, store, session, title_memory_factory) -> None:
        session.commit.side_effect = integrity_error(
            Exception(f'duplicate key value violates unique constraint "{TITLE_CODE_UNIQUE_INDEX}"')
        )

        with pytest.raises(DuplicateTitleCodeError):
            await store.insert_many([title_memory_factory()])

    @pytest.mark.asyncio
    async def test_chained_driver_error(self, store, session, title_memory_factory) -> None:
        adapter_error = Exception("adapter")
        adapter_error.__cause__ = ConstraintViolation("duplicate key", TITLE_CODE_UNIQUE_INDEX)
        session.commit.side_effect = integrity_error(adapter_error)

        with pytest.raises(DuplicateTitleCodeError):
            await store.insert(title_memory_factory())

    @pytest.mark.asyncio
    async def test_not_null_violation_is_database_error(self, store, session, title_memory_factory) -> None:
        session.commit.side_effect = integrity_error(
            ConstraintViolation('null value in column "name" violates not-null constraint')
        )

        with pytest.raises(DatabaseError) as exc_info:
            await store.insert(title_memory_factory())

        assert not isinstance(exc_info.value, DuplicateTitleCodeError)

    @pytest.mark.asyncio
    async def test_other_constraint_on_update_is_database_error(
        self, store, session, title_memory_factory
    ) -> None:
        session.get.return_value = title_memory_factory()
        session.commit.side_effect = integrity_error(
            ConstraintViolation("violates check constraint", constraint_name="ck_other")
        )

        with pytest.raises(DatabaseError) as exc_info:
            await store.update_by_id("tm-1", {"total_credits": -1})

        assert not isinstance(exc_info.value, DuplicateTitleCodeError)


class TestCount:
    """Tests for count()."""

    @pytest.mark.asyncio
    async def test_counts_filtered_rows_without_order_or_window(self, store, session) -> None:
        result = MagicMock()
        result.scalar.return_value = 7
        session.execute.return_value = result
        stmt = TitleMemoryQueryBuilder().build(TitleMemoryFilter(name="Alpha")).limit(5).offset(10)

        assert await store.count(stmt) == 7

        sql = str(session.execute.await_args.args[0].compile(dialect=postgresql.dialect()))
        assert sql.startswith("SELECT count(*)")
        assert "ILIKE" in sql
        assert "ORDER BY" not in sql
        assert "LIMIT" not in sql
        assert "OFFSET" not in sql
