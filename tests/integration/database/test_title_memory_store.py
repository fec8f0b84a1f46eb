# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for the title memory store.

Runs the store, query builder and pagination against PostgreSQL.
Requires PostgreSQL to be running.
"""

import os
from uuid import uuid4

import pytest

from src.domains.title_memory.query import TitleMemoryFilter, TitleMemoryQueryBuilder
from src.infrastructure.database.connection import DatabaseError
from src.infrastructure.database.store import DuplicateTitleCodeError
from src.utils.pagination import PaginationOptions, paginate

# Skip all tests if database is not available
pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not os.environ.get("TEST_DATABASE_URL"),
        reason="TEST_DATABASE_URL not set",
    ),
]

DELETED_ID = "00000000-0000-0000-0000-0000000000de"


@pytest.fixture
def seeded(store, title_memory_factory):
    """Insert seven active title memories and two deleted ones."""

    async def seed():
        records = [
            title_memory_factory(
                id=str(uuid4()),
                title_code=f"T{n}",
                name=f"Alpha Program {n}",
                year_delivery=2018 + (n % 4),
                user_id="user-1" if n % 2 else "user-2",
            )
            for n in range(7)
        ]
        records.append(
            title_memory_factory(
                id=DELETED_ID,
                title_code="T0",
                name="Alpha Program deleted",
                year_delivery=2019,
                user_id="user-1",
                status="deleted",
            )
        )
        records.append(
            title_memory_factory(
                id=str(uuid4()),
                title_code="GONE",
                name="Alpha Program gone",
                year_delivery=2020,
                status="deleted",
            )
        )
        return await store.insert_many(records)

    return seed


class TestPaginationConsistency:
    """Paging through any filter visits every match exactly once."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [1, 2, 3, 10])
    async def test_page_lengths_sum_to_total(self, store, seeded, limit) -> None:
        await seeded()
        stmt = TitleMemoryQueryBuilder().build()

        first = await paginate(store, stmt, PaginationOptions(page=1, limit=limit))
        seen: list[str] = []
        for page in range(1, first.pagination.total_pages + 1):
            result = await paginate(store, stmt, PaginationOptions(page=page, limit=limit))
            assert result.pagination.total == first.pagination.total
            seen.extend(record.id for record in result.data)

        assert first.pagination.total == 7
        assert len(seen) == 7
        assert len(set(seen)) == 7

    @pytest.mark.asyncio
    async def test_page_past_end_is_empty(self, store, seeded) -> None:
        await seeded()

        result = await paginate(
            store, TitleMemoryQueryBuilder().build(), PaginationOptions(page=5, limit=5)
        )

        assert result.data == []
        assert result.pagination.total == 7

    @pytest.mark.asyncio
    async def test_ordering_newest_year_first(self, store, seeded) -> None:
        await seeded()

        records = await store.find(TitleMemoryQueryBuilder().build())
        keys = [(-record.year_delivery, record.name, record.id) for record in records]

        assert keys == sorted(keys)


class TestSoftDeleteInvisibility:
    """Deleted records never match a query, whatever the filters."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "criteria",
        [
            None,
            TitleMemoryFilter(name="alpha"),
            TitleMemoryFilter(title_code="T0"),
            TitleMemoryFilter(universities=["UPM"], centers=["ETSII"]),
            TitleMemoryFilter(academic_levels=["Grado"], branches=["Engineering"]),
            TitleMemoryFilter(academic_fields=["Computing"]),
            TitleMemoryFilter.from_year_range([2021, 2019]),
            TitleMemoryFilter(ids=[DELETED_ID]),
            TitleMemoryFilter(user_id="user-1"),
            TitleMemoryFilter(name="deleted"),
        ],
    )
    async def test_deleted_records_are_excluded(self, store, seeded, criteria) -> None:
        await seeded()
        stmt = TitleMemoryQueryBuilder().build(criteria)

        records = await store.find(stmt)

        assert all(record.status != "deleted" for record in records)
        assert await store.count(stmt) == len(records)

    @pytest.mark.asyncio
    async def test_deleted_record_is_readable_by_id(self, store, seeded) -> None:
        await seeded()

        record = await store.get_by_id(DELETED_ID)

        assert record is not None
        assert record.is_deleted is True


class TestTitleCodeUniqueness:
    """Tests for the partial unique index on title_code."""

    @pytest.mark.asyncio
    async def test_duplicate_active_code_is_rejected(self, store, seeded, title_memory_factory) -> None:
        await seeded()

        with pytest.raises(DuplicateTitleCodeError):
            await store.insert(title_memory_factory(id=str(uuid4()), title_code="T1"))

    @pytest.mark.asyncio
    async def test_code_of_deleted_record_can_be_reused(self, store, seeded, title_memory_factory) -> None:
        await seeded()

        record = await store.insert(title_memory_factory(id=str(uuid4()), title_code="GONE"))

        assert record.title_code == "GONE"

    @pytest.mark.asyncio
    async def test_insert_many_is_one_transaction(self, store, seeded, title_memory_factory) -> None:
        await seeded()
        batch = [
            title_memory_factory(id=str(uuid4()), title_code="NEW1"),
            title_memory_factory(id=str(uuid4()), title_code="T2"),
        ]

        with pytest.raises(DuplicateTitleCodeError):
            await store.insert_many(batch)

        assert await store.find_active_title_codes(["NEW1"]) == set()

    @pytest.mark.asyncio
    async def test_update_to_taken_code_is_rejected(self, store, seeded) -> None:
        inserted = await seeded()

        with pytest.raises(DuplicateTitleCodeError):
            await store.update_by_id(inserted[0].id, {"title_code": "T1"})

    @pytest.mark.asyncio
    async def test_other_constraint_is_not_a_duplicate_code(self, store, title_memory_factory) -> None:
        with pytest.raises(DatabaseError) as exc_info:
            await store.insert(title_memory_factory(id=str(uuid4()), name=None))

        assert not isinstance(exc_info.value, DuplicateTitleCodeError)

    @pytest.mark.asyncio
    async def test_find_active_title_codes_excludes_record(self, store, seeded) -> None:
        inserted = await seeded()
        first = inserted[0]

        assert await store.find_active_title_codes(["T0", "GONE"]) == {"T0"}
        assert await store.find_active_title_codes(["T0"], exclude_id=first.id) == set()


class TestUpdateById:
    """Tests for update_by_id."""

    @pytest.mark.asyncio
    async def test_updates_columns(self, store, seeded) -> None:
        inserted = await seeded()

        record = await store.update_by_id(
            inserted[0].id,
            {"skills": ["s1", "s2"], "learning_outcomes": [{"o1": ["s2"]}]},
        )

        assert record.skills == ["s1", "s2"]
        assert (await store.get_by_id(inserted[0].id)).learning_outcomes == [{"o1": ["s2"]}]

    @pytest.mark.asyncio
    async def test_missing_record_returns_none(self, store) -> None:
        assert await store.update_by_id(str(uuid4()), {"name": "Renamed"}) is None
