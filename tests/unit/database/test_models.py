# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for database models.

Tests model definitions, indexes, and helper properties.
"""

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.infrastructure.database.models.title_memory import DELETED_STATUS, TitleMemory


class TestBase:
    """Test base model functionality."""

    def test_base_inherits_declarative_base(self):
        """Verify Base is a declarative base."""
        assert hasattr(Base, "metadata")
        assert hasattr(Base, "registry")

    def test_timestamp_mixin_has_timestamps(self):
        """Verify TimestampMixin has created_at and updated_at."""
        assert hasattr(TimestampMixin, "created_at")
        assert hasattr(TimestampMixin, "updated_at")

    def test_uuid_mixin_has_id(self):
        """Verify UUIDPrimaryKeyMixin provides the primary key."""
        assert hasattr(UUIDPrimaryKeyMixin, "id")


class TestTitleMemoryModel:
    """Test the title memory model."""

    def test_table_name(self):
        """Verify the table name."""
        assert TitleMemory.__tablename__ == "title_memories"
        assert "title_memories" in Base.metadata.tables

    def test_columns(self):
        """Verify every record field is mapped."""
        columns = set(TitleMemory.__table__.columns.keys())

        assert {
            "id",
            "title_code",
            "universities",
            "centers",
            "name",
            "academic_level",
            "branch",
            "academic_field",
            "status",
            "year_delivery",
            "total_credits",
            "distributed_credits",
            "skills",
            "learning_outcomes",
            "user_id",
            "created_at",
            "updated_at",
        } <= columns

    def test_id_is_primary_key(self):
        """Verify id is the only primary key column."""
        primary_key = [column.name for column in TitleMemory.__table__.primary_key.columns]

        assert primary_key == ["id"]

    def test_title_code_unique_only_among_active_records(self):
        """Verify the partial unique index on title_code."""
        indexes = {index.name: index for index in TitleMemory.__table__.indexes}
        index = indexes["uq_title_memories_title_code_active"]

        assert index.unique is True
        assert [column.name for column in index.columns] == ["title_code"]
        assert DELETED_STATUS in str(index.dialect_options["postgresql"]["where"])

    def test_is_deleted(self):
        """Verify is_deleted follows status."""
        assert TitleMemory(status=DELETED_STATUS).is_deleted is True
        assert TitleMemory(status="active").is_deleted is False

    def test_outcome_ids_in_stored_order(self):
        """Verify outcome_ids lists mapping keys in order."""
        record = TitleMemory(learning_outcomes=[{"o2": ["s1"]}, {"o1": []}, {}])

        assert record.outcome_ids == ["o2", "o1"]

    def test_outcome_ids_when_unset(self):
        """Verify outcome_ids tolerates a record without outcomes."""
        assert TitleMemory().outcome_ids == []

    def test_repr(self):
        """Verify repr shows the title code and status."""
        assert repr(TitleMemory(title_code="2501", status="active")) == "<TitleMemory 2501 (active)>"
