# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title memory ORM model.

A title memory is the accreditation record of an academic program. Skills
and learning outcomes are owned by the competency catalog; the record only
stores their durable identifiers:

- skills: ["skill-id", ...]
- learning_outcomes: [{"outcome-id": ["skill-id", ...]}, ...]

Records are never physically deleted. Deletion sets status to "deleted".
"""

from typing import Any

from sqlalchemy import Index, Integer, String, text
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

DELETED_STATUS = "deleted"
TITLE_CODE_UNIQUE_INDEX = "uq_title_memories_title_code_active"


class TitleMemory(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    """Accreditation record of an academic program."""

    __tablename__ = "title_memories"

    title_code: Mapped[str] = mapped_column(String(50), nullable=False)
    universities: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    centers: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    academic_level: Mapped[str] = mapped_column(String(100), nullable=False)
    branch: Mapped[str] = mapped_column(String(100), nullable=False)
    academic_field: Mapped[str] = mapped_column(String(150), nullable=False)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    year_delivery: Mapped[int] = mapped_column(Integer, nullable=False)
    total_credits: Mapped[int] = mapped_column(Integer, nullable=False)
    distributed_credits: Mapped[dict[str, int]] = mapped_column(JSONB, nullable=False, default=dict)
    skills: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False, default=list)
    learning_outcomes: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, default=list
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    __table_args__ = (
        Index("ix_title_memories_year_name", "year_delivery", "name"),
        Index("ix_title_memories_status", "status"),
        # titleCode is unique among records that are not deleted
        Index(
            TITLE_CODE_UNIQUE_INDEX,
            "title_code",
            unique=True,
            postgresql_where=text(f"status <> '{DELETED_STATUS}'"),
        ),
    )

    @property
    def is_deleted(self) -> bool:
        """Whether the record has been logically deleted."""
        return self.status == DELETED_STATUS

    @property
    def outcome_ids(self) -> list[str]:
        """Learning outcome identifiers, in stored order."""
        return [next(iter(outcome)) for outcome in self.learning_outcomes or [] if outcome]

    def __repr__(self) -> str:
        return f"<TitleMemory {self.title_code} ({self.status})>"
