# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy ORM models."""

from src.infrastructure.database.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from src.infrastructure.database.models.title_memory import (
    DELETED_STATUS,
    TITLE_CODE_UNIQUE_INDEX,
    TitleMemory,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "DELETED_STATUS",
    "TITLE_CODE_UNIQUE_INDEX",
    "TitleMemory",
]
