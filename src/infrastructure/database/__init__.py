# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL connections.

This package provides the SQLAlchemy async engine lifecycle and the
title memory store.

Example:
    from src.infrastructure.database import init_database, get_sessionmaker
    from src.infrastructure.database import TitleMemoryStore

    await init_database(settings)
    store = TitleMemoryStore(get_sessionmaker())
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    check_database_connection,
    close_database,
    create_schema,
    get_engine,
    get_sessionmaker,
    init_database,
)
from src.infrastructure.database.store import DuplicateTitleCodeError, TitleMemoryStore

__all__ = [
    "DatabaseError",
    "DuplicateTitleCodeError",
    "TitleMemoryStore",
    "check_database_connection",
    "close_database",
    "create_schema",
    "get_engine",
    "get_sessionmaker",
    "init_database",
]
