# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- pagination: Page/limit windowing over store queries
"""

from src.utils.logging import bind_context, clear_context, setup_logging
from src.utils.pagination import PaginatedResult, PaginationMeta, PaginationOptions, paginate

__all__ = [
    # Logging
    "setup_logging",
    "bind_context",
    "clear_context",
    # Pagination
    "PaginationOptions",
    "PaginationMeta",
    "PaginatedResult",
    "paginate",
]
