# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Page/limit windowing over store queries.

The page fetch and the total count are independent reads of the same
filter, so they run concurrently.

Example:
    >>> options = PaginationOptions.from_raw(page="2", limit="10")
    >>> result = await paginate(store, stmt, options)
    >>> result.pagination.total_pages
    3
"""

import asyncio
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import Select

if TYPE_CHECKING:
    from src.infrastructure.database.store import TitleMemoryStore

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PaginationOptions:
    """Requested page window.

    Attributes:
        page: 1-based page number.
        limit: Page size.
    """

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        """Number of matching records before this page."""
        return (self.page - 1) * self.limit

    @classmethod
    def from_raw(
        cls,
        page: Any = None,
        limit: Any = None,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> "PaginationOptions":
        """Coerce caller input into a valid window.

        Missing or empty values take the defaults. Values below 1 are raised
        to 1 and limit is capped at max_limit.

        Args:
            page: Raw page value (int or numeric string).
            limit: Raw limit value (int or numeric string).
            default_limit: Limit used when none is given.
            max_limit: Upper bound for limit.

        Raises:
            ValueError: If a value is not an integer.
        """
        page_value = DEFAULT_PAGE if page in (None, "") else int(page)
        limit_value = default_limit if limit in (None, "") else int(limit)
        return cls(
            page=max(page_value, 1),
            limit=min(max(limit_value, 1), max_limit),
        )


@dataclass(frozen=True)
class PaginationMeta:
    """Pagination block of a paginated result."""

    total: int
    page: int
    limit: int
    total_pages: int


@dataclass
class PaginatedResult(Generic[T]):
    """One page of records plus totals for the whole matching set."""

    data: list[T] = field(default_factory=list)
    pagination: PaginationMeta = field(
        default_factory=lambda: PaginationMeta(total=0, page=DEFAULT_PAGE, limit=DEFAULT_LIMIT, total_pages=0)
    )


async def paginate(
    store: "TitleMemoryStore",
    stmt: Select,
    options: PaginationOptions,
) -> PaginatedResult:
    """Fetch one page of a query and the total count of its matches.

    Args:
        store: Store executing the statement.
        stmt: Filtered and ordered select.
        options: Page window.

    Returns:
        The page's records with pagination totals.
    """
    data, total = await asyncio.gather(
        store.find(stmt, offset=options.skip, limit=options.limit),
        store.count(stmt),
    )

    return PaginatedResult(
        data=data,
        pagination=PaginationMeta(
            total=total,
            page=options.page,
            limit=options.limit,
            total_pages=math.ceil(total / options.limit),
        ),
    )
