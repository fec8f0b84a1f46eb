# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title memory query construction.

TitleMemoryFilter holds the optional constraints of a listing or search.
TitleMemoryQueryBuilder turns one into a SQLAlchemy select that:

- always excludes records whose status is "deleted"
- ANDs every supplied constraint
- orders by year_delivery DESC, name ASC, id ASC
"""

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import Select, false, select

from src.infrastructure.database.models import DELETED_STATUS, TitleMemory

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", f"{LIKE_ESCAPE}%")
        .replace("_", f"{LIKE_ESCAPE}_")
    )


@dataclass
class TitleMemoryFilter:
    """Optional constraints over title memories. None means unconstrained.

    Attributes:
        name: Case-insensitive substring of the program name.
        title_code: Exact title code.
        universities: Any-of match against the record's universities.
        centers: Any-of match against the record's centers.
        academic_levels: Allowed academic levels.
        branches: Allowed branches.
        academic_fields: Allowed academic fields.
        year_from: Inclusive lower bound on year_delivery.
        year_to: Inclusive upper bound on year_delivery.
        ids: Allow-list of record ids; an empty list matches nothing.
        user_id: Owner of the record.
    """

    name: str | None = None
    title_code: str | None = None
    universities: list[str] | None = None
    centers: list[str] | None = None
    academic_levels: list[str] | None = None
    branches: list[str] | None = None
    academic_fields: list[str] | None = None
    year_from: int | None = None
    year_to: int | None = None
    ids: list[str] | None = None
    user_id: str | None = None

    @staticmethod
    def year_bounds(years: Sequence[int] | None) -> tuple[int | None, int | None]:
        """Normalize a two-year range given in any order.

        Anything other than exactly two years means no year constraint.

        Example:
            >>> TitleMemoryFilter.year_bounds([2021, 2019])
            (2019, 2021)
        """
        if years is None or len(years) != 2:
            return None, None
        return min(years), max(years)

    @classmethod
    def from_year_range(cls, years: Sequence[int] | None, **constraints) -> "TitleMemoryFilter":
        """Build a filter whose year bounds come from a [from, to] pair."""
        year_from, year_to = cls.year_bounds(years)
        return cls(year_from=year_from, year_to=year_to, **constraints)


class TitleMemoryQueryBuilder:
    """Builds ordered selects over non-deleted title memories."""

    def build(self, criteria: TitleMemoryFilter | None = None) -> Select[tuple[TitleMemory]]:
        criteria = criteria or TitleMemoryFilter()
        stmt = select(TitleMemory).where(TitleMemory.status != DELETED_STATUS)

        if criteria.name:
            stmt = stmt.where(
                TitleMemory.name.ilike(f"%{escape_like(criteria.name)}%", escape=LIKE_ESCAPE)
            )
        if criteria.title_code:
            stmt = stmt.where(TitleMemory.title_code == criteria.title_code)
        if criteria.universities:
            stmt = stmt.where(TitleMemory.universities.overlap(criteria.universities))
        if criteria.centers:
            stmt = stmt.where(TitleMemory.centers.overlap(criteria.centers))
        if criteria.academic_levels:
            stmt = stmt.where(TitleMemory.academic_level.in_(criteria.academic_levels))
        if criteria.branches:
            stmt = stmt.where(TitleMemory.branch.in_(criteria.branches))
        if criteria.academic_fields:
            stmt = stmt.where(TitleMemory.academic_field.in_(criteria.academic_fields))
        if criteria.year_from is not None:
            stmt = stmt.where(TitleMemory.year_delivery >= criteria.year_from)
        if criteria.year_to is not None:
            stmt = stmt.where(TitleMemory.year_delivery <= criteria.year_to)
        if criteria.ids is not None:
            stmt = stmt.where(TitleMemory.id.in_(criteria.ids) if criteria.ids else false())
        if criteria.user_id is not None:
            stmt = stmt.where(TitleMemory.user_id == criteria.user_id)

        return stmt.order_by(
            TitleMemory.year_delivery.desc(),
            TitleMemory.name.asc(),
            TitleMemory.id.asc(),
        )
