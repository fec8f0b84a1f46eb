# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title memory service.

This module provides the TitleMemoryService that handles:
- Listing, search and pagination of non-deleted title memories
- Creation through the competency merge pipeline (single and bulk)
- Partial updates with competency drift detection and subject cascade
- Soft deletion
- Ownership, skill and learning outcome membership checks
- Bulk import from JSON files

Example:
    >>> service = TitleMemoryService(store, catalog, subjects, permissions)
    >>> record = await service.create(request, owner_user_id="u-1")
    >>> page = await service.list_all(PaginationOptions(page=1, limit=10))
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Any, Literal, Sequence

from src.domains.title_memory.drift import CascadeStatus, CascadeTrigger, DriftDetector
from src.domains.title_memory.exceptions import (
    AuthenticationRequiredError,
    TitleCodeExistsError,
    TitleMemoryNotFoundError,
    TitleMemoryValidationError,
)
from src.domains.title_memory.importer import TitleMemoryImporter
from src.domains.title_memory.merge import (
    CompetencyMergeEngine,
    CompetencySubmission,
    MergedCompetencies,
)
from src.domains.title_memory.query import TitleMemoryFilter, TitleMemoryQueryBuilder
from src.infrastructure.database.models import DELETED_STATUS, TitleMemory
from src.infrastructure.database.store import DuplicateTitleCodeError, TitleMemoryStore
from src.models.title_memory import (
    ImportFile,
    SearchRequest,
    TitleMemoryCreate,
    TitleMemoryUpdate,
)
from src.services.competency_catalog import CompetencyCatalogClient
from src.services.permissions import PermissionsClient
from src.services.subjects import SubjectStatusClient
from src.utils.pagination import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    PaginatedResult,
    PaginationOptions,
    paginate,
)

logger = logging.getLogger(__name__)

COMPETENCY_FIELDS = frozenset(
    {"existing_skills", "skills", "existing_learning_outcomes", "learning_outcomes"}
)


@dataclass(frozen=True)
class Caller:
    """Authenticated caller of an operation.

    Attributes:
        user_id: Identifier issued by the identity service.
        token: Bearer token, forwarded to downstream services.
    """

    user_id: str
    token: str


@dataclass
class UpdateResult:
    """Updated record plus what happened to the subject cascade."""

    record: TitleMemory
    cascade_status: CascadeStatus


class TitleMemoryService:
    """Service for managing title memories.

    Records are created and updated through the competency merge pipeline
    so that stored skill and outcome references are always durable catalog
    ids. Deletion is logical; deleted records disappear from listings and
    searches but stay readable by id.

    Attributes:
        _store: Persistent store.
        _permissions: Permissions service client.
        _merge_engine: Competency merge engine.
        _drift_detector: Competency drift detector.
        _cascade: Subject status cascade trigger.
        _query_builder: Listing and search query builder.
        _importer: Import file parser.
    """

    def __init__(
        self,
        store: TitleMemoryStore,
        catalog: CompetencyCatalogClient,
        subjects: SubjectStatusClient,
        permissions: PermissionsClient,
        cascade_mode: Literal["await", "background"] = "await",
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        """Initialize the title memory service.

        Args:
            store: Persistent store.
            catalog: Skills service client.
            subjects: Subjects service client.
            permissions: Permissions service client.
            cascade_mode: Whether subject cascades are awaited or scheduled.
            default_limit: Page size when the caller gives none.
            max_limit: Largest page size a caller may request.
        """
        self._store = store
        self._permissions = permissions
        self._merge_engine = CompetencyMergeEngine(catalog)
        self._drift_detector = DriftDetector()
        self._cascade = CascadeTrigger(subjects, mode=cascade_mode)
        self._query_builder = TitleMemoryQueryBuilder()
        self._importer = TitleMemoryImporter()
        self._default_limit = default_limit
        self._max_limit = max_limit

    def pagination_options(self, page: Any = None, limit: Any = None) -> PaginationOptions:
        """Clamp caller page and limit into a valid window."""
        return PaginationOptions.from_raw(
            page,
            limit,
            default_limit=self._default_limit,
            max_limit=self._max_limit,
        )

    async def list_all(self, pagination: PaginationOptions) -> PaginatedResult[TitleMemory]:
        """List every non-deleted title memory, newest delivery year first."""
        stmt = self._query_builder.build()
        return await paginate(self._store, stmt, pagination)

    async def list_by_user(
        self,
        user_id: str,
        pagination: PaginationOptions,
    ) -> PaginatedResult[TitleMemory]:
        """List the non-deleted title memories owned by a user."""
        stmt = self._query_builder.build(TitleMemoryFilter(user_id=user_id))
        return await paginate(self._store, stmt, pagination)

    async def get_by_id(self, title_memory_id: str) -> TitleMemory:
        """Get a title memory by id, including deleted ones.

        Raises:
            TitleMemoryNotFoundError: If no record has this id.
        """
        record = await self._store.get_by_id(title_memory_id)
        if record is None:
            raise TitleMemoryNotFoundError(title_memory_id)
        return record

    async def create(self, request: TitleMemoryCreate, owner_user_id: str) -> TitleMemory:
        """Create a title memory.

        Existing competencies are validated and new ones created in the
        catalog before the record is stored.

        Args:
            request: Creation request.
            owner_user_id: Authenticated caller, stored as the owner.

        Returns:
            The stored record.

        Raises:
            TitleCodeExistsError: If a non-deleted record uses the title code.
            TitleMemoryValidationError: If the catalog rejects a competency.
            UpstreamServiceError: If the catalog cannot be reached.
        """
        await self._ensure_title_codes_free([request.title_code])

        merged = await self._merge_engine.merge(CompetencySubmission.from_fields(request))
        record = self._build_record(request, merged, owner_user_id)

        try:
            record = await self._store.insert(record)
        except DuplicateTitleCodeError as e:
            raise TitleCodeExistsError([request.title_code]) from e

        logger.info("Title memory created: %s (titleCode=%s)", record.id, record.title_code)
        return record

    async def bulk_create(
        self,
        requests: Sequence[TitleMemoryCreate],
        owner_user_id: str,
    ) -> list[TitleMemory]:
        """Create several title memories, storing them in one transaction.

        Title codes are checked for the whole batch before any catalog call.
        Competencies are merged request by request; if one merge fails the
        competencies already created for earlier requests stay in the
        catalog and nothing is stored.

        Raises:
            TitleCodeExistsError: If a code repeats in the batch or is in use.
            TitleMemoryValidationError: If the catalog rejects a competency.
            UpstreamServiceError: If the catalog cannot be reached.
        """
        if not requests:
            return []

        codes = [request.title_code for request in requests]
        repeated = sorted(code for code, count in Counter(codes).items() if count > 1)
        if repeated:
            raise TitleCodeExistsError(repeated)
        await self._ensure_title_codes_free(codes)

        records = []
        for request in requests:
            merged = await self._merge_engine.merge(CompetencySubmission.from_fields(request))
            records.append(self._build_record(request, merged, owner_user_id))

        try:
            records = await self._store.insert_many(records)
        except DuplicateTitleCodeError as e:
            raise TitleCodeExistsError(codes) from e

        logger.info("Title memories bulk created: %d", len(records))
        return records

    async def update(
        self,
        title_memory_id: str,
        request: TitleMemoryUpdate,
        token: str,
    ) -> UpdateResult:
        """Apply a partial update.

        When the request carries competency fields they go through the
        merge pipeline. A competency group the request omits keeps its
        current value. If the final competencies differ from the current
        ones the subjects service is told before the record is stored.

        Args:
            title_memory_id: Record to update.
            request: Fields to change.
            token: Caller's bearer token, forwarded to the subjects service.

        Returns:
            The updated record and the cascade status.

        Raises:
            TitleMemoryNotFoundError: If no record has this id.
            TitleCodeExistsError: If the new title code is in use.
            TitleMemoryValidationError: If the catalog rejects a competency.
            UpstreamServiceError: If the catalog cannot be reached.
        """
        current = await self.get_by_id(title_memory_id)

        supplied = request.model_dump(exclude_unset=True, exclude=set(COMPETENCY_FIELDS))
        values = {column: value for column, value in supplied.items() if value is not None}
        new_code = values.get("title_code")
        if new_code is not None and new_code != current.title_code:
            await self._ensure_title_codes_free([new_code], exclude_id=title_memory_id)

        cascade_status = CascadeStatus.NOT_REQUIRED
        submission = CompetencySubmission.from_fields(request)
        if not submission.is_empty:
            merged = await self._merge_engine.merge(submission)
            current_skills = list(current.skills or [])
            current_outcomes = list(current.learning_outcomes or [])
            final_skills = merged.skills if submission.skills_supplied else current_skills
            final_outcomes = (
                merged.learning_outcomes if submission.outcomes_supplied else current_outcomes
            )

            report = self._drift_detector.detect(
                current_skills, final_skills, current_outcomes, final_outcomes
            )
            cascade_status = await self._cascade.trigger(
                report, token, title_memory_id, final_skills, final_outcomes
            )
            values["skills"] = final_skills
            values["learning_outcomes"] = final_outcomes

        try:
            record = await self._store.update_by_id(title_memory_id, values)
        except DuplicateTitleCodeError as e:
            raise TitleCodeExistsError([str(new_code)]) from e
        if record is None:
            raise TitleMemoryNotFoundError(title_memory_id)

        logger.info(
            "Title memory updated: %s (fields=%s, cascade=%s)",
            title_memory_id,
            sorted(values),
            cascade_status.value,
        )
        return UpdateResult(record=record, cascade_status=cascade_status)

    async def soft_delete(self, title_memory_id: str) -> TitleMemory:
        """Mark a title memory as deleted.

        Raises:
            TitleMemoryNotFoundError: If no record has this id.
        """
        record = await self._store.update_by_id(title_memory_id, {"status": DELETED_STATUS})
        if record is None:
            raise TitleMemoryNotFoundError(title_memory_id)

        logger.info("Title memory deleted: %s", title_memory_id)
        return record

    async def search(
        self,
        request: SearchRequest,
        caller: Caller | None = None,
    ) -> PaginatedResult[TitleMemory]:
        """Search non-deleted title memories.

        Only the first titleName is used. year filters only when it holds
        exactly two values, taken in any order.

        Args:
            request: Filters, page window and caller-scoping flags.
            caller: Authenticated caller, required by fromUser and onlyPermitted.

        Raises:
            TitleMemoryValidationError: If filters is missing.
            AuthenticationRequiredError: If a caller-scoped flag is set
                without a caller.
            UpstreamServiceError: If the permissions service fails.
        """
        if request.filters is None:
            raise TitleMemoryValidationError("filters object required")
        filters = request.filters

        user_id = None
        if request.from_user:
            if caller is None:
                raise AuthenticationRequiredError("fromUser search")
            user_id = caller.user_id

        permitted_ids = None
        if request.only_permitted:
            if caller is None:
                raise AuthenticationRequiredError("onlyPermitted search")
            permitted_ids = await self._permissions.get_permitted_memory_ids(caller.token)

        criteria = TitleMemoryFilter.from_year_range(
            filters.year,
            name=filters.title_name[0] if filters.title_name else None,
            title_code=filters.title_code,
            universities=filters.universities,
            centers=filters.centers,
            academic_levels=filters.academic_level,
            branches=filters.branch_academic,
            academic_fields=filters.academic_fields,
            ids=permitted_ids,
            user_id=user_id,
        )
        stmt = self._query_builder.build(criteria)
        return await paginate(self._store, stmt, self.pagination_options(request.page, request.limit))

    async def check_ownership(self, title_memory_id: str, user_id: str) -> bool:
        """Whether the title memory belongs to the user.

        Raises:
            TitleMemoryNotFoundError: If no record has this id.
        """
        record = await self.get_by_id(title_memory_id)
        return record.user_id == user_id

    async def missing_skills(self, title_memory_id: str, skill_ids: Sequence[str]) -> list[str]:
        """Requested skill ids the title memory does not contain."""
        record = await self.get_by_id(title_memory_id)
        present = set(record.skills or [])
        return [skill_id for skill_id in dict.fromkeys(skill_ids) if skill_id not in present]

    async def has_skills(self, title_memory_id: str, skill_ids: Sequence[str]) -> bool:
        """Whether the title memory contains every requested skill.

        Raises:
            TitleMemoryNotFoundError: If no record has this id.
        """
        return not await self.missing_skills(title_memory_id, skill_ids)

    async def missing_outcomes(self, title_memory_id: str, outcome_ids: Sequence[str]) -> list[str]:
        """Requested learning outcome ids the title memory does not contain."""
        record = await self.get_by_id(title_memory_id)
        present = set(record.outcome_ids)
        return [outcome_id for outcome_id in dict.fromkeys(outcome_ids) if outcome_id not in present]

    async def has_outcomes(self, title_memory_id: str, outcome_ids: Sequence[str]) -> bool:
        """Whether the title memory contains every requested learning outcome.

        Raises:
            TitleMemoryNotFoundError: If no record has this id.
        """
        return not await self.missing_outcomes(title_memory_id, outcome_ids)

    async def bulk_import_from_files(
        self,
        files: Sequence[ImportFile],
        owner_user_id: str,
    ) -> list[TitleMemory]:
        """Create the title memories held in JSON import files.

        Every record is validated before any is created; one bad record
        rejects the whole import.

        Raises:
            TitleMemoryValidationError: Listing every invalid file and record.
        """
        requests = self._importer.parse(files)
        return await self.bulk_create(requests, owner_user_id)

    async def _ensure_title_codes_free(
        self,
        title_codes: Sequence[str],
        exclude_id: str | None = None,
    ) -> None:
        taken = await self._store.find_active_title_codes(title_codes, exclude_id=exclude_id)
        if taken:
            raise TitleCodeExistsError(sorted(taken))

    @staticmethod
    def _build_record(
        request: TitleMemoryCreate,
        merged: MergedCompetencies,
        owner_user_id: str,
    ) -> TitleMemory:
        return TitleMemory(
            title_code=request.title_code,
            universities=list(request.universities),
            centers=list(request.centers),
            name=request.name,
            academic_level=request.academic_level,
            branch=request.branch,
            academic_field=request.academic_field,
            status=request.status,
            year_delivery=request.year_delivery,
            total_credits=request.total_credits,
            distributed_credits=dict(request.distributed_credits),
            skills=merged.skills,
            learning_outcomes=merged.learning_outcomes,
            user_id=owner_user_id,
        )
