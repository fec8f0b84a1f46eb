# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title memory API endpoints.

This module provides endpoints for title memory management:
- GET / - List title memories (paginated)
- GET /user/memories - List the caller's title memories
- POST /search - Filtered search
- GET /{title_memory_id} - Get a title memory (deleted ones included)
- POST / - Create a title memory
- POST /bulk - Create several title memories
- POST /import - Create title memories from JSON files
- PUT /{title_memory_id} - Partial update
- DELETE /{title_memory_id} - Soft delete
- POST /check-owner - Does a title memory belong to a user
- POST /validate-skills - Does a title memory contain these skills
- POST /validate-outcomes - Does a title memory contain these outcomes

Domain errors are mapped to HTTP responses by the handlers registered in
src.api.app.

Example:
    POST /api/v1/title-memories
    Authorization: Bearer <token>
    {
        "titleCode": "2501",
        "name": "Computer Engineering",
        "existingSkills": ["665f1c..."],
        "skills": [{"name": "Python", "generated_id": "py"}],
        "learningOutcomes": [{"name": "Write scripts", "skills_id": ["py"]}],
        ...
    }
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from src.api.dependencies import (
    get_optional_caller,
    get_title_memory_service,
    require_bearer_user,
)
from src.domains.title_memory.service import Caller, TitleMemoryService
from src.infrastructure.database.models import TitleMemory
from src.models.common import MessageResponse, PaginationResponse
from src.models.title_memory import (
    ImportRequest,
    OutcomesCheckRequest,
    OwnershipCheckRequest,
    SearchRequest,
    SkillsCheckRequest,
    TitleMemoryCreate,
    TitleMemoryListResponse,
    TitleMemoryResponse,
    TitleMemoryUpdate,
    TitleMemoryUpdateResponse,
)
from src.utils.pagination import PaginatedResult

logger = logging.getLogger(__name__)

router = APIRouter()

Service = Annotated[TitleMemoryService, Depends(get_title_memory_service)]
PageQuery = Annotated[int | None, Query(description="Page number, 1-based")]
LimitQuery = Annotated[int | None, Query(description="Page size")]


def _to_response(record: TitleMemory) -> TitleMemoryResponse:
    return TitleMemoryResponse.model_validate(record)


def _to_list_response(result: PaginatedResult[TitleMemory]) -> TitleMemoryListResponse:
    return TitleMemoryListResponse(
        data=[_to_response(record) for record in result.data],
        pagination=PaginationResponse(
            total=result.pagination.total,
            page=result.pagination.page,
            limit=result.pagination.limit,
            total_pages=result.pagination.total_pages,
        ),
    )


@router.get(
    "",
    response_model=TitleMemoryListResponse,
    summary="List title memories",
    description="List every non-deleted title memory, newest delivery year first.",
)
async def list_title_memories(
    service: Service,
    page: PageQuery = None,
    limit: LimitQuery = None,
) -> TitleMemoryListResponse:
    result = await service.list_all(service.pagination_options(page, limit))
    return _to_list_response(result)


@router.get(
    "/user/memories",
    response_model=TitleMemoryListResponse,
    summary="List my title memories",
    description="List the non-deleted title memories owned by the caller.",
)
async def list_my_title_memories(
    service: Service,
    caller: Caller = Depends(require_bearer_user),
    page: PageQuery = None,
    limit: LimitQuery = None,
) -> TitleMemoryListResponse:
    result = await service.list_by_user(caller.user_id, service.pagination_options(page, limit))
    return _to_list_response(result)


@router.post(
    "/search",
    response_model=TitleMemoryListResponse,
    summary="Search title memories",
    description=(
        "Filter non-deleted title memories. fromUser and onlyPermitted "
        "need a bearer token."
    ),
)
async def search_title_memories(
    data: SearchRequest,
    service: Service,
    caller: Caller | None = Depends(get_optional_caller),
) -> TitleMemoryListResponse:
    """Search title memories.

    Args:
        data: Filters, page window and caller-scoping flags.
        service: Title memory service.
        caller: Authenticated caller, if any.

    Returns:
        One page of matching title memories.
    """
    result = await service.search(data, caller)
    return _to_list_response(result)


@router.get(
    "/{title_memory_id}",
    response_model=TitleMemoryResponse,
    summary="Get title memory",
    description="Get a title memory by id. Deleted title memories are returned too.",
)
async def get_title_memory(title_memory_id: str, service: Service) -> TitleMemoryResponse:
    record = await service.get_by_id(title_memory_id)
    return _to_response(record)


@router.post(
    "",
    response_model=TitleMemoryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create title memory",
    description="Create a title memory owned by the caller.",
)
async def create_title_memory(
    data: TitleMemoryCreate,
    service: Service,
    caller: Caller = Depends(require_bearer_user),
) -> TitleMemoryResponse:
    """Create a title memory.

    Existing competencies are validated against the skills service and
    new ones are created there before the record is stored.

    Args:
        data: Title memory creation request.
        service: Title memory service.
        caller: Authenticated caller, stored as the owner.

    Returns:
        Created title memory.
    """
    logger.info("Creating title memory: titleCode=%s, by=%s", data.title_code, caller.user_id)
    record = await service.create(data, owner_user_id=caller.user_id)
    return _to_response(record)


@router.post(
    "/bulk",
    response_model=list[TitleMemoryResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create title memories",
    description="Create several title memories owned by the caller in one transaction.",
)
async def bulk_create_title_memories(
    data: list[TitleMemoryCreate],
    service: Service,
    caller: Caller = Depends(require_bearer_user),
) -> list[TitleMemoryResponse]:
    logger.info("Bulk creating %d title memories, by=%s", len(data), caller.user_id)
    records = await service.bulk_create(data, owner_user_id=caller.user_id)
    return [_to_response(record) for record in records]


@router.post(
    "/import",
    response_model=list[TitleMemoryResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Import title memories",
    description=(
        "Create title memories from JSON files, each holding an array of "
        "title memories. One invalid record rejects the whole import."
    ),
)
async def import_title_memories(
    data: ImportRequest,
    service: Service,
    caller: Caller = Depends(require_bearer_user),
) -> list[TitleMemoryResponse]:
    logger.info("Importing %d files, by=%s", len(data.files), caller.user_id)
    records = await service.bulk_import_from_files(data.files, owner_user_id=caller.user_id)
    return [_to_response(record) for record in records]


@router.put(
    "/{title_memory_id}",
    response_model=TitleMemoryUpdateResponse,
    summary="Update title memory",
    description=(
        "Partially update a title memory. Competency changes are cascaded to "
        "the subjects service; cascadeStatus reports the outcome."
    ),
)
async def update_title_memory(
    title_memory_id: str,
    data: TitleMemoryUpdate,
    service: Service,
    caller: Caller = Depends(require_bearer_user),
) -> TitleMemoryUpdateResponse:
    """Update a title memory.

    Args:
        title_memory_id: Title memory identifier.
        data: Fields to change.
        service: Title memory service.
        caller: Authenticated caller; the token is forwarded to the subjects service.

    Returns:
        Updated title memory with the subject cascade status.
    """
    result = await service.update(title_memory_id, data, token=caller.token)
    return TitleMemoryUpdateResponse(
        **_to_response(result.record).model_dump(),
        cascade_status=result.cascade_status.value,
    )


@router.delete(
    "/{title_memory_id}",
    response_model=MessageResponse,
    summary="Delete title memory",
    description="Mark a title memory as deleted. It stays readable by id.",
)
async def delete_title_memory(
    title_memory_id: str,
    service: Service,
    caller: Caller = Depends(require_bearer_user),
) -> MessageResponse:
    await service.soft_delete(title_memory_id)
    logger.info("Title memory %s deleted by %s", title_memory_id, caller.user_id)
    return MessageResponse(message="Title memory deleted")


@router.post(
    "/check-owner",
    response_model=MessageResponse,
    summary="Check ownership",
    description="200 if the title memory belongs to the user, 403 otherwise.",
)
async def check_owner(data: OwnershipCheckRequest, service: Service) -> MessageResponse:
    if not await service.check_ownership(data.title_memory_id, data.user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Title memory does not belong to this user",
        )
    return MessageResponse(message="Title memory belongs to this user")


@router.post(
    "/validate-skills",
    response_model=MessageResponse,
    summary="Check skills",
    description="200 if the title memory contains every skill, 403 listing the missing ones otherwise.",
)
async def validate_skills(data: SkillsCheckRequest, service: Service) -> MessageResponse:
    missing = await service.missing_skills(data.title_memory_id, data.skills)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Title memory does not contain these skills", "missing": missing},
        )
    return MessageResponse(message="Title memory contains every skill")


@router.post(
    "/validate-outcomes",
    response_model=MessageResponse,
    summary="Check learning outcomes",
    description=(
        "200 if the title memory contains every learning outcome, 403 listing "
        "the missing ones otherwise."
    ),
)
async def validate_outcomes(data: OutcomesCheckRequest, service: Service) -> MessageResponse:
    missing = await service.missing_outcomes(data.title_memory_id, data.learning_outcomes)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Title memory does not contain these learning outcomes",
                "missing": missing,
            },
        )
    return MessageResponse(message="Title memory contains every learning outcome")
