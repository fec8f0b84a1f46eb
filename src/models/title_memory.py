# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title memory request and response models.

The wire format uses camelCase attribute names (titleCode, yearDelivery,
existinglearningOutcomes, ...). Python code uses the snake_case field
names; both are accepted on input.

Competency fields accepted by create and update:

- existingSkills: durable skill ids asserted to exist in the catalog
- skills: new skill definitions, or bare durable ids
- existinglearningOutcomes: [{outcomeId: [skillRef, ...]}, ...]
- learningOutcomes: new outcome definitions, or {outcomeId: [skillRef]} mappings
"""

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Discriminator, Field, Tag, field_validator

from src.infrastructure.database.models import DELETED_STATUS
from src.models.common import PaginationResponse

OutcomeMapping = dict[str, list[str]]


def _coerce_title_code(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


# titleCode may arrive as a number; it is stored as a string
TitleCode = Annotated[str, BeforeValidator(_coerce_title_code)]


def _check_outcome_mappings(mappings: list[OutcomeMapping] | None) -> list[OutcomeMapping] | None:
    for mapping in mappings or []:
        if len(mapping) != 1:
            raise ValueError("each learning outcome mapping must have exactly one outcome id")
    return mappings


class SkillInput(BaseModel):
    """New skill definition.

    generated_id is a request-scoped placeholder that learning outcomes in
    the same request may reference before the skill exists.
    """

    name: str = Field(min_length=1, description="Skill name")
    description: str = Field(default="", description="Skill description")
    type: str = Field(default="", description="Skill type")
    generated_id: str | None = Field(default=None, description="Request-scoped placeholder id")

    def definition(self) -> dict[str, Any]:
        """Catalog payload for this skill (placeholder id removed)."""
        return self.model_dump(exclude={"generated_id"})


class LearningOutcomeInput(BaseModel):
    """New learning outcome definition.

    skills_id entries may be durable skill ids, generated ids of skills in
    the same request, or names of skills in the same request.
    """

    name: str = Field(min_length=1, description="Outcome name")
    description: str = Field(default="", description="Outcome description")
    skills_id: list[str] = Field(default_factory=list, description="Skill references")


def _outcome_entry_kind(value: Any) -> str:
    """Objects using any outcome definition field are new outcomes."""
    if isinstance(value, LearningOutcomeInput):
        return "definition"
    if isinstance(value, dict) and not value.keys().isdisjoint(LearningOutcomeInput.model_fields):
        return "definition"
    return "mapping"


OutcomeEntry = Annotated[
    Annotated[LearningOutcomeInput, Tag("definition")] | Annotated[OutcomeMapping, Tag("mapping")],
    Discriminator(_outcome_entry_kind),
]


class CompetencyFields(BaseModel):
    """Skill and learning outcome fields shared by create and update."""

    model_config = ConfigDict(populate_by_name=True)

    existing_skills: list[str] | None = Field(default=None, alias="existingSkills")
    skills: list[SkillInput | str] | None = Field(default=None)
    existing_learning_outcomes: list[OutcomeMapping] | None = Field(
        default=None,
        alias="existinglearningOutcomes",
    )
    learning_outcomes: list[OutcomeEntry] | None = Field(
        default=None,
        alias="learningOutcomes",
    )

    @field_validator("existing_learning_outcomes")
    @classmethod
    def _single_key_existing(cls, value: list[OutcomeMapping] | None) -> list[OutcomeMapping] | None:
        return _check_outcome_mappings(value)

    @field_validator("learning_outcomes")
    @classmethod
    def _single_key_new(
        cls,
        value: list[OutcomeEntry] | None,
    ) -> list[OutcomeEntry] | None:
        _check_outcome_mappings([item for item in value or [] if isinstance(item, dict)])
        return value


class TitleMemoryCreate(CompetencyFields):
    """Title memory creation request."""

    title_code: TitleCode = Field(alias="titleCode", min_length=1, description="Unique program code")
    universities: list[str] = Field(description="Delivering universities")
    centers: list[str] = Field(description="Delivering centers")
    name: str = Field(min_length=1, description="Program name")
    academic_level: str = Field(alias="academicLevel")
    branch: str
    academic_field: str = Field(alias="academicField")
    status: str = Field(default="active", description="Lifecycle tag")
    year_delivery: int = Field(alias="yearDelivery")
    total_credits: int = Field(alias="totalCredits", ge=0)
    distributed_credits: dict[str, int] = Field(default_factory=dict, alias="distributedCredits")

    @field_validator("status")
    @classmethod
    def _not_deleted(cls, value: str) -> str:
        if value == DELETED_STATUS:
            raise ValueError("status 'deleted' is reserved for deletion")
        return value


class TitleMemoryUpdate(CompetencyFields):
    """Partial title memory update. Omitted fields are left unchanged."""

    title_code: TitleCode | None = Field(default=None, alias="titleCode", min_length=1)
    universities: list[str] | None = None
    centers: list[str] | None = None
    name: str | None = Field(default=None, min_length=1)
    academic_level: str | None = Field(default=None, alias="academicLevel")
    branch: str | None = None
    academic_field: str | None = Field(default=None, alias="academicField")
    status: str | None = None
    year_delivery: int | None = Field(default=None, alias="yearDelivery")
    total_credits: int | None = Field(default=None, alias="totalCredits", ge=0)
    distributed_credits: dict[str, int] | None = Field(default=None, alias="distributedCredits")

    @field_validator("status")
    @classmethod
    def _not_deleted(cls, value: str | None) -> str | None:
        if value == DELETED_STATUS:
            raise ValueError("use DELETE to delete a title memory")
        return value


class TitleMemoryResponse(BaseModel):
    """Persisted title memory."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    title_code: str = Field(alias="titleCode")
    universities: list[str]
    centers: list[str]
    name: str
    academic_level: str = Field(alias="academicLevel")
    branch: str
    academic_field: str = Field(alias="academicField")
    status: str
    year_delivery: int = Field(alias="yearDelivery")
    total_credits: int = Field(alias="totalCredits")
    distributed_credits: dict[str, int] = Field(alias="distributedCredits")
    skills: list[str]
    learning_outcomes: list[OutcomeMapping] = Field(alias="learningOutcomes")
    user_id: str = Field(alias="userId")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class TitleMemoryUpdateResponse(TitleMemoryResponse):
    """Updated title memory plus the outcome of the subject status cascade."""

    cascade_status: str = Field(
        alias="cascadeStatus",
        description="not_required, delivered, failed or scheduled",
    )


class TitleMemoryListResponse(BaseModel):
    """One page of title memories."""

    data: list[TitleMemoryResponse]
    pagination: PaginationResponse


class SearchFilters(BaseModel):
    """Search filters. Every list filter has any-of semantics."""

    model_config = ConfigDict(populate_by_name=True)

    title_name: list[str] | None = Field(default=None, alias="titleName")
    title_code: TitleCode | None = Field(default=None, alias="titleCode")
    academic_level: list[str] | None = Field(default=None, alias="academicLevel")
    academic_fields: list[str] | None = Field(default=None, alias="academicFields")
    branch_academic: list[str] | None = Field(default=None, alias="branchAcademic")
    universities: list[str] | None = None
    centers: list[str] | None = None
    year: list[int] | None = Field(default=None, description="[from, to] in any order")


class SearchRequest(BaseModel):
    """Search request body."""

    model_config = ConfigDict(populate_by_name=True)

    filters: SearchFilters | None = None
    page: int | None = None
    limit: int | None = None
    from_user: bool = Field(default=False, alias="fromUser")
    only_permitted: bool = Field(default=False, alias="onlyPermitted")


class OwnershipCheckRequest(BaseModel):
    """Does this title memory belong to this user."""

    model_config = ConfigDict(populate_by_name=True)

    title_memory_id: str = Field(alias="titleMemoryId")
    user_id: str = Field(alias="userId")


class SkillsCheckRequest(BaseModel):
    """Does this title memory contain all these skills."""

    model_config = ConfigDict(populate_by_name=True)

    title_memory_id: str = Field(alias="titleMemoryId")
    skills: list[str]


class OutcomesCheckRequest(BaseModel):
    """Does this title memory contain all these learning outcomes."""

    model_config = ConfigDict(populate_by_name=True)

    title_memory_id: str = Field(alias="titleMemoryId")
    learning_outcomes: list[str] = Field(alias="learningOutcomes")


class ImportFile(BaseModel):
    """One uploaded JSON file holding an array of title memories."""

    filename: str
    content: str


class ImportRequest(BaseModel):
    """Bulk import request."""

    files: list[ImportFile] = Field(min_length=1)
