# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Competency merge engine.

Turns the four competency fields of a create or update request into the
persisted shape of a title memory:

    skills:            ["skill-id", ...]
    learning_outcomes: [{"outcome-id": ["skill-id", ...]}, ...]

The pipeline:
1. Validate existing skills and existing outcomes against the catalog.
   Both checks run before anything is created, so an invalid submission
   never leaves new competencies behind.
2. Assign generated ids to new skills, bulk-create them, bind the
   returned durable ids.
3. Resolve the skill references of existing outcomes.
4. Resolve the skill references of new outcomes and bulk-create them.

Nothing is rolled back if a create call fails part way through.
"""

import logging
from dataclasses import dataclass, field

from src.domains.title_memory.exceptions import (
    InvalidExistingLearningOutcomesError,
    InvalidExistingSkillsError,
    TitleMemoryValidationError,
    UnresolvedSkillReferenceError,
)
from src.domains.title_memory.reconciler import IdentifierReconciler
from src.models.title_memory import (
    CompetencyFields,
    LearningOutcomeInput,
    OutcomeMapping,
    SkillInput,
)
from src.services.competency_catalog import CompetencyCatalogClient, durable_id

logger = logging.getLogger(__name__)


def outcome_id(mapping: OutcomeMapping) -> str:
    """Identifier of a single-key outcome mapping."""
    return next(iter(mapping))


@dataclass
class CompetencySubmission:
    """Competency fields of one request, split into existing and new.

    Bare skill ids given in skills count as existing skills and
    {outcomeId: [...]} mappings given in learningOutcomes count as
    existing outcomes, so a record read from the API can be sent back
    unchanged.

    Attributes:
        existing_skills: Durable skill ids asserted to exist.
        new_skills: Skill definitions to create.
        existing_outcomes: Outcome mappings asserted to exist.
        new_outcomes: Outcome definitions to create.
        skills_supplied: Whether the request carried any skill field.
        outcomes_supplied: Whether the request carried any outcome field.
    """

    existing_skills: list[str] = field(default_factory=list)
    new_skills: list[SkillInput] = field(default_factory=list)
    existing_outcomes: list[OutcomeMapping] = field(default_factory=list)
    new_outcomes: list[LearningOutcomeInput] = field(default_factory=list)
    skills_supplied: bool = False
    outcomes_supplied: bool = False

    @classmethod
    def from_fields(cls, fields: CompetencyFields) -> "CompetencySubmission":
        existing_skills = list(fields.existing_skills or [])
        new_skills: list[SkillInput] = []
        for skill in fields.skills or []:
            if isinstance(skill, str):
                existing_skills.append(skill)
            else:
                new_skills.append(skill)

        existing_outcomes = [dict(mapping) for mapping in fields.existing_learning_outcomes or []]
        new_outcomes: list[LearningOutcomeInput] = []
        for outcome in fields.learning_outcomes or []:
            if isinstance(outcome, dict):
                existing_outcomes.append(dict(outcome))
            else:
                new_outcomes.append(outcome)

        return cls(
            existing_skills=list(dict.fromkeys(existing_skills)),
            new_skills=new_skills,
            existing_outcomes=existing_outcomes,
            new_outcomes=new_outcomes,
            skills_supplied=fields.existing_skills is not None or fields.skills is not None,
            outcomes_supplied=(
                fields.existing_learning_outcomes is not None
                or fields.learning_outcomes is not None
            ),
        )

    @property
    def is_empty(self) -> bool:
        """True when the request carried no competency field at all."""
        return not (self.skills_supplied or self.outcomes_supplied)


@dataclass
class MergedCompetencies:
    """Competencies in persisted shape; every reference is durable."""

    skills: list[str] = field(default_factory=list)
    learning_outcomes: list[OutcomeMapping] = field(default_factory=list)


class CompetencyMergeEngine:
    """Merges existing and new competencies through the skills catalog.

    Attributes:
        _catalog: Skills service client.
    """

    def __init__(self, catalog: CompetencyCatalogClient) -> None:
        self._catalog = catalog

    async def merge(self, submission: CompetencySubmission) -> MergedCompetencies:
        """Validate, create and resolve the competencies of one request.

        Args:
            submission: Competency fields of the request.

        Returns:
            Durable skill ids (existing first, then created) and outcome
            mappings (existing first, then created).

        Raises:
            InvalidExistingSkillsError: If the catalog rejects an existing skill.
            InvalidExistingLearningOutcomesError: If the catalog rejects an
                existing outcome.
            TitleMemoryValidationError: If placeholder ids are duplicated.
            UpstreamServiceError: If a catalog call fails.
        """
        self._check_generated_ids(submission.new_skills)
        await self._validate_existing(submission)

        reconciler = IdentifierReconciler()

        assigned = reconciler.assign(submission.new_skills)
        created_skills = await self._catalog.create_skills([skill.definition() for skill in assigned])
        created_skill_ids = [durable_id(record) for record in created_skills]
        reconciler.bind(assigned, created_skill_ids)

        final_outcomes: list[OutcomeMapping] = []
        for mapping in submission.existing_outcomes:
            identifier = outcome_id(mapping)
            final_outcomes.append({identifier: reconciler.resolve_all(mapping[identifier])})

        resolved_new = [reconciler.resolve_all(outcome.skills_id) for outcome in submission.new_outcomes]

        leaked = [
            reference
            for skill_ids in [*(next(iter(m.values())) for m in final_outcomes), *resolved_new]
            for reference in reconciler.unresolved(skill_ids)
        ]
        if leaked:
            raise UnresolvedSkillReferenceError(list(dict.fromkeys(leaked)))

        created_outcomes = await self._catalog.create_learning_outcomes(
            [
                {**outcome.model_dump(), "skills_id": skill_ids}
                for outcome, skill_ids in zip(submission.new_outcomes, resolved_new)
            ]
        )
        for record, skill_ids in zip(created_outcomes, resolved_new):
            final_outcomes.append({durable_id(record): skill_ids})

        final_skills = list(dict.fromkeys([*submission.existing_skills, *created_skill_ids]))

        logger.info(
            "Merged competencies: %d skills (%d created), %d learning outcomes (%d created)",
            len(final_skills),
            len(created_skill_ids),
            len(final_outcomes),
            len(created_outcomes),
        )
        return MergedCompetencies(skills=final_skills, learning_outcomes=final_outcomes)

    async def _validate_existing(self, submission: CompetencySubmission) -> None:
        if submission.existing_skills:
            if not await self._catalog.validate_skills(submission.existing_skills):
                logger.warning("Catalog rejected existing skills: %s", submission.existing_skills)
                raise InvalidExistingSkillsError(submission.existing_skills)

        if submission.existing_outcomes:
            outcome_ids = [outcome_id(mapping) for mapping in submission.existing_outcomes]
            if not await self._catalog.validate_learning_outcomes(outcome_ids):
                logger.warning("Catalog rejected existing learning outcomes: %s", outcome_ids)
                raise InvalidExistingLearningOutcomesError(outcome_ids)

    @staticmethod
    def _check_generated_ids(skills: list[SkillInput]) -> None:
        seen: set[str] = set()
        duplicates: list[str] = []
        for skill in skills:
            if skill.generated_id is None:
                continue
            if skill.generated_id in seen:
                duplicates.append(skill.generated_id)
            seen.add(skill.generated_id)
        if duplicates:
            raise TitleMemoryValidationError(
                "Duplicate generated_id",
                [f"generated_id {generated_id!r} is used by more than one skill" for generated_id in duplicates],
            )
