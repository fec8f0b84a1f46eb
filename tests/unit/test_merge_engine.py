# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for the competency merge engine."""

import pytest
from pydantic import ValidationError

from src.domains.title_memory.exceptions import (
    InvalidExistingLearningOutcomesError,
    InvalidExistingSkillsError,
    TitleMemoryValidationError,
)
from src.domains.title_memory.merge import CompetencyMergeEngine, CompetencySubmission
from src.models.title_memory import CompetencyFields
from src.services.exceptions import UpstreamServiceError


def submission(**fields) -> CompetencySubmission:
    return CompetencySubmission.from_fields(CompetencyFields.model_validate(fields))


@pytest.fixture
def engine(mock_catalog):
    """Create merge engine with mock catalog."""
    return CompetencyMergeEngine(mock_catalog)


class TestCompetencySubmission:
    """Tests for splitting request fields into existing and new."""

    def test_bare_skill_ids_count_as_existing(self) -> None:
        result = submission(existingSkills=["s1"], skills=["s2", {"name": "Python"}])

        assert result.existing_skills == ["s1", "s2"]
        assert [skill.name for skill in result.new_skills] == ["Python"]

    def test_outcome_mappings_count_as_existing(self) -> None:
        result = submission(learningOutcomes=[{"o1": ["s1"]}, {"name": "Write scripts"}])

        assert result.existing_outcomes == [{"o1": ["s1"]}]
        assert [outcome.name for outcome in result.new_outcomes] == ["Write scripts"]

    def test_existing_skills_are_deduplicated_in_order(self) -> None:
        result = submission(existingSkills=["s2", "s1"], skills=["s2"])

        assert result.existing_skills == ["s2", "s1"]

    def test_tracks_which_groups_were_supplied(self) -> None:
        result = submission(skills=[])

        assert result.skills_supplied is True
        assert result.outcomes_supplied is False
        assert submission().is_empty is True

    def test_outcome_mapping_must_have_one_key(self) -> None:
        with pytest.raises(ValueError):
            submission(existinglearningOutcomes=[{"o1": [], "o2": []}])

    def test_outcome_definition_without_name_names_the_field(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            submission(learningOutcomes=[{"skills_id": ["Python"]}])

        errors = exc_info.value.errors()
        assert [error["loc"][-1] for error in errors] == ["name"]
        assert errors[0]["type"] == "missing"

    def test_definition_fields_route_to_new_outcomes(self) -> None:
        result = submission(learningOutcomes=[{"name": "Write scripts", "skills_id": ["Python"]}])

        assert result.existing_outcomes == []
        assert result.new_outcomes[0].skills_id == ["Python"]


class TestMerge:
    """Tests for the merge pipeline."""

    @pytest.mark.asyncio
    async def test_name_addressed_outcome_gets_durable_skill_id(self, engine, mock_catalog) -> None:
        """A new outcome may reference a new skill by its name."""
        mock_catalog.create_skills.side_effect = lambda skills: [{"_id": "D1"}]
        mock_catalog.create_learning_outcomes.side_effect = lambda outcomes: [{"_id": "O1"}]

        result = await engine.merge(
            submission(
                skills=[{"name": "X"}],
                learningOutcomes=[{"name": "L", "skills_id": ["X"]}],
            )
        )

        assert result.skills == ["D1"]
        assert result.learning_outcomes == [{"O1": ["D1"]}]
        sent = mock_catalog.create_learning_outcomes.call_args.args[0]
        assert sent[0]["skills_id"] == ["D1"]

    @pytest.mark.asyncio
    async def test_generated_id_reference_is_resolved(self, engine, mock_catalog) -> None:
        result = await engine.merge(
            submission(
                skills=[{"name": "Python", "generated_id": "py"}],
                learningOutcomes=[{"name": "Scripts", "skills_id": ["py", "s9"]}],
            )
        )

        assert result.learning_outcomes == [{"new-outcome-1": ["new-skill-1", "s9"]}]

    @pytest.mark.asyncio
    async def test_generated_id_is_not_sent_to_catalog(self, engine, mock_catalog) -> None:
        await engine.merge(submission(skills=[{"name": "Python", "generated_id": "py"}]))

        sent = mock_catalog.create_skills.call_args.args[0]
        assert sent == [{"name": "Python", "description": "", "type": ""}]

    @pytest.mark.asyncio
    async def test_existing_come_before_created(self, engine) -> None:
        result = await engine.merge(
            submission(
                existingSkills=["s1"],
                skills=[{"name": "A"}, {"name": "B"}],
                existinglearningOutcomes=[{"o1": ["A"]}],
                learningOutcomes=[{"name": "L", "skills_id": ["B"]}],
            )
        )

        assert result.skills == ["s1", "new-skill-1", "new-skill-2"]
        assert result.learning_outcomes == [
            {"o1": ["new-skill-1"]},
            {"new-outcome-1": ["new-skill-2"]},
        ]

    @pytest.mark.asyncio
    async def test_no_generated_id_leaks_into_result(self, engine) -> None:
        result = await engine.merge(
            submission(
                skills=[{"name": "A", "generated_id": "ga"}, {"name": "B", "generated_id": "gb"}],
                existinglearningOutcomes=[{"o1": ["ga"]}],
                learningOutcomes=[{"name": "L", "skills_id": ["gb", "A"]}],
            )
        )

        references = [ref for mapping in result.learning_outcomes for refs in mapping.values() for ref in refs]
        assert "ga" not in references
        assert "gb" not in references
        assert "ga" not in result.skills

    @pytest.mark.asyncio
    async def test_empty_submission_makes_no_catalog_calls(self, engine, mock_catalog) -> None:
        result = await engine.merge(submission())

        assert result.skills == []
        assert result.learning_outcomes == []
        mock_catalog.validate_skills.assert_not_called()
        mock_catalog.validate_learning_outcomes.assert_not_called()


class TestMergeValidation:
    """Tests for rejection before any competency is created."""

    @pytest.mark.asyncio
    async def test_invalid_existing_skills(self, engine, mock_catalog) -> None:
        mock_catalog.validate_skills.return_value = False

        with pytest.raises(InvalidExistingSkillsError) as exc_info:
            await engine.merge(submission(existingSkills=["bad"], skills=[{"name": "A"}]))

        assert exc_info.value.skill_ids == ["bad"]
        mock_catalog.create_skills.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_existing_outcomes_stop_skill_creation(self, engine, mock_catalog) -> None:
        mock_catalog.validate_learning_outcomes.return_value = False

        with pytest.raises(InvalidExistingLearningOutcomesError):
            await engine.merge(
                submission(
                    skills=[{"name": "A"}],
                    existinglearningOutcomes=[{"bad": []}],
                )
            )

        mock_catalog.create_skills.assert_not_called()
        mock_catalog.create_learning_outcomes.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_generated_ids_are_rejected(self, engine, mock_catalog) -> None:
        with pytest.raises(TitleMemoryValidationError) as exc_info:
            await engine.merge(
                submission(
                    skills=[
                        {"name": "A", "generated_id": "g"},
                        {"name": "B", "generated_id": "g"},
                    ]
                )
            )

        assert "generated_id 'g'" in exc_info.value.errors[0]
        mock_catalog.create_skills.assert_not_called()

    @pytest.mark.asyncio
    async def test_catalog_failure_propagates(self, engine, mock_catalog) -> None:
        mock_catalog.create_skills.side_effect = UpstreamServiceError("down", service="skills")

        with pytest.raises(UpstreamServiceError):
            await engine.merge(submission(skills=[{"name": "A"}]))
