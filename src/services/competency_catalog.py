# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Skills service client (competency catalog).

The skills service owns skill and learning outcome records and issues
their durable identifiers. Bulk creation is order-preserving: the n-th
created record belongs to the n-th submitted definition.

Example:
    >>> catalog = CompetencyCatalogClient(base_url="http://skills:3001")
    >>> await catalog.validate_skills(["665f..."])
    True
    >>> created = await catalog.create_skills([{"name": "Python", ...}])
    >>> durable_id(created[0])
    '6660...'
"""

import logging
from typing import Any

import httpx

from src.services.base import ServiceClient
from src.services.exceptions import UpstreamServiceError

logger = logging.getLogger(__name__)

# Validation endpoints answer with one of these when ids are unknown
REJECTION_STATUSES = frozenset({400, 404, 409, 422})


def durable_id(record: dict[str, Any]) -> str:
    """Extract the catalog identifier from a created or fetched record.

    Raises:
        UpstreamServiceError: If the record carries no identifier.
    """
    identifier = record.get("_id") or record.get("id")
    if not identifier:
        raise UpstreamServiceError("Catalog record without identifier", service="skills")
    return str(identifier)


class CompetencyCatalogClient(ServiceClient):
    """Validates, creates and fetches skills and learning outcomes."""

    service_name = "skills"

    async def _validate(self, path: str, payload: dict[str, Any], operation: str) -> bool:
        response = await self._request("POST", path, json=payload)
        if response.status_code in REJECTION_STATUSES:
            logger.info("%s rejected: %s", operation, response.text[:500])
            return False
        self._raise_for_status(response, operation)
        return True

    async def validate_skills(self, skill_ids: list[str]) -> bool:
        """Check that every skill id exists in the catalog.

        Returns:
            True if all ids are known, False if the catalog rejects any.

        Raises:
            UpstreamServiceError: If the catalog cannot answer.
        """
        return await self._validate(
            "/api/skills/validate",
            {"skillIds": skill_ids},
            "validateSkills",
        )

    async def validate_learning_outcomes(self, outcome_ids: list[str]) -> bool:
        """Check that every learning outcome id exists in the catalog.

        Returns:
            True if all ids are known, False if the catalog rejects any.

        Raises:
            UpstreamServiceError: If the catalog cannot answer.
        """
        return await self._validate(
            "/api/learning-outcomes/validate",
            {"learningOutcomesIds": outcome_ids},
            "validateLearningOutcomes",
        )

    async def _create(
        self,
        path: str,
        body: Any,
        submitted: int,
        operation: str,
    ) -> list[dict[str, Any]]:
        response = await self._request("POST", path, json=body)
        self._raise_for_status(response, operation)
        created = self._unwrap_list(response, operation)

        if len(created) != submitted:
            raise UpstreamServiceError(
                f"{operation} returned {len(created)} records for {submitted} definitions",
                service=self.service_name,
                status_code=response.status_code,
            )
        return created

    async def create_skills(self, skills: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Bulk-create skills.

        Args:
            skills: Skill definitions (name, description, type).

        Returns:
            Created records, one per definition, in submission order.

        Raises:
            UpstreamServiceError: If creation fails or the response does not
                line up with the submission.
        """
        if not skills:
            return []
        created = await self._create(
            "/api/skills/bulk",
            {"skills": skills},
            len(skills),
            "createSkills",
        )
        logger.info("Created %d skills in catalog", len(created))
        return created

    async def create_learning_outcomes(
        self,
        outcomes: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Bulk-create learning outcomes.

        Args:
            outcomes: Outcome definitions (name, description, skills_id) whose
                skill references are already durable.

        Returns:
            Created records, one per definition, in submission order.

        Raises:
            UpstreamServiceError: If creation fails or the response does not
                line up with the submission.
        """
        if not outcomes:
            return []
        created = await self._create(
            "/api/learning-outcomes/bulk",
            outcomes,
            len(outcomes),
            "createLearningOutcomes",
        )
        logger.info("Created %d learning outcomes in catalog", len(created))
        return created

    async def get_skills_by_ids(self, skill_ids: list[str]) -> list[dict[str, Any]]:
        """Fetch full skill records."""
        if not skill_ids:
            return []
        operation = "getSkillsByIds"
        response = await self._request("POST", "/api/skills/getAll", json={"skillIds": skill_ids})
        self._raise_for_status(response, operation)
        return self._unwrap_list(response, operation)

    async def get_learning_outcomes_by_ids(self, outcome_ids: list[str]) -> list[dict[str, Any]]:
        """Fetch full learning outcome records."""
        if not outcome_ids:
            return []
        operation = "getLearningOutcomesByIds"
        response = await self._request(
            "POST",
            "/api/learning-outcomes/getAll",
            json={"learningOutcomesIds": outcome_ids},
        )
        self._raise_for_status(response, operation)
        return self._unwrap_list(response, operation)

    def _unwrap_list(self, response: httpx.Response, operation: str) -> list[dict[str, Any]]:
        """Accept either a bare JSON array or {"data": [...]}."""
        body = self._json(response, operation)
        if isinstance(body, dict):
            body = body.get("data")
        if not isinstance(body, list):
            raise UpstreamServiceError(
                f"{operation} returned an unexpected body",
                service=self.service_name,
                status_code=response.status_code,
                response_body=response.text,
            )
        return body
