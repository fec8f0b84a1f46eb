# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Subjects service client.

Subjects belong to a title memory and map themselves onto its learning
outcomes. When a title memory's competencies change the subjects service
is told to mark those subjects for re-validation.
"""

import logging
from typing import Any

from src.services.base import ServiceClient, bearer_headers

logger = logging.getLogger(__name__)


class SubjectStatusClient(ServiceClient):
    """Changes the status of subjects attached to a title memory."""

    service_name = "subjects"

    async def change_status(
        self,
        token: str,
        title_memory_id: str,
        status: str,
        skills: list[str] | None = None,
        learning_outcomes: list[dict[str, list[str]]] | None = None,
    ) -> dict[str, Any]:
        """Change the status of every subject of a title memory.

        Args:
            token: Caller's bearer token, forwarded to the subjects service.
            title_memory_id: Title memory whose subjects change.
            status: New subject status.
            skills: Title memory skill ids after the change.
            learning_outcomes: Title memory outcome mappings after the change.

        Returns:
            Service acknowledgement body.

        Raises:
            UpstreamServiceError: If the call fails.
        """
        payload: dict[str, Any] = {"titleMemoryId": title_memory_id, "status": status}
        if skills is not None:
            payload["skills"] = skills
        if learning_outcomes is not None:
            payload["learningOutcomes"] = learning_outcomes

        operation = "changeStatus"
        response = await self._request(
            "PUT",
            f"/api/subjects/change-status/{title_memory_id}",
            json=payload,
            headers=bearer_headers(token),
        )
        self._raise_for_status(response, operation)
        logger.info("Subjects of title memory %s set to %s", title_memory_id, status)

        if not response.content:
            return {}
        ack = self._json(response, operation)
        return ack if isinstance(ack, dict) else {"data": ack}
