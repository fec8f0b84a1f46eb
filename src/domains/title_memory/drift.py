# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Competency drift detection and subject status cascade.

Subjects attached to a title memory map themselves onto its skills and
learning outcomes. When an update changes either set, those subjects are
marked "incomplete" in the subjects service so they get re-validated.

Order never counts as drift: skills are compared as sorted lists and
outcomes as (outcome id, sorted skill ids) pairs sorted by outcome id.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from src.models.title_memory import OutcomeMapping
from src.services.exceptions import UpstreamServiceError
from src.services.subjects import SubjectStatusClient

logger = logging.getLogger(__name__)

SUBJECT_STATUS_ON_DRIFT = "incomplete"

# Background cascades are held here until done; the loop keeps only weak references
_background_cascades: set[asyncio.Task] = set()


class CascadeStatus(str, Enum):
    """What happened to the subject status notification of an update."""

    NOT_REQUIRED = "not_required"
    DELIVERED = "delivered"
    FAILED = "failed"
    SCHEDULED = "scheduled"


def _skill_signature(skills: list[str]) -> list[str]:
    return sorted(skills)


def _outcome_signature(outcomes: list[OutcomeMapping]) -> list[tuple[str, list[str]]]:
    pairs = [
        (outcome_id, sorted(skill_ids))
        for mapping in outcomes
        for outcome_id, skill_ids in mapping.items()
    ]
    return sorted(pairs, key=lambda pair: pair[0])


@dataclass(frozen=True)
class DriftReport:
    """Which competency groups changed between two states of a record."""

    skills_changed: bool
    outcomes_changed: bool

    @property
    def changed(self) -> bool:
        return self.skills_changed or self.outcomes_changed


class DriftDetector:
    """Compares current and final competencies of a title memory."""

    def detect(
        self,
        current_skills: list[str],
        final_skills: list[str],
        current_outcomes: list[OutcomeMapping],
        final_outcomes: list[OutcomeMapping],
    ) -> DriftReport:
        report = DriftReport(
            skills_changed=_skill_signature(current_skills) != _skill_signature(final_skills),
            outcomes_changed=_outcome_signature(current_outcomes) != _outcome_signature(final_outcomes),
        )
        if report.changed:
            logger.info(
                "Competency drift detected: skills_changed=%s, outcomes_changed=%s",
                report.skills_changed,
                report.outcomes_changed,
            )
        return report


class CascadeTrigger:
    """Tells the subjects service that a title memory's competencies changed.

    In "await" mode the notification completes before the update returns.
    In "background" mode it runs as an asyncio task. Either way a failed
    notification is logged and never raised; there are no retries.
    """

    def __init__(
        self,
        subjects: SubjectStatusClient,
        mode: Literal["await", "background"] = "await",
    ) -> None:
        self._subjects = subjects
        self._mode = mode

    async def trigger(
        self,
        report: DriftReport,
        token: str,
        title_memory_id: str,
        skills: list[str],
        learning_outcomes: list[OutcomeMapping],
    ) -> CascadeStatus:
        """Notify the subjects service if the report shows drift.

        Args:
            report: Drift between current and final competencies.
            token: Caller's bearer token.
            title_memory_id: Updated title memory.
            skills: Final skill ids.
            learning_outcomes: Final outcome mappings.

        Returns:
            The cascade status to report on the update response.
        """
        if not report.changed:
            return CascadeStatus.NOT_REQUIRED

        if self._mode == "background":
            task = asyncio.create_task(
                self._deliver(token, title_memory_id, skills, learning_outcomes)
            )
            _background_cascades.add(task)
            task.add_done_callback(_background_cascades.discard)
            logger.debug("Scheduled subject status cascade for title memory %s", title_memory_id)
            return CascadeStatus.SCHEDULED

        return await self._deliver(token, title_memory_id, skills, learning_outcomes)

    async def _deliver(
        self,
        token: str,
        title_memory_id: str,
        skills: list[str],
        learning_outcomes: list[OutcomeMapping],
    ) -> CascadeStatus:
        try:
            await self._subjects.change_status(
                token,
                title_memory_id,
                SUBJECT_STATUS_ON_DRIFT,
                skills=skills,
                learning_outcomes=learning_outcomes,
            )
        except UpstreamServiceError as e:
            logger.error(
                "Subject status cascade failed for title memory %s: %s",
                title_memory_id,
                str(e),
            )
            return CascadeStatus.FAILED

        logger.info("Subject status cascade delivered for title memory %s", title_memory_id)
        return CascadeStatus.DELIVERED
