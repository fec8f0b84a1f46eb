# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title memory domain.

Accreditation records of academic programs and the reconciliation of their
skills and learning outcomes against the competency catalog.
"""

from src.domains.title_memory.drift import CascadeStatus, CascadeTrigger, DriftDetector, DriftReport
from src.domains.title_memory.exceptions import (
    AuthenticationRequiredError,
    InvalidExistingLearningOutcomesError,
    InvalidExistingSkillsError,
    TitleCodeExistsError,
    TitleMemoryNotFoundError,
    TitleMemoryServiceError,
    TitleMemoryValidationError,
    UnresolvedSkillReferenceError,
)
from src.domains.title_memory.importer import REQUIRED_FIELDS, TitleMemoryImporter
from src.domains.title_memory.merge import (
    CompetencyMergeEngine,
    CompetencySubmission,
    MergedCompetencies,
)
from src.domains.title_memory.query import TitleMemoryFilter, TitleMemoryQueryBuilder
from src.domains.title_memory.reconciler import IdentifierReconciler
from src.domains.title_memory.service import Caller, TitleMemoryService, UpdateResult

__all__ = [
    "AuthenticationRequiredError",
    "Caller",
    "CascadeStatus",
    "CascadeTrigger",
    "CompetencyMergeEngine",
    "CompetencySubmission",
    "DriftDetector",
    "DriftReport",
    "IdentifierReconciler",
    "InvalidExistingLearningOutcomesError",
    "InvalidExistingSkillsError",
    "MergedCompetencies",
    "REQUIRED_FIELDS",
    "TitleCodeExistsError",
    "TitleMemoryFilter",
    "TitleMemoryImporter",
    "TitleMemoryNotFoundError",
    "TitleMemoryQueryBuilder",
    "TitleMemoryService",
    "TitleMemoryServiceError",
    "TitleMemoryValidationError",
    "UnresolvedSkillReferenceError",
    "UpdateResult",
]
