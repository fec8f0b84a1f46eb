# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Title memory domain exceptions.

- TitleMemoryServiceError: base for every domain error
- TitleMemoryNotFoundError: record absent
- TitleMemoryValidationError: malformed input or unknown references;
  carries every violation found, not just the first
- AuthenticationRequiredError: caller identity needed but missing

Upstream failures are reported with src.services.UpstreamServiceError.
"""


class TitleMemoryServiceError(Exception):
    """Base exception for title memory service errors."""

    pass


class TitleMemoryNotFoundError(TitleMemoryServiceError):
    """Raised when a title memory does not exist."""

    def __init__(self, title_memory_id: str) -> None:
        self.title_memory_id = title_memory_id
        super().__init__(f"Title memory {title_memory_id} not found")


class TitleMemoryValidationError(TitleMemoryServiceError):
    """Raised when a submission is rejected.

    Attributes:
        message: Summary of the failure.
        errors: Every individual violation found.
    """

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        self.message = message
        self.errors = list(errors) if errors else [message]
        super().__init__(message)

    def __str__(self) -> str:
        if self.errors == [self.message]:
            return self.message
        return f"{self.message}: " + "; ".join(self.errors)


class InvalidExistingSkillsError(TitleMemoryValidationError):
    """Raised when the catalog does not recognise an existing skill id."""

    def __init__(self, skill_ids: list[str]) -> None:
        self.skill_ids = skill_ids
        super().__init__(
            "Invalid existing skills",
            [f"existingSkills rejected by catalog: {', '.join(skill_ids)}"],
        )


class InvalidExistingLearningOutcomesError(TitleMemoryValidationError):
    """Raised when the catalog does not recognise an existing outcome id."""

    def __init__(self, outcome_ids: list[str]) -> None:
        self.outcome_ids = outcome_ids
        super().__init__(
            "Invalid existing learning outcomes",
            [f"existinglearningOutcomes rejected by catalog: {', '.join(outcome_ids)}"],
        )


class UnresolvedSkillReferenceError(TitleMemoryValidationError):
    """Raised when a placeholder skill reference has no durable id."""

    def __init__(self, references: list[str]) -> None:
        self.references = references
        super().__init__(
            "Unresolved skill references",
            [f"skill reference {reference!r} does not match any skill" for reference in references],
        )


class TitleCodeExistsError(TitleMemoryValidationError):
    """Raised when a titleCode is already used by a non-deleted record."""

    def __init__(self, title_codes: list[str]) -> None:
        self.title_codes = title_codes
        super().__init__(
            "Title code already exists",
            [f"titleCode {code!r} is already in use" for code in title_codes],
        )


class AuthenticationRequiredError(TitleMemoryServiceError):
    """Raised when an operation needs an authenticated caller and has none."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Authentication required for {operation}")
