# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.infrastructure.database.models import TitleMemory
from src.services import (
    CompetencyCatalogClient,
    PermissionsClient,
    SubjectStatusClient,
)


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def test_environment() -> dict[str, str]:
    """Provide test environment variables.

    Returns:
        Dictionary of environment variables for testing.
    """
    return {
        "ENVIRONMENT": "development",
        "DEBUG": "true",
        "LOG_LEVEL": "DEBUG",
        "DB_HOST": "localhost",
        "DB_PORT": "5432",
        "DB_PASSWORD": "test-password",
        "USERS_SERVICE_URL": "http://users.test",
        "PERMISSIONS_SERVICE_URL": "http://permissions.test",
        "SKILLS_SERVICE_URL": "http://skills.test",
        "SUBJECTS_SERVICE_URL": "http://subjects.test",
    }


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


def make_title_memory(**overrides: Any) -> TitleMemory:
    """Build a detached TitleMemory with realistic values."""
    values: dict[str, Any] = {
        "id": "9b2f6a4e-0d7c-4c1e-9a55-1f3f1d2b7c01",
        "title_code": "2501",
        "universities": ["UPM"],
        "centers": ["ETSII"],
        "name": "Computer Engineering",
        "academic_level": "Grado",
        "branch": "Engineering",
        "academic_field": "Computing",
        "status": "active",
        "year_delivery": 2021,
        "total_credits": 240,
        "distributed_credits": {"basic": 60, "mandatory": 120},
        "skills": ["s1"],
        "learning_outcomes": [{"o1": ["s1"]}],
        "user_id": "user-1",
        "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return TitleMemory(**values)


@pytest.fixture
def title_memory_factory():
    """Provide a builder for detached title memories."""
    return make_title_memory


@pytest.fixture
def sample_title_memory() -> TitleMemory:
    """Provide a stored, non-deleted title memory."""
    return make_title_memory()


@pytest.fixture
def sample_create_payload() -> dict[str, Any]:
    """Provide a creation payload in wire (camelCase) format."""
    return {
        "titleCode": "2501",
        "universities": ["UPM"],
        "centers": ["ETSII"],
        "name": "Computer Engineering",
        "academicLevel": "Grado",
        "branch": "Engineering",
        "academicField": "Computing",
        "status": "active",
        "yearDelivery": 2021,
        "totalCredits": 240,
        "distributedCredits": {"basic": 60, "mandatory": 120},
        "existingSkills": [],
        "skills": [],
        "existinglearningOutcomes": [],
        "learningOutcomes": [],
    }


@pytest.fixture
def mock_store():
    """Create mock title memory store."""
    store = MagicMock()
    store.find = AsyncMock(return_value=[])
    store.count = AsyncMock(return_value=0)
    store.get_by_id = AsyncMock(return_value=None)
    store.insert = AsyncMock(side_effect=lambda record: record)
    store.insert_many = AsyncMock(side_effect=lambda records: list(records))
    store.update_by_id = AsyncMock(return_value=None)
    store.find_active_title_codes = AsyncMock(return_value=set())
    return store


@pytest.fixture
def mock_catalog():
    """Create mock skills service client.

    Every existing id validates; created records get ids new-skill-N and
    new-outcome-N in submission order.
    """
    catalog = AsyncMock(spec=CompetencyCatalogClient)
    catalog.validate_skills.return_value = True
    catalog.validate_learning_outcomes.return_value = True
    catalog.create_skills.side_effect = lambda skills: [
        {"_id": f"new-skill-{index}", **skill} for index, skill in enumerate(skills, start=1)
    ]
    catalog.create_learning_outcomes.side_effect = lambda outcomes: [
        {"_id": f"new-outcome-{index}", **outcome} for index, outcome in enumerate(outcomes, start=1)
    ]
    return catalog


@pytest.fixture
def mock_subjects():
    """Create mock subjects service client."""
    subjects = AsyncMock(spec=SubjectStatusClient)
    subjects.change_status.return_value = {"message": "ok"}
    return subjects


@pytest.fixture
def mock_permissions():
    """Create mock permissions service client."""
    permissions = AsyncMock(spec=PermissionsClient)
    permissions.get_permitted_memory_ids.return_value = []
    return permissions
