# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for drift detection and the subject status cascade."""

import asyncio

import pytest

from src.domains.title_memory.drift import (
    CascadeStatus,
    CascadeTrigger,
    DriftDetector,
    DriftReport,
)
from src.services.exceptions import UpstreamServiceError


class TestDriftDetector:
    """Tests for DriftDetector."""

    def test_reordered_skills_are_not_drift(self) -> None:
        report = DriftDetector().detect(["a", "b"], ["b", "a"], [], [])

        assert report.changed is False

    def test_added_skill_is_drift(self) -> None:
        report = DriftDetector().detect(["s1"], ["s1", "s2"], [], [])

        assert report.skills_changed is True
        assert report.outcomes_changed is False

    def test_reordered_outcomes_and_skill_lists_are_not_drift(self) -> None:
        current = [{"o1": ["a", "b"]}, {"o2": ["c"]}]
        final = [{"o2": ["c"]}, {"o1": ["b", "a"]}]

        report = DriftDetector().detect([], [], current, final)

        assert report.changed is False

    def test_changed_outcome_skills_are_drift(self) -> None:
        report = DriftDetector().detect([], [], [{"o1": ["a"]}], [{"o1": ["a", "b"]}])

        assert report.outcomes_changed is True

    def test_removed_outcome_is_drift(self) -> None:
        report = DriftDetector().detect([], [], [{"o1": []}, {"o2": []}], [{"o1": []}])

        assert report.outcomes_changed is True


class TestCascadeTrigger:
    """Tests for CascadeTrigger."""

    @pytest.mark.asyncio
    async def test_no_drift_makes_no_call(self, mock_subjects) -> None:
        trigger = CascadeTrigger(mock_subjects)

        status = await trigger.trigger(DriftReport(False, False), "tok", "tm-1", [], [])

        assert status is CascadeStatus.NOT_REQUIRED
        mock_subjects.change_status.assert_not_called()

    @pytest.mark.asyncio
    async def test_drift_marks_subjects_incomplete(self, mock_subjects) -> None:
        trigger = CascadeTrigger(mock_subjects)

        status = await trigger.trigger(
            DriftReport(True, False), "tok", "tm-1", ["s1", "s2"], [{"o1": ["s1"]}]
        )

        assert status is CascadeStatus.DELIVERED
        mock_subjects.change_status.assert_awaited_once_with(
            "tok",
            "tm-1",
            "incomplete",
            skills=["s1", "s2"],
            learning_outcomes=[{"o1": ["s1"]}],
        )

    @pytest.mark.asyncio
    async def test_failed_delivery_is_reported_not_raised(self, mock_subjects) -> None:
        mock_subjects.change_status.side_effect = UpstreamServiceError("down", service="subjects")
        trigger = CascadeTrigger(mock_subjects)

        status = await trigger.trigger(DriftReport(True, True), "tok", "tm-1", [], [])

        assert status is CascadeStatus.FAILED

    @pytest.mark.asyncio
    async def test_background_mode_schedules_delivery(self, mock_subjects) -> None:
        trigger = CascadeTrigger(mock_subjects, mode="background")

        status = await trigger.trigger(DriftReport(True, False), "tok", "tm-1", ["s1"], [])
        await asyncio.sleep(0)

        assert status is CascadeStatus.SCHEDULED
        mock_subjects.change_status.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_background_failure_is_swallowed(self, mock_subjects) -> None:
        mock_subjects.change_status.side_effect = UpstreamServiceError("down", service="subjects")
        trigger = CascadeTrigger(mock_subjects, mode="background")

        status = await trigger.trigger(DriftReport(True, False), "tok", "tm-1", ["s1"], [])
        await asyncio.sleep(0)

        assert status is CascadeStatus.SCHEDULED
