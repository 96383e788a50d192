"""Unit tests for schedule task bookkeeping and regeneration merge."""

from __future__ import annotations

from datetime import date

import pytest

from buildtrack.models import ScheduleTask, TaskStatus
from buildtrack.scheduling.line_of_balance import generate_schedule
from buildtrack.scheduling.tasks import (
    is_active,
    is_overdue,
    reconcile_schedule,
    status_for_percentage,
    sync_task_progress,
)


def _task(**overrides) -> ScheduleTask:
    fields = dict(
        name="Alpha - Level 1",
        start=date(2024, 1, 1),
        end=date(2024, 1, 7),
        level_order=1,
        phase_code="#A",
    )
    fields.update(overrides)
    return ScheduleTask(**fields)


class TestTaskStatus:
    """Test status derivation and progress sync."""

    @pytest.mark.parametrize(
        "pct,expected",
        [
            (0, TaskStatus.NOT_STARTED),
            (1, TaskStatus.IN_PROGRESS),
            (99, TaskStatus.IN_PROGRESS),
            (100, TaskStatus.COMPLETED),
        ],
    )
    def test_status_for_percentage(self, pct, expected):
        assert status_for_percentage(pct) == expected

    def test_sync_returns_updated_copy(self):
        task = _task()
        synced = sync_task_progress(task, 60)

        assert synced.progress == 60
        assert synced.status == TaskStatus.IN_PROGRESS
        assert synced.id == task.id
        assert task.progress == 0

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            _task(start=date(2024, 1, 7), end=date(2024, 1, 1))


class TestOverdue:
    """Test overdue and active checks."""

    def test_overdue_when_past_end_and_not_completed(self):
        task = _task(status=TaskStatus.IN_PROGRESS, progress=50)
        assert is_overdue(task, date(2024, 1, 8))
        assert not is_overdue(task, date(2024, 1, 7))

    def test_completed_is_never_overdue(self):
        task = _task(status=TaskStatus.COMPLETED, progress=100)
        assert not is_overdue(task, date(2025, 1, 1))

    def test_active_within_window(self):
        task = _task()
        assert is_active(task, date(2024, 1, 3))
        assert not is_active(task, date(2024, 2, 1))

    def test_in_progress_is_active_outside_window(self):
        task = _task(status=TaskStatus.IN_PROGRESS, progress=10)
        assert is_active(task, date(2024, 3, 1))


class TestReconcileSchedule:
    """Test upsert-by-natural-key merging."""

    def test_first_generation_inserts_everything(self, sample_levels, two_phase_catalog):
        generated = generate_schedule(sample_levels, two_phase_catalog, date(2024, 1, 1), 2)

        diff = reconcile_schedule([], generated)

        assert diff.inserted == generated
        assert diff.batch == generated
        assert diff.has_changes

    def test_regeneration_is_idempotent(self, sample_levels, two_phase_catalog):
        first = generate_schedule(sample_levels, two_phase_catalog, date(2024, 1, 1), 2)
        again = generate_schedule(sample_levels, two_phase_catalog, date(2024, 1, 1), 2)

        diff = reconcile_schedule(first, again)

        assert not diff.has_changes
        assert len(diff.unchanged) == len(first)
        assert {t.id for t in diff.unchanged} == {t.id for t in first}

    def test_updates_keep_identity_and_progress(self, sample_levels, two_phase_catalog):
        stored = [
            sync_task_progress(t, 40)
            for t in generate_schedule(sample_levels, two_phase_catalog, date(2024, 1, 1), 2)
        ]
        moved = generate_schedule(sample_levels, two_phase_catalog, date(2024, 2, 1), 2)

        diff = reconcile_schedule(stored, moved)

        assert len(diff.updated) == len(stored)
        assert not diff.inserted
        for old, new in zip(stored, diff.updated):
            assert new.id == old.id
            assert new.progress == 40
            assert new.status == TaskStatus.IN_PROGRESS
            assert new.start.month == 2

    def test_removed_tasks_are_reported_as_orphaned(self, two_phase_catalog, sample_levels):
        stored = generate_schedule(sample_levels, two_phase_catalog, date(2024, 1, 1), 2)
        scoped = [lvl.model_copy(update={"active_phases": ["A"]}) for lvl in sample_levels]

        diff = reconcile_schedule(stored, generate_schedule(scoped, two_phase_catalog, date(2024, 1, 1), 2))

        assert sorted(t.natural_key for t in diff.orphaned) == [(1, "#B"), (2, "#B")]
        assert len(diff.unchanged) == 2
