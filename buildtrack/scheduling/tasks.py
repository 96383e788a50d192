"""Schedule task bookkeeping: status, overdue checks and regeneration merge."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from buildtrack.models import ScheduleTask, TaskStatus


@dataclass(slots=True)
class ScheduleDiff:
    """Outcome of merging a regenerated schedule into the stored one."""

    inserted: list[ScheduleTask] = field(default_factory=list)
    updated: list[ScheduleTask] = field(default_factory=list)
    unchanged: list[ScheduleTask] = field(default_factory=list)
    orphaned: list[ScheduleTask] = field(default_factory=list)  # Stored, no longer generated

    @property
    def batch(self) -> list[ScheduleTask]:
        """Tasks to upsert."""
        return self.inserted + self.updated

    @property
    def has_changes(self) -> bool:
        return bool(self.inserted or self.updated)


def status_for_percentage(pct: int) -> TaskStatus:
    if pct >= 100:
        return TaskStatus.COMPLETED
    if pct > 0:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.NOT_STARTED


def sync_task_progress(task: ScheduleTask, pct: int) -> ScheduleTask:
    """Copy a unit-phase percentage into its linked schedule task."""
    return task.model_copy(update={"progress": pct, "status": status_for_percentage(pct)})


def is_overdue(task: ScheduleTask, today: date) -> bool:
    return task.status != TaskStatus.COMPLETED and task.end < today


def is_active(task: ScheduleTask, today: date) -> bool:
    if task.status == TaskStatus.COMPLETED:
        return False
    return task.status == TaskStatus.IN_PROGRESS or task.start <= today <= task.end


def reconcile_schedule(
    existing: Iterable[ScheduleTask],
    generated: Iterable[ScheduleTask],
) -> ScheduleDiff:
    """Merge a regenerated schedule into stored tasks by natural key.

    Matching tasks keep their id, progress and status and take the new
    name, description and dates. Unmatched generated tasks are inserted.
    Stored tasks no longer generated are reported, not deleted.
    """
    stored = {task.natural_key: task for task in existing}
    diff = ScheduleDiff()
    seen: set[tuple[int, str]] = set()

    for task in generated:
        key = task.natural_key
        seen.add(key)
        current = stored.get(key)
        if current is None:
            diff.inserted.append(task)
            continue

        merged = current.model_copy(
            update={
                "name": task.name,
                "description": task.description,
                "start": task.start,
                "end": task.end,
                "custom_id": task.custom_id,
                "linked_phase_id": task.linked_phase_id,
            }
        )
        if merged == current:
            diff.unchanged.append(current)
        else:
            diff.updated.append(merged)

    diff.orphaned = [task for key, task in stored.items() if key not in seen]
    return diff
