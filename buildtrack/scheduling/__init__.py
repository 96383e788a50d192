"""Line-of-balance schedule generation."""

from buildtrack.scheduling.line_of_balance import (
    FLOOR_STAGGER_DAYS,
    generate_schedule,
    phase_duration_days,
)
from buildtrack.scheduling.tasks import (
    ScheduleDiff,
    is_active,
    is_overdue,
    reconcile_schedule,
    status_for_percentage,
    sync_task_progress,
)

__all__ = [
    "FLOOR_STAGGER_DAYS",
    "ScheduleDiff",
    "generate_schedule",
    "is_active",
    "is_overdue",
    "phase_duration_days",
    "reconcile_schedule",
    "status_for_percentage",
    "sync_task_progress",
]
