"""Progress and schedule business operations.

Glues the pure engines to the persistence collaborator: every phase save
persists the record, rewrites the project summary and refreshes the linked
schedule task; schedule generation writes one reconciled batch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from buildtrack.db.repository import ProgressRepository
from buildtrack.inventory.loader import ProjectSnapshot
from buildtrack.models import Level, ProgressRecord
from buildtrack.progress.aggregation import (
    compute_floor_average,
    compute_global_progress,
    set_subtask_progress,
)
from buildtrack.scheduling.line_of_balance import FLOOR_STAGGER_DAYS, generate_schedule
from buildtrack.scheduling.tasks import ScheduleDiff, reconcile_schedule, sync_task_progress
from buildtrack.validation.validator import ensure_valid

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProgressUpdate:
    record: ProgressRecord
    percentage: int
    global_progress: int


class ProgressService:
    """Orchestrates engine calls and outbound persistence commands."""

    def __init__(self, repository: ProgressRepository):
        self.repository = repository

    def _level_of(self, snapshot: ProjectSnapshot, unit_id: str) -> Level:
        for level in snapshot.levels:
            if any(unit.id == unit_id for unit in level.units):
                return level
        raise KeyError(f"Unit not found in project {snapshot.project_id}: {unit_id}")

    async def record_subtask_progress(
        self,
        snapshot: ProjectSnapshot,
        unit_id: str,
        phase_id: str,
        subtask_name: str,
        value: int,
        expected_version: int | None = None,
    ) -> ProgressUpdate:
        """Apply one checklist edit and persist everything derived from it.

        The snapshot's store is only updated once the record is persisted.

        Raises:
            KeyError: If the unit is not part of the project
            InvalidPhaseReference: If phase_id is unknown
            Conflict: If the stored record changed since it was read
        """
        level = self._level_of(snapshot, unit_id)

        working = snapshot.store.copy()
        percentage = set_subtask_progress(
            working, snapshot.catalog, unit_id, phase_id, subtask_name, value
        )
        record = working.get(unit_id, phase_id)

        saved = await self.repository.upsert_progress_record(
            snapshot.project_id, record, expected_version=expected_version
        )
        snapshot.store.put(saved)

        global_progress = compute_global_progress(snapshot.store, snapshot.levels, snapshot.catalog)
        await self.repository.update_project_summary(snapshot.project_id, global_progress)

        await self._sync_linked_task(snapshot, level, phase_id)

        logger.info(
            "Progress saved: project=%s unit=%s phase=%s -> %d%% (project %d%%)",
            snapshot.project_id,
            unit_id,
            phase_id,
            percentage,
            global_progress,
        )
        return ProgressUpdate(record=saved, percentage=percentage, global_progress=global_progress)

    async def _sync_linked_task(self, snapshot: ProjectSnapshot, level: Level, phase_id: str) -> None:
        phase = snapshot.catalog.get(phase_id)
        key = (level.order, phase.code)
        tasks = await self.repository.fetch_schedule_tasks(snapshot.project_id)
        linked = [t for t in tasks if t.natural_key == key]
        if not linked:
            return

        floor_pct = compute_floor_average(snapshot.store, level, phase_id, snapshot.catalog)
        if floor_pct < 0:
            return
        await self.repository.upsert_schedule_tasks(
            snapshot.project_id, [sync_task_progress(t, floor_pct) for t in linked]
        )

    async def generate_schedule(
        self,
        snapshot: ProjectSnapshot,
        rate_per_unit: float | Decimal,
        start_date: date | None = None,
        stagger_days: int = FLOOR_STAGGER_DAYS,
    ) -> ScheduleDiff:
        """Validate, generate and upsert the project schedule as one batch.

        Raises:
            InvariantViolation: If the inventory/catalog is invalid
            EmptyScheduleInput: If there are no levels or phases
            ValueError: If no start date is available
        """
        start = start_date or snapshot.start_date
        if start is None:
            raise ValueError(f"Project {snapshot.project_id} has no start date")

        ensure_valid(snapshot.levels, snapshot.catalog)
        generated = generate_schedule(
            snapshot.levels, snapshot.catalog, start, rate_per_unit, stagger_days
        )

        existing = await self.repository.fetch_schedule_tasks(snapshot.project_id)
        diff = reconcile_schedule(existing, generated)
        if diff.has_changes:
            await self.repository.upsert_schedule_tasks(snapshot.project_id, diff.batch)

        logger.info(
            "Schedule for %s: %d inserted, %d updated, %d unchanged, %d orphaned",
            snapshot.project_id,
            len(diff.inserted),
            len(diff.updated),
            len(diff.unchanged),
            len(diff.orphaned),
        )
        return diff
