"""Persistence collaborator for the progress and schedule engines.

Narrow upsert/query interface over the relational store. Storage errors
(SQLAlchemyError) are not caught or interpreted here, and nothing is retried.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from buildtrack.db.models import ProgressRecordModel, ProjectModel, ScheduleTaskModel
from buildtrack.errors import Conflict
from buildtrack.models import ProgressRecord, ScheduleTask, TaskStatus

logger = logging.getLogger(__name__)


def _to_record(row: ProgressRecordModel) -> ProgressRecord:
    return ProgressRecord(
        unit_id=row.unit_id,
        phase_id=row.phase_id,
        percentage=row.percentage,
        subtasks=row.subtasks or {},
        updated_at=row.updated_at,
        version=row.version,
    )


def _to_task(row: ScheduleTaskModel) -> ScheduleTask:
    return ScheduleTask(
        id=row.id,
        name=row.name,
        description=row.description or "",
        start=row.start_date,
        end=row.end_date,
        progress=row.progress,
        status=TaskStatus(row.status),
        level_order=row.level_order,
        phase_code=row.phase_code,
        custom_id=row.custom_id,
        linked_phase_id=row.linked_phase_id,
    )


class ProgressRepository:
    """Async repository for progress records, schedule tasks and project summaries."""

    def __init__(self, session: AsyncSession):
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def upsert_progress_record(
        self,
        project_id: str,
        record: ProgressRecord,
        expected_version: int | None = None,
    ) -> ProgressRecord:
        """Insert or update one (unit, phase) record with a version check.

        Args:
            project_id: Project identifier
            record: Record to write
            expected_version: Version the caller last read; defaults to
                ``record.version``. 0 means "record must not exist yet".

        Returns:
            The written record carrying its new version

        Raises:
            Conflict: If the stored version differs from expected_version
            SQLAlchemyError: If database operation fails
        """
        expected = record.version if expected_version is None else expected_version

        stmt = select(ProgressRecordModel).where(
            and_(
                ProgressRecordModel.project_id == project_id,
                ProgressRecordModel.unit_id == record.unit_id,
                ProgressRecordModel.phase_id == record.phase_id,
            )
        )
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        subtasks = {name: entry.model_dump(mode="json") for name, entry in record.subtasks.items()}

        if row is None:
            if expected != 0:
                raise Conflict(record.unit_id, record.phase_id, expected, 0)
            row = ProgressRecordModel(
                project_id=project_id,
                unit_id=record.unit_id,
                phase_id=record.phase_id,
                percentage=record.percentage,
                subtasks=subtasks,
                updated_at=record.updated_at,
                version=1,
            )
            self.session.add(row)
        else:
            if row.version != expected:
                raise Conflict(record.unit_id, record.phase_id, expected, row.version)
            row.percentage = record.percentage
            row.subtasks = subtasks
            row.updated_at = record.updated_at
            row.version = row.version + 1

        await self.session.flush()
        return record.model_copy(update={"version": row.version})

    async def fetch_progress_records(self, project_id: str) -> list[ProgressRecord]:
        stmt = select(ProgressRecordModel).where(ProgressRecordModel.project_id == project_id)
        rows = (await self.session.execute(stmt)).scalars().all()
        return [_to_record(row) for row in rows]

    async def delete_unit_progress(self, project_id: str, unit_ids: Iterable[str]) -> int:
        """Cascade delete for explicit unit/level removal."""
        unit_ids = list(unit_ids)
        if not unit_ids:
            return 0
        result = await self.session.execute(
            delete(ProgressRecordModel).where(
                and_(
                    ProgressRecordModel.project_id == project_id,
                    ProgressRecordModel.unit_id.in_(unit_ids),
                )
            )
        )
        return result.rowcount or 0

    async def upsert_schedule_tasks(self, project_id: str, batch: Iterable[ScheduleTask]) -> int:
        """Write a task batch keyed by (level order, phase code).

        A task whose natural key already exists updates that row in place
        instead of appending a duplicate.

        Returns:
            Number of tasks written
        """
        batch = list(batch)
        stmt = select(ScheduleTaskModel).where(ScheduleTaskModel.project_id == project_id)
        existing = {
            (row.level_order, row.phase_code): row
            for row in (await self.session.execute(stmt)).scalars().all()
        }

        for task in batch:
            row = existing.get(task.natural_key)
            if row is None:
                row = ScheduleTaskModel(
                    id=task.id,
                    project_id=project_id,
                    level_order=task.level_order,
                    phase_code=task.phase_code,
                )
                self.session.add(row)
                existing[task.natural_key] = row

            row.name = task.name
            row.description = task.description
            row.start_date = task.start
            row.end_date = task.end
            row.progress = task.progress
            row.status = task.status.value
            row.custom_id = task.custom_id
            row.linked_phase_id = task.linked_phase_id

        await self.session.flush()
        logger.info("Upserted %d schedule tasks for project %s", len(batch), project_id)
        return len(batch)

    async def fetch_schedule_tasks(self, project_id: str) -> list[ScheduleTask]:
        stmt = (
            select(ScheduleTaskModel)
            .where(ScheduleTaskModel.project_id == project_id)
            .order_by(ScheduleTaskModel.level_order, ScheduleTaskModel.start_date)
        )
        rows = (await self.session.execute(stmt)).scalars().all()
        return [_to_task(row) for row in rows]

    async def update_project_summary(self, project_id: str, global_progress: int) -> None:
        """Persist the project-wide percentage on the project row."""
        if not 0 <= global_progress <= 100:
            raise ValueError(f"global_progress must be between 0 and 100, got {global_progress}")

        stmt = select(ProjectModel).where(ProjectModel.project_id == project_id)
        project = (await self.session.execute(stmt)).scalar_one_or_none()
        if project is None:
            project = ProjectModel(project_id=project_id, display_name=project_id)
            self.session.add(project)

        project.progress = global_progress
        project.updated_at = datetime.utcnow()
        await self.session.flush()

    async def fetch_project_progress(self, project_id: str) -> int | None:
        stmt = select(ProjectModel.progress).where(ProjectModel.project_id == project_id)
        return (await self.session.execute(stmt)).scalar_one_or_none()
