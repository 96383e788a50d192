"""Project persistence API routes.

Routes:
- GET /api/projects/{project_id}/progress - Stored project summary
- GET /api/projects/{project_id}/tasks - Stored schedule tasks
- POST /api/projects/{project_id}/schedule - Generate and upsert the schedule
- POST /api/projects/{project_id}/progress/subtask - Persist one checklist edit
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from buildtrack.config import get_config
from buildtrack.db.connection import get_session
from buildtrack.db.repository import ProgressRepository
from buildtrack.models import ScheduleTask
from buildtrack.progress.store import ProgressStore
from buildtrack.service import ProgressService
from buildtrack.web.models import (
    ScheduleRequest,
    ScheduleSaveResponse,
    SubtaskUpdateRequest,
    SubtaskUpdateResponse,
)

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _check_project_id(project_id: str, body_project_id: str) -> None:
    if project_id != body_project_id:
        raise HTTPException(
            status_code=400,
            detail=f"Path project '{project_id}' does not match body project '{body_project_id}'",
        )


@router.get("/{project_id}/progress")
async def get_project_progress(project_id: str):
    async with get_session() as session:
        progress = await ProgressRepository(session).fetch_project_progress(project_id)
    if progress is None:
        raise HTTPException(status_code=404, detail=f"Project not found: {project_id}")
    return {"project_id": project_id, "progress": progress}


@router.get("/{project_id}/tasks", response_model=list[ScheduleTask])
async def get_project_tasks(project_id: str):
    async with get_session() as session:
        return await ProgressRepository(session).fetch_schedule_tasks(project_id)


@router.post("/{project_id}/schedule", response_model=ScheduleSaveResponse)
async def save_schedule(project_id: str, request: ScheduleRequest):
    """Generate the schedule and reconcile it into storage by (level order, phase code)."""
    _check_project_id(project_id, request.project.project_id)
    snapshot = request.project.to_snapshot()
    if request.start_date is None and snapshot.start_date is None:
        raise HTTPException(status_code=422, detail="start_date is required")

    defaults = get_config().schedule
    async with get_session() as session:
        diff = await ProgressService(ProgressRepository(session)).generate_schedule(
            snapshot,
            request.rate_per_unit if request.rate_per_unit is not None else defaults.rate_per_unit,
            request.start_date,
            request.stagger_days if request.stagger_days is not None else defaults.stagger_days,
        )

    return ScheduleSaveResponse(
        project_id=project_id,
        inserted=len(diff.inserted),
        updated=len(diff.updated),
        unchanged=len(diff.unchanged),
        orphaned=[t.custom_id or str(t.id) for t in diff.orphaned],
    )


@router.post("/{project_id}/progress/subtask", response_model=SubtaskUpdateResponse)
async def save_subtask(project_id: str, request: SubtaskUpdateRequest):
    """Persist one checklist edit against stored progress.

    A stale ``expected_version`` is answered with 409.
    """
    _check_project_id(project_id, request.project.project_id)
    snapshot = request.project.to_snapshot()

    async with get_session() as session:
        repo = ProgressRepository(session)
        snapshot.store = ProgressStore(await repo.fetch_progress_records(project_id))
        try:
            update = await ProgressService(repo).record_subtask_progress(
                snapshot,
                request.unit_id,
                request.phase_id,
                request.subtask,
                request.value,
                expected_version=request.expected_version,
            )
        except KeyError as e:
            raise HTTPException(status_code=404, detail=str(e.args[0])) from e

    return SubtaskUpdateResponse(
        record=update.record,
        percentage=update.percentage,
        global_progress=update.global_progress,
    )
