"""Stateless engine API routes.

Every endpoint takes a full project snapshot in the body and returns the
computed result; nothing is persisted.

Routes:
- POST /api/validate - Inventory and phase-catalog violations
- POST /api/schedule - Line-of-balance schedule
- POST /api/progress - Floor matrix, phase averages and global progress
- POST /api/progress/subtask - Apply one checklist edit
- POST /api/progress/mass-update - Set one phase on many units
- POST /api/progress/fronts - Work fronts per phase
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from buildtrack.config import ScheduleConfig
from buildtrack.progress.aggregation import (
    compute_floor_progress,
    compute_global_progress,
    compute_phase_averages,
    mass_update,
    set_subtask_progress,
)
from buildtrack.progress.fronts import summarize_phase_flow
from buildtrack.scheduling.line_of_balance import generate_schedule
from buildtrack.validation.validator import ensure_valid, validate
from buildtrack.web.models import (
    MassUpdateRequest,
    MassUpdateResponse,
    ProgressSummaryResponse,
    ProjectPayload,
    ScheduleRequest,
    ScheduleResponse,
    SubtaskUpdateRequest,
    SubtaskUpdateResponse,
    ViolationsResponse,
)

router = APIRouter(prefix="/api", tags=["engine"])


@router.post("/validate", response_model=ViolationsResponse)
async def validate_project(payload: ProjectPayload):
    snapshot = payload.to_snapshot()
    violations = validate(snapshot.levels, snapshot.catalog)
    return ViolationsResponse(valid=not violations, violations=violations)


@router.post("/schedule", response_model=ScheduleResponse)
async def build_schedule(request: ScheduleRequest):
    """Generate the schedule without storing it.

    Rate and stagger fall back to the stock defaults (2 days/unit, 5 days).
    """
    snapshot = request.project.to_snapshot()
    ensure_valid(snapshot.levels, snapshot.catalog)

    defaults = ScheduleConfig()
    start = request.start_date or snapshot.start_date
    if start is None:
        raise HTTPException(status_code=422, detail="start_date is required")

    tasks = generate_schedule(
        snapshot.levels,
        snapshot.catalog,
        start,
        request.rate_per_unit if request.rate_per_unit is not None else defaults.rate_per_unit,
        request.stagger_days if request.stagger_days is not None else defaults.stagger_days,
    )
    return ScheduleResponse(project_id=snapshot.project_id, tasks=tasks)


@router.post("/progress", response_model=ProgressSummaryResponse)
async def progress_summary(payload: ProjectPayload):
    snapshot = payload.to_snapshot()
    return ProgressSummaryResponse(
        project_id=snapshot.project_id,
        global_progress=compute_global_progress(snapshot.store, snapshot.levels, snapshot.catalog),
        phase_averages=compute_phase_averages(snapshot.store, snapshot.levels, snapshot.catalog),
        floors=compute_floor_progress(snapshot.store, snapshot.levels, snapshot.catalog),
    )


@router.post("/progress/subtask", response_model=SubtaskUpdateResponse)
async def update_subtask(request: SubtaskUpdateRequest):
    """Apply one checklist edit to the submitted snapshot and return the result."""
    snapshot = request.project.to_snapshot()
    percentage = set_subtask_progress(
        snapshot.store,
        snapshot.catalog,
        request.unit_id,
        request.phase_id,
        request.subtask,
        request.value,
    )
    return SubtaskUpdateResponse(
        record=snapshot.store.get(request.unit_id, request.phase_id),
        percentage=percentage,
        global_progress=compute_global_progress(snapshot.store, snapshot.levels, snapshot.catalog),
    )


@router.post("/progress/mass-update", response_model=MassUpdateResponse)
async def mass_update_phase(request: MassUpdateRequest):
    snapshot = request.project.to_snapshot()
    records = mass_update(
        snapshot.store,
        snapshot.catalog,
        request.unit_ids,
        request.phase_id,
        request.value,
        request.subtasks,
    )
    return MassUpdateResponse(
        records=records,
        global_progress=compute_global_progress(snapshot.store, snapshot.levels, snapshot.catalog),
    )


@router.post("/progress/fronts")
async def work_fronts(payload: ProjectPayload):
    """Per-phase completed/active/pending floors."""
    snapshot = payload.to_snapshot()
    flows = summarize_phase_flow(snapshot.store, snapshot.levels, snapshot.catalog)
    return {
        phase_id: {
            "total_floors": flow.total_floors,
            "completed_count": flow.completed_count,
            "completion_pct": flow.completion_pct,
            "last_completed": flow.last_completed,
            "active_fronts": [
                {"level_id": f.level_id, "label": f.label, "progress": f.progress}
                for f in flow.active_fronts
            ],
            "pending_floors": flow.pending_floors,
        }
        for phase_id, flow in flows.items()
    }
