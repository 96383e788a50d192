"""Shared Pydantic models for the BuildTrack web API.

Request bodies carry a full project snapshot so the engine endpoints stay
stateless; the persistence endpoints reuse the same payload.

Usage:
    from buildtrack.web.models import ScheduleRequest

    @router.post("/schedule")
    async def schedule(request: ScheduleRequest):
        ...
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from buildtrack.catalog.phases import PhaseCatalog, default_catalog
from buildtrack.inventory.loader import ProjectSnapshot
from buildtrack.models import (
    FloorProgress,
    Level,
    Phase,
    ProgressRecord,
    ScheduleTask,
    Violation,
)
from buildtrack.progress.store import ProgressStore


# ============================================================================
# Project Payload
# ============================================================================


class ProjectPayload(BaseModel):
    """Project snapshot as sent by clients.

    An empty phase list means the stock catalog.
    """

    project_id: str = "default"
    name: Optional[str] = None
    start_date: Optional[date] = None
    phases: list[Phase] = Field(default_factory=list)
    levels: list[Level]
    progress: list[ProgressRecord] = Field(default_factory=list)

    def to_snapshot(self) -> ProjectSnapshot:
        """Build the engine snapshot.

        Raises:
            InvariantViolation: If the phase list has duplicate ids
        """
        catalog = PhaseCatalog(self.phases) if self.phases else default_catalog()
        return ProjectSnapshot(
            project_id=self.project_id,
            name=self.name or self.project_id,
            levels=list(self.levels),
            catalog=catalog,
            store=ProgressStore(self.progress),
            start_date=self.start_date,
        )


# ============================================================================
# Scheduling Models
# ============================================================================


class ScheduleRequest(BaseModel):
    """Used by: POST /api/schedule, POST /api/projects/{project_id}/schedule"""

    project: ProjectPayload
    start_date: Optional[date] = None
    rate_per_unit: Optional[Decimal] = Field(default=None, ge=0)
    stagger_days: Optional[int] = Field(default=None, ge=0)


class ScheduleResponse(BaseModel):
    project_id: str
    tasks: list[ScheduleTask]


class ScheduleSaveResponse(BaseModel):
    project_id: str
    inserted: int
    updated: int
    unchanged: int
    orphaned: list[str]


# ============================================================================
# Progress Models
# ============================================================================


class SubtaskUpdateRequest(BaseModel):
    """One checklist edit.

    Used by: POST /api/progress/subtask, POST /api/projects/{project_id}/progress/subtask
    """

    project: ProjectPayload
    unit_id: str
    phase_id: str
    subtask: str
    value: int = Field(ge=0, le=100)
    expected_version: Optional[int] = Field(default=None, ge=0)


class SubtaskUpdateResponse(BaseModel):
    record: ProgressRecord
    percentage: int
    global_progress: int


class ProgressSummaryResponse(BaseModel):
    project_id: str
    global_progress: int
    phase_averages: dict[str, int]
    floors: list[FloorProgress]


class ViolationsResponse(BaseModel):
    valid: bool
    violations: list[Violation]


class MassUpdateRequest(BaseModel):
    """Set one phase on many units at once.

    Used by: POST /api/progress/mass-update
    """

    project: ProjectPayload
    unit_ids: list[str]
    phase_id: str
    value: int = Field(ge=0, le=100)
    subtasks: list[str] = Field(default_factory=list)


class MassUpdateResponse(BaseModel):
    records: list[ProgressRecord]
    global_progress: int
