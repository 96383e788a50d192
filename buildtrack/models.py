"""BuildTrack Pydantic models for type-safe data validation.

Inventory (Level, Unit), phase catalog entries, progress records and
generated schedule tasks. All percentages are integers in [0, 100].
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Annotated, Literal, Union
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator


class LevelType(str, Enum):
    """Vertical tier kinds of a building."""

    FOUNDATION = "foundation"
    BASEMENT = "basement"
    GARAGE = "garage"
    COMMON = "common"
    APARTMENTS = "apartments"
    ROOF = "roof"


class UnitType(str, Enum):
    """Addressable space kinds within a level."""

    UNIT = "unit"
    COMMON = "common"
    GARAGE = "garage"
    COMMERCIAL = "commercial"


class TaskStatus(str, Enum):
    """Schedule task lifecycle."""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Unit(BaseModel):
    """An apartment, garage stall or common room on a level."""

    id: str
    name: str
    type: UnitType = UnitType.UNIT


class Level(BaseModel):
    """One vertical building tier (floor, basement, roof...)."""

    id: str
    label: str
    type: LevelType = LevelType.APARTMENTS
    order: int  # Unique per project; vertical position and stagger sequence
    active_phases: list[str] = Field(default_factory=list)  # Empty = all phases apply
    units: list[Unit] = Field(default_factory=list)

    @field_validator("active_phases", mode="before")
    @classmethod
    def none_means_all(cls, v):
        return [] if v is None else v

    def applies_to(self, phase_id: str) -> bool:
        """Check whether a phase is in scope for this level."""
        return not self.active_phases or phase_id in self.active_phases

    @property
    def unit_count(self) -> int:
        return len(self.units)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "L_APT_1",
                "label": "1st Floor",
                "type": "apartments",
                "order": 3,
                "active_phases": [],
                "units": [
                    {"id": "U_APT_101", "name": "Apt 101", "type": "unit"},
                    {"id": "U_APT_HAL_1", "name": "Hall 1", "type": "common"},
                ],
            }
        }


class Phase(BaseModel):
    """A construction trade/stage with an ordered subtask checklist."""

    id: str
    label: str
    code: str
    color: str = "slate"
    icon: str = "Box"
    subtasks: list[str] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "id": "structure",
                "label": "STRUCTURE",
                "code": "#STR",
                "color": "stone",
                "icon": "Box",
                "subtasks": ["Slab pour", "Beams and columns", "Stairs", "Concrete curing"],
            }
        }


class SubtaskProgress(BaseModel):
    """Progress of one checklist item on one unit."""

    progress: int = Field(default=0, ge=0, le=100)
    attachments: list[str] = Field(default_factory=list)  # Photo/document URLs


class ProgressRecord(BaseModel):
    """Per (unit, phase) progress, keyed by (unit_id, phase_id)."""

    unit_id: str
    phase_id: str
    percentage: int = Field(default=0, ge=0, le=100)
    subtasks: dict[str, SubtaskProgress] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    version: int = 0  # Optimistic concurrency token; 0 = never persisted

    @property
    def key(self) -> tuple[str, str]:
        return (self.unit_id, self.phase_id)


class ScheduleTask(BaseModel):
    """Generated schedule entry for one phase on one level."""

    id: UUID = Field(default_factory=uuid4)
    name: str
    description: str = ""
    start: date
    end: date
    progress: int = Field(default=0, ge=0, le=100)
    status: TaskStatus = TaskStatus.NOT_STARTED
    level_order: int
    phase_code: str
    custom_id: str | None = None  # Display id, e.g. "3-EST"
    linked_phase_id: str | None = None

    @field_validator("end")
    @classmethod
    def end_not_before_start(cls, v: date, info) -> date:
        start = info.data.get("start")
        if start is not None and v < start:
            raise ValueError("end must not be before start")
        return v

    @property
    def natural_key(self) -> tuple[int, str]:
        """Stable identity across regenerations."""
        return (self.level_order, self.phase_code)

    @property
    def duration_days(self) -> int:
        return (self.end - self.start).days


class NotApplicable(BaseModel):
    kind: Literal["not_applicable"] = "not_applicable"

    def as_percentage(self) -> int:
        return -1


class NotStarted(BaseModel):
    kind: Literal["not_started"] = "not_started"

    def as_percentage(self) -> int:
        return 0


class InProgress(BaseModel):
    kind: Literal["in_progress"] = "in_progress"
    percentage: int = Field(ge=1, le=99)

    def as_percentage(self) -> int:
        return self.percentage


class Complete(BaseModel):
    kind: Literal["complete"] = "complete"

    def as_percentage(self) -> int:
        return 100


PhaseState = Annotated[
    Union[NotApplicable, NotStarted, InProgress, Complete],
    Field(discriminator="kind"),
]


class Violation(BaseModel):
    """A single configuration problem reported by the validator."""

    code: str  # "duplicate_level_order", "unknown_active_phase", ...
    message: str
    subject: str | None = None  # Offending level/phase/unit id


class FloorProgress(BaseModel):
    """Per-phase averages of one level (-1 = phase not applicable)."""

    level_id: str
    order: int
    label: str
    averages: dict[str, int] = Field(default_factory=dict)
