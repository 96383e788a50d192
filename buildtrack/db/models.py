"""SQLAlchemy async database models for BuildTrack.

Progress records are unique per (project, unit, phase); schedule tasks are
unique per (project, level order, phase code) so regeneration upserts.
"""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ProjectModel(Base):
    """Project summary row; ``progress`` is rewritten on every phase save."""

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True, index=True)
    display_name: Mapped[str | None] = mapped_column(Text)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("progress >= 0 AND progress <= 100", name="check_project_progress"),
    )


class ProgressRecordModel(Base):
    """Per (unit, phase) progress with its subtask map."""

    __tablename__ = "unit_progress"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    unit_id: Mapped[str] = mapped_column(Text, nullable=False)
    phase_id: Mapped[str] = mapped_column(Text, nullable=False)

    percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subtasks: Mapped[dict] = mapped_column(JSON, default=dict, nullable=False)

    # Optimistic concurrency token, bumped on every write
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("project_id", "unit_id", "phase_id", name="uq_unit_progress_key"),
        CheckConstraint("percentage >= 0 AND percentage <= 100", name="check_percentage_range"),
        Index("idx_unit_progress_unit", "project_id", "unit_id"),
    )


class ScheduleTaskModel(Base):
    """Generated schedule task."""

    __tablename__ = "tasks"

    id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    project_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    progress: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[str] = mapped_column(Text, nullable=False, default="not_started")

    # Natural key (level order, phase code)
    level_order: Mapped[int] = mapped_column(Integer, nullable=False)
    phase_code: Mapped[str] = mapped_column(Text, nullable=False)

    custom_id: Mapped[str | None] = mapped_column(Text)
    linked_phase_id: Mapped[str | None] = mapped_column(Text, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("project_id", "level_order", "phase_code", name="uq_tasks_natural_key"),
        CheckConstraint("end_date >= start_date", name="check_task_dates"),
    )
