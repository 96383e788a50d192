"""Database layer for BuildTrack with async SQLAlchemy."""

from buildtrack.db.connection import get_session, init_db
from buildtrack.db.models import Base, ProgressRecordModel, ProjectModel, ScheduleTaskModel
from buildtrack.db.repository import ProgressRepository

__all__ = [
    "Base",
    "ProgressRecordModel",
    "ProgressRepository",
    "ProjectModel",
    "ScheduleTaskModel",
    "get_session",
    "init_db",
]
