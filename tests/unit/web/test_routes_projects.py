"""Tests for buildtrack.web.routes.projects - persisted progress and schedules."""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from buildtrack.errors import Conflict
from buildtrack.models import ProgressRecord, ScheduleTask
from buildtrack.scheduling.tasks import ScheduleDiff
from buildtrack.service import ProgressUpdate
from buildtrack.web.app import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def mock_db_session():
    """Mock database session with async context manager."""
    session = AsyncMock()

    async_cm = AsyncMock()
    async_cm.__aenter__.return_value = session
    async_cm.__aexit__.return_value = None

    return async_cm


@pytest.fixture
def project_payload() -> dict:
    return {
        "project_id": "tower-a",
        "start_date": "2024-01-01",
        "levels": [
            {"id": "L1", "label": "Level 1", "order": 1, "units": [{"id": "U1", "name": "Apt 1"}]},
        ],
    }


def _task(order: int, code: str) -> ScheduleTask:
    return ScheduleTask(
        name=f"{code} - Level {order}",
        start=date(2024, 1, 1),
        end=date(2024, 1, 3),
        level_order=order,
        phase_code=code,
        custom_id=f"{order}-{code[1:]}",
    )


class TestSaveSchedule:
    """Tests for POST /api/projects/{project_id}/schedule."""

    @patch("buildtrack.web.routes.projects.ProgressService")
    @patch("buildtrack.web.routes.projects.get_session")
    def test_reports_diff(
        self, mock_get_session, mock_service_cls, client, mock_db_session, project_payload
    ):
        mock_get_session.return_value = mock_db_session
        service = MagicMock()
        service.generate_schedule = AsyncMock(
            return_value=ScheduleDiff(
                inserted=[_task(1, "#STR")],
                unchanged=[_task(1, "#MAS")],
                orphaned=[_task(2, "#STR")],
            )
        )
        mock_service_cls.return_value = service

        response = client.post(
            "/api/projects/tower-a/schedule", json={"project": project_payload}
        )

        assert response.status_code == 200
        assert response.json() == {
            "project_id": "tower-a",
            "inserted": 1,
            "updated": 0,
            "unchanged": 1,
            "orphaned": ["2-STR"],
        }
        args = service.generate_schedule.call_args.args
        assert args[0].project_id == "tower-a"
        assert args[1] == 2  # configured default rate

    def test_project_id_mismatch(self, client, project_payload):
        response = client.post(
            "/api/projects/other/schedule", json={"project": project_payload}
        )
        assert response.status_code == 400


class TestSaveSubtask:
    """Tests for POST /api/projects/{project_id}/progress/subtask."""

    @patch("buildtrack.web.routes.projects.ProgressRepository")
    @patch("buildtrack.web.routes.projects.ProgressService")
    @patch("buildtrack.web.routes.projects.get_session")
    def test_success(
        self,
        mock_get_session,
        mock_service_cls,
        mock_repo_cls,
        client,
        mock_db_session,
        project_payload,
    ):
        mock_get_session.return_value = mock_db_session
        mock_repo_cls.return_value.fetch_progress_records = AsyncMock(return_value=[])
        record = ProgressRecord(unit_id="U1", phase_id="structure", percentage=25, version=1)
        service = MagicMock()
        service.record_subtask_progress = AsyncMock(
            return_value=ProgressUpdate(record=record, percentage=25, global_progress=2)
        )
        mock_service_cls.return_value = service

        response = client.post(
            "/api/projects/tower-a/progress/subtask",
            json={
                "project": project_payload,
                "unit_id": "U1",
                "phase_id": "structure",
                "subtask": "Slab pour",
                "value": 100,
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["percentage"] == 25
        assert data["record"]["version"] == 1

    @patch("buildtrack.web.routes.projects.ProgressRepository")
    @patch("buildtrack.web.routes.projects.ProgressService")
    @patch("buildtrack.web.routes.projects.get_session")
    def test_conflict_is_409(
        self,
        mock_get_session,
        mock_service_cls,
        mock_repo_cls,
        client,
        mock_db_session,
        project_payload,
    ):
        mock_get_session.return_value = mock_db_session
        mock_repo_cls.return_value.fetch_progress_records = AsyncMock(return_value=[])
        service = MagicMock()
        service.record_subtask_progress = AsyncMock(
            side_effect=Conflict("U1", "structure", expected=0, actual=3)
        )
        mock_service_cls.return_value = service

        response = client.post(
            "/api/projects/tower-a/progress/subtask",
            json={
                "project": project_payload,
                "unit_id": "U1",
                "phase_id": "structure",
                "subtask": "Slab pour",
                "value": 100,
                "expected_version": 0,
            },
        )

        assert response.status_code == 409
        assert response.json()["actual"] == 3

    @patch("buildtrack.web.routes.projects.ProgressRepository")
    @patch("buildtrack.web.routes.projects.ProgressService")
    @patch("buildtrack.web.routes.projects.get_session")
    def test_unknown_unit_is_404(
        self,
        mock_get_session,
        mock_service_cls,
        mock_repo_cls,
        client,
        mock_db_session,
        project_payload,
    ):
        mock_get_session.return_value = mock_db_session
        mock_repo_cls.return_value.fetch_progress_records = AsyncMock(return_value=[])
        service = MagicMock()
        service.record_subtask_progress = AsyncMock(side_effect=KeyError("Unit not found: U9"))
        mock_service_cls.return_value = service

        response = client.post(
            "/api/projects/tower-a/progress/subtask",
            json={
                "project": project_payload,
                "unit_id": "U9",
                "phase_id": "structure",
                "subtask": "Slab pour",
                "value": 100,
            },
        )

        assert response.status_code == 404


class TestReadRoutes:
    """Tests for the GET routes."""

    @patch("buildtrack.web.routes.projects.ProgressRepository")
    @patch("buildtrack.web.routes.projects.get_session")
    def test_project_progress(self, mock_get_session, mock_repo_cls, client, mock_db_session):
        mock_get_session.return_value = mock_db_session
        mock_repo_cls.return_value.fetch_project_progress = AsyncMock(return_value=42)

        response = client.get("/api/projects/tower-a/progress")

        assert response.json() == {"project_id": "tower-a", "progress": 42}

    @patch("buildtrack.web.routes.projects.ProgressRepository")
    @patch("buildtrack.web.routes.projects.get_session")
    def test_project_progress_not_found(
        self, mock_get_session, mock_repo_cls, client, mock_db_session
    ):
        mock_get_session.return_value = mock_db_session
        mock_repo_cls.return_value.fetch_project_progress = AsyncMock(return_value=None)

        response = client.get("/api/projects/missing/progress")

        assert response.status_code == 404

    @patch("buildtrack.web.routes.projects.ProgressRepository")
    @patch("buildtrack.web.routes.projects.get_session")
    def test_tasks(self, mock_get_session, mock_repo_cls, client, mock_db_session):
        mock_get_session.return_value = mock_db_session
        mock_repo_cls.return_value.fetch_schedule_tasks = AsyncMock(
            return_value=[_task(1, "#STR")]
        )

        response = client.get("/api/projects/tower-a/tasks")

        assert response.status_code == 200
        assert response.json()[0]["custom_id"] == "1-STR"
