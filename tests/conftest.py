"""Pytest configuration and fixtures for BuildTrack tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

from datetime import date

import pytest

from buildtrack.catalog.phases import PhaseCatalog
from buildtrack.config import reset_config
from buildtrack.inventory.loader import ProjectSnapshot
from buildtrack.models import Level, LevelType, Phase, ProgressRecord, Unit, UnitType
from buildtrack.progress.store import ProgressStore


@pytest.fixture
def test_project_id() -> str:
    """Test project ID."""
    return "test-project"


@pytest.fixture
def two_phase_catalog() -> PhaseCatalog:
    """Catalog [A, B] with four-item checklists."""
    return PhaseCatalog(
        [
            Phase(id="A", label="A", code="#A", subtasks=["a1", "a2", "a3", "a4"]),
            Phase(id="B", label="B", code="#B", subtasks=["b1", "b2", "b3", "b4"]),
        ]
    )


@pytest.fixture
def sample_levels() -> list[Level]:
    """Ground floor with 3 units, first floor with 5 units."""
    return [
        Level(
            id="L1",
            label="Ground Floor",
            type=LevelType.COMMON,
            order=1,
            units=[Unit(id=f"U1{i}", name=f"Room {i}", type=UnitType.COMMON) for i in range(3)],
        ),
        Level(
            id="L2",
            label="Floor 1",
            order=2,
            units=[Unit(id=f"U2{i}", name=f"Apt {101 + i}") for i in range(5)],
        ),
    ]


@pytest.fixture
def sample_store() -> ProgressStore:
    """Progress for phase A on the ground floor."""
    return ProgressStore(
        [
            ProgressRecord(unit_id="U10", phase_id="A", percentage=100),
            ProgressRecord(unit_id="U11", phase_id="A", percentage=50),
        ]
    )


@pytest.fixture
def sample_snapshot(
    test_project_id: str,
    sample_levels: list[Level],
    two_phase_catalog: PhaseCatalog,
    sample_store: ProgressStore,
) -> ProjectSnapshot:
    """Complete project snapshot built from the sample fixtures."""
    return ProjectSnapshot(
        project_id=test_project_id,
        name="Test Tower",
        levels=sample_levels,
        catalog=two_phase_catalog,
        store=sample_store,
        start_date=date(2024, 1, 1),
    )


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    reset_config()
    yield
    reset_config()
