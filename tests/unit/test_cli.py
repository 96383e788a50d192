"""Tests for the buildtrack CLI commands that work on project files only."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from buildtrack.cli import app
from buildtrack.inventory.loader import load_project, save_project

runner = CliRunner()


@pytest.fixture
def project_file(tmp_path: Path) -> Path:
    path = tmp_path / "tower.yaml"
    result = runner.invoke(
        app,
        [
            "generate-structure",
            str(path),
            "--project",
            "tower-a",
            "--floors",
            "2",
            "--units",
            "2",
            "--start",
            "2024-01-01",
        ],
    )
    assert result.exit_code == 0, result.output
    return path


class TestCli:
    """Test file-based commands."""

    def test_generate_structure(self, project_file):
        snapshot = load_project(project_file)

        # Foundation, ground floor, two apartment floors, roof
        assert len(snapshot.levels) == 5
        assert snapshot.project_id == "tower-a"
        assert len(snapshot.catalog) == 12

    def test_generate_structure_refuses_overwrite(self, project_file):
        result = runner.invoke(app, ["generate-structure", str(project_file)])
        assert result.exit_code == 1

    def test_validate_ok(self, project_file):
        result = runner.invoke(app, ["validate", str(project_file)])
        assert result.exit_code == 0
        assert "valid" in result.output

    def test_validate_missing_file(self, tmp_path):
        result = runner.invoke(app, ["validate", str(tmp_path / "nope.yaml")])
        assert result.exit_code == 1

    def test_schedule_prints_tasks(self, project_file):
        result = runner.invoke(app, ["schedule", str(project_file), "--rate", "1"])
        assert result.exit_code == 0
        assert "0-STR" in result.output

    def test_progress_and_export(self, project_file, tmp_path):
        assert runner.invoke(app, ["progress", str(project_file)]).exit_code == 0

        out = tmp_path / "progress.csv"
        result = runner.invoke(app, ["export", str(project_file), "--output", str(out)])

        assert result.exit_code == 0
        assert out.read_text(encoding="utf-8-sig").startswith("Level,Unit,Phase")


@pytest.fixture
def bad_scope_file(project_file: Path) -> Path:
    snapshot = load_project(project_file)
    snapshot.levels[1] = snapshot.levels[1].model_copy(update={"active_phases": ["ghost"]})
    save_project(snapshot, project_file)
    return project_file


class TestCliUnknownScope:
    """Test commands reject a level scope naming an unknown phase."""

    def test_schedule_fails(self, bad_scope_file):
        result = runner.invoke(app, ["schedule", str(bad_scope_file)])

        assert result.exit_code == 1
        assert "ghost" in result.output
        assert "No tasks generated" not in result.output

    def test_progress_fails(self, bad_scope_file):
        result = runner.invoke(app, ["progress", str(bad_scope_file)])

        assert result.exit_code == 1
        assert "ghost" in result.output
