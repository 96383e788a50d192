"""Unit tests for project file loading."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
import yaml

from buildtrack.inventory.loader import (
    dump_project,
    load_project,
    parse_project,
    save_project,
)

PROJECT_YAML = """
project_id: tower-a
name: Tower A
start_date: 2024-01-01
phases:
  - {id: A, label: Alpha, code: "#A", subtasks: [a1, a2]}
  - {id: B, label: Bravo, code: "#B"}
levels:
  - id: L1
    label: Ground Floor
    order: 1
    active_phases: [A]
    units:
      - {id: U1, name: Hall}
  - id: L2
    label: Floor 1
    order: 2
    active_phases: null
    units:
      - {id: U2, name: Apt 101}
progress:
  - unit_id: U1
    phase_id: A
    percentage: 50
    subtasks:
      a1: {progress: 100}
"""


@pytest.fixture
def project_file(tmp_path: Path) -> Path:
    path = tmp_path / "project.yaml"
    path.write_text(PROJECT_YAML)
    return path


class TestLoadProject:
    """Test YAML project loading."""

    def test_load(self, project_file):
        snapshot = load_project(project_file)

        assert snapshot.project_id == "tower-a"
        assert snapshot.name == "Tower A"
        assert snapshot.start_date == date(2024, 1, 1)
        assert snapshot.catalog.ids == ["A", "B"]
        assert [l.id for l in snapshot.levels] == ["L1", "L2"]
        assert snapshot.levels[1].active_phases == []
        assert snapshot.store.percentage("U1", "A") == 50
        assert snapshot.store.get("U1", "A").subtasks["a1"].progress == 100

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_project(tmp_path / "missing.yaml")

    def test_default_catalog_when_phases_omitted(self):
        snapshot = parse_project({"levels": []})

        assert len(snapshot.catalog) == 12
        assert snapshot.project_id == "default"

    def test_missing_levels_section(self):
        with pytest.raises(ValueError, match="levels"):
            parse_project({"name": "x"})

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid project file"):
            parse_project({"levels": [{"id": "L1"}]})

    def test_not_a_mapping(self):
        with pytest.raises(ValueError):
            parse_project(["levels"])

    def test_save_and_reload(self, project_file, tmp_path):
        snapshot = load_project(project_file)
        out = tmp_path / "copy.yaml"

        save_project(snapshot, out)
        reloaded = load_project(out)

        assert dump_project(reloaded) == dump_project(snapshot)
        assert yaml.safe_load(out.read_text())["start_date"] == "2024-01-01"
