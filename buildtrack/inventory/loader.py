"""Project file loader.

Reads a project snapshot (levels, phase catalog, progress) from YAML:

    project_id: tower-a
    name: Tower A
    start_date: 2024-01-01
    phases: [...]          # optional, defaults to the stock catalog
    levels:
      - {id: L1, label: Floor 1, order: 1, units: [{id: U101, name: Apt 101}]}
    progress:              # optional
      - {unit_id: U101, phase_id: structure, percentage: 50}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from buildtrack.catalog.phases import PhaseCatalog, default_catalog
from buildtrack.models import Level, Phase, ProgressRecord
from buildtrack.progress.store import ProgressStore

logger = logging.getLogger(__name__)


@dataclass
class ProjectSnapshot:
    """Everything the engine needs for one project."""

    project_id: str
    name: str
    levels: list[Level]
    catalog: PhaseCatalog
    store: ProgressStore = field(default_factory=ProgressStore)
    start_date: date | None = None


def parse_project(data: dict[str, Any]) -> ProjectSnapshot:
    """Build a snapshot from an already-parsed mapping.

    Raises:
        ValueError: If required sections are missing or malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Invalid project file: expected a mapping at the top level")
    if "levels" not in data:
        raise ValueError("Invalid project file: missing 'levels' section")

    try:
        levels = [Level.model_validate(raw) for raw in data.get("levels") or []]
        raw_phases = data.get("phases")
        catalog = (
            PhaseCatalog(Phase.model_validate(raw) for raw in raw_phases)
            if raw_phases
            else default_catalog()
        )
        store = ProgressStore(
            ProgressRecord.model_validate(raw) for raw in data.get("progress") or []
        )
    except ValidationError as e:
        raise ValueError(f"Invalid project file: {e}") from e

    start = data.get("start_date")
    if isinstance(start, str):
        start = date.fromisoformat(start)

    project_id = str(data.get("project_id") or "default")
    return ProjectSnapshot(
        project_id=project_id,
        name=str(data.get("name") or project_id),
        levels=levels,
        catalog=catalog,
        store=store,
        start_date=start,
    )


def load_project(path: Path) -> ProjectSnapshot:
    """Load a project snapshot from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the content is invalid
    """
    if not path.exists():
        raise FileNotFoundError(f"Project file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    snapshot = parse_project(data)
    logger.info(
        "Loaded project %s: %d levels, %d phases, %d progress records",
        snapshot.project_id,
        len(snapshot.levels),
        len(snapshot.catalog),
        len(snapshot.store),
    )
    return snapshot


def dump_project(snapshot: ProjectSnapshot) -> dict[str, Any]:
    data: dict[str, Any] = {
        "project_id": snapshot.project_id,
        "name": snapshot.name,
        "phases": [p.model_dump(mode="json") for p in snapshot.catalog],
        "levels": [l.model_dump(mode="json") for l in snapshot.levels],
    }
    if snapshot.start_date:
        data["start_date"] = snapshot.start_date.isoformat()
    if len(snapshot.store):
        data["progress"] = [r.model_dump(mode="json") for r in snapshot.store]
    return data


def save_project(snapshot: ProjectSnapshot, path: Path) -> None:
    with open(path, "w") as f:
        yaml.safe_dump(dump_project(snapshot), f, sort_keys=False, allow_unicode=True)
