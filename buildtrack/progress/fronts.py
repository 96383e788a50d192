"""Per-phase work-front summary across floors.

For each phase, classifies the floors it applies to as completed, pending or
active ("work fronts"), which is what a site dashboard shows as the crew
moving up the building.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from buildtrack.catalog.phases import PhaseCatalog
from buildtrack.models import Level
from buildtrack.progress.aggregation import mean_percentage, round_half_up
from buildtrack.progress.store import ProgressStore


@dataclass(slots=True)
class ActiveFront:
    level_id: str
    label: str
    progress: int


@dataclass(slots=True)
class CompletedFloor:
    level_id: str
    label: str
    completed_at: datetime | None


@dataclass(slots=True)
class PhaseFlow:
    phase_id: str
    total_floors: int = 0
    active_fronts: list[ActiveFront] = field(default_factory=list)
    completed_floors: list[CompletedFloor] = field(default_factory=list)  # Most recent first
    pending_floors: list[str] = field(default_factory=list)

    @property
    def completed_count(self) -> int:
        return len(self.completed_floors)

    @property
    def completion_pct(self) -> int:
        if self.total_floors == 0:
            return 0
        return round_half_up(Decimal(self.completed_count * 100) / Decimal(self.total_floors))

    @property
    def last_completed(self) -> str | None:
        return self.completed_floors[0].label if self.completed_floors else None


def summarize_phase_flow(
    store: ProgressStore,
    levels: Iterable[Level],
    catalog: PhaseCatalog,
) -> dict[str, PhaseFlow]:
    """Classify every applicable floor of every phase."""
    ordered = sorted(levels, key=lambda l: l.order)
    result: dict[str, PhaseFlow] = {}

    for phase in catalog:
        flow = PhaseFlow(phase_id=phase.id)

        for level in ordered:
            if not level.applies_to(phase.id) or not level.units:
                continue
            flow.total_floors += 1

            values = []
            latest: datetime | None = None
            for unit in level.units:
                record = store.get(unit.id, phase.id)
                pct = record.percentage if record else 0
                values.append(pct)
                if pct == 100 and record is not None:
                    if latest is None or record.updated_at > latest:
                        latest = record.updated_at

            if all(v == 100 for v in values):
                flow.completed_floors.append(CompletedFloor(level.id, level.label, latest))
            elif all(v == 0 for v in values):
                flow.pending_floors.append(level.label)
            else:
                flow.active_fronts.append(ActiveFront(level.id, level.label, mean_percentage(values)))

        flow.completed_floors.sort(
            key=lambda f: f.completed_at or datetime.min,
            reverse=True,
        )
        result[phase.id] = flow

    return result
