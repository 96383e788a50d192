"""Progress aggregation engine.

Rolls subtask checklist values up into phase, floor and project percentages:

    subtask -> unit phase -> floor (per phase) -> project

A (level, unit, phase) triple only counts when the phase applies to the
level (empty ``active_phases`` = every phase applies). Inapplicable triples
are left out of both the sum and the count.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from buildtrack.catalog.phases import PhaseCatalog
from buildtrack.models import (
    Complete,
    FloorProgress,
    InProgress,
    Level,
    NotApplicable,
    NotStarted,
    PhaseState,
    ProgressRecord,
    SubtaskProgress,
)
from buildtrack.progress.store import ProgressStore

logger = logging.getLogger(__name__)

NOT_APPLICABLE = -1


def round_half_up(value: Decimal | int | float) -> int:
    """Round to the nearest integer, halves away from zero (50.5 -> 51)."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def mean_percentage(values: Iterable[int]) -> int:
    """Rounded arithmetic mean, 0 for an empty input."""
    values = list(values)
    if not values:
        return 0
    return round_half_up(Decimal(sum(values)) / Decimal(len(values)))


def _check_percentage(value: int, name: str = "value") -> None:
    if not 0 <= value <= 100:
        raise ValueError(f"{name} must be between 0 and 100, got {value}")


def set_subtask_progress(
    store: ProgressStore,
    catalog: PhaseCatalog,
    unit_id: str,
    phase_id: str,
    subtask_name: str,
    value: int,
) -> int:
    """Upsert one subtask value and recompute the unit's phase percentage.

    The percentage is the rounded mean over every subtask named in the phase
    template (absent entries count as 0). With an empty template ``value``
    is written as the percentage directly.

    Args:
        store: Progress snapshot, updated in place
        catalog: Phase catalog used to resolve the template
        unit_id: Unit being audited
        phase_id: Phase being audited
        subtask_name: Checklist item name
        value: New subtask progress (0-100)

    Returns:
        The recomputed phase percentage

    Raises:
        InvalidPhaseReference: If phase_id is not in the catalog
        ValueError: If value is outside [0, 100]
    """
    _check_percentage(value)
    phase = catalog.get(phase_id)

    if phase.subtasks and subtask_name not in phase.subtasks:
        logger.warning(
            "Subtask '%s' is not part of phase '%s' template; stored but excluded from the mean",
            subtask_name,
            phase_id,
        )

    existing = store.get(unit_id, phase_id)
    record = (
        existing.model_copy(deep=True)
        if existing
        else ProgressRecord(unit_id=unit_id, phase_id=phase_id)
    )

    entry = record.subtasks.get(subtask_name) or SubtaskProgress()
    record.subtasks[subtask_name] = entry.model_copy(update={"progress": value})

    if phase.subtasks:
        record.percentage = mean_percentage(
            record.subtasks[name].progress if name in record.subtasks else 0
            for name in phase.subtasks
        )
    else:
        record.percentage = value
    record.updated_at = datetime.utcnow()

    store.put(record)
    logger.debug(
        "Unit %s phase %s: '%s'=%d -> %d%%",
        unit_id,
        phase_id,
        subtask_name,
        value,
        record.percentage,
    )
    return record.percentage


def compute_unit_phase_percentage(store: ProgressStore, unit_id: str, phase_id: str) -> int:
    """Stored phase percentage of a unit, 0 when nothing was recorded."""
    return store.percentage(unit_id, phase_id)


def compute_floor_average(
    store: ProgressStore,
    level: Level,
    phase_id: str,
    catalog: PhaseCatalog,
) -> int:
    """Rounded mean of a phase across a level's units.

    Returns:
        -1 if the phase is out of the level's scope, 0 for a level without
        units, otherwise the rounded mean

    Raises:
        InvalidPhaseReference: If phase_id or the level scope names a phase
            missing from the catalog
    """
    catalog.get(phase_id)
    catalog.check_scope([level])
    if not level.applies_to(phase_id):
        return NOT_APPLICABLE
    return mean_percentage(store.percentage(unit.id, phase_id) for unit in level.units)


def compute_global_progress(
    store: ProgressStore,
    levels: Iterable[Level],
    catalog: PhaseCatalog,
) -> int:
    """Project-wide progress: mean over every applicable (level, unit, phase).

    Raises:
        InvalidPhaseReference: If a level scope names an unknown phase
    """
    levels = list(levels)
    catalog.check_scope(levels)

    total = 0
    count = 0
    for level in levels:
        for unit in level.units:
            for phase in catalog:
                if not level.applies_to(phase.id):
                    continue
                total += store.percentage(unit.id, phase.id)
                count += 1

    if count == 0:
        return 0
    return round_half_up(Decimal(total) / Decimal(count))


def compute_phase_averages(
    store: ProgressStore,
    levels: Iterable[Level],
    catalog: PhaseCatalog,
) -> dict[str, int]:
    """Project-wide average of each phase over the units it applies to."""
    levels = list(levels)
    catalog.check_scope(levels)
    averages: dict[str, int] = {}
    for phase in catalog:
        averages[phase.id] = mean_percentage(
            store.percentage(unit.id, phase.id)
            for level in levels
            if level.applies_to(phase.id)
            for unit in level.units
        )
    return averages


def compute_floor_progress(
    store: ProgressStore,
    levels: Iterable[Level],
    catalog: PhaseCatalog,
) -> list[FloorProgress]:
    """Level-by-phase matrix of floor averages, bottom to top."""
    return [
        FloorProgress(
            level_id=level.id,
            order=level.order,
            label=level.label,
            averages={
                phase.id: compute_floor_average(store, level, phase.id, catalog)
                for phase in catalog
            },
        )
        for level in sorted(levels, key=lambda l: l.order)
    ]


def phase_state(
    store: ProgressStore,
    level: Level,
    unit_id: str,
    phase_id: str,
    catalog: PhaseCatalog,
) -> PhaseState:
    """Tagged state of a unit phase; tells "not applicable" from "not started"."""
    catalog.get(phase_id)
    catalog.check_scope([level])
    if not level.applies_to(phase_id):
        return NotApplicable()

    pct = store.percentage(unit_id, phase_id)
    if pct == 0:
        return NotStarted()
    if pct == 100:
        return Complete()
    return InProgress(percentage=pct)


def mass_update(
    store: ProgressStore,
    catalog: PhaseCatalog,
    unit_ids: Iterable[str],
    phase_id: str,
    value: int,
    subtasks: Iterable[str] | None = None,
) -> list[ProgressRecord]:
    """Set one phase to ``value`` on many units at once.

    The phase percentage is written directly and the subtask map is replaced
    by the selected subtasks, each set to ``value``.

    Raises:
        InvalidPhaseReference: If phase_id is not in the catalog
        ValueError: If value is outside [0, 100]
    """
    _check_percentage(value)
    phase = catalog.get(phase_id)
    selected = list(subtasks or [])

    unknown = [name for name in selected if phase.subtasks and name not in phase.subtasks]
    if unknown:
        logger.warning(
            "Subtasks %s are not part of phase '%s' template; stored but excluded from the mean",
            unknown,
            phase_id,
        )

    updated: list[ProgressRecord] = []
    now = datetime.utcnow()
    for unit_id in unit_ids:
        existing = store.get(unit_id, phase_id)
        record = ProgressRecord(
            unit_id=unit_id,
            phase_id=phase_id,
            percentage=value,
            subtasks={name: SubtaskProgress(progress=value) for name in selected},
            updated_at=now,
            version=existing.version if existing else 0,
        )
        store.put(record)
        updated.append(record)

    logger.info("Mass update: phase %s set to %d%% on %d units", phase_id, value, len(updated))
    return updated
