"""Line-of-balance schedule generator.

Builds a full construction schedule from the building inventory and the
phase catalog, with no hand-authored tasks:

- floors start ``stagger_days`` apart, bottom to top, so the crew on one
  floor can begin before the floor below is finished;
- phases on one floor run strictly one after another in catalog order
  (the catalog order *is* the dependency chain).

Floors are independent of each other once started, beyond the shared
stagger offset.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal

from buildtrack.catalog.phases import PhaseCatalog
from buildtrack.errors import EmptyScheduleInput
from buildtrack.models import Level, Phase, ScheduleTask, TaskStatus
from buildtrack.progress.aggregation import round_half_up

logger = logging.getLogger(__name__)

FLOOR_STAGGER_DAYS = 5


def phase_duration_days(unit_count: int, rate_per_unit: float | Decimal) -> int:
    """Days one phase takes on a floor: ``max(1, units * rate)``."""
    return max(1, round_half_up(Decimal(str(rate_per_unit)) * unit_count))


def task_custom_id(level: Level, phase: Phase) -> str:
    """Short display id, e.g. ``"3-STR"`` for STRUCTURE on order 3."""
    return f"{level.order}-{phase.label[:3].upper()}"


def generate_schedule(
    levels: Iterable[Level],
    catalog: PhaseCatalog,
    start_date: date,
    rate_per_unit: float | Decimal,
    stagger_days: int = FLOOR_STAGGER_DAYS,
) -> list[ScheduleTask]:
    """Generate a line-of-balance schedule.

    Args:
        levels: Building levels (any order; sorted by ``order`` here)
        catalog: Phase catalog; its order is the in-floor dependency chain
        start_date: Start of the first phase on the lowest floor
        rate_per_unit: Days one unit contributes to one phase on one floor
        stagger_days: Offset between consecutive floor starts

    Returns:
        Tasks ordered floor by floor, phases in catalog order

    Raises:
        EmptyScheduleInput: If there are no levels or no phases
        InvalidPhaseReference: If a level scope names an unknown phase
        ValueError: If rate_per_unit or stagger_days is negative
    """
    levels = list(levels)
    if not levels:
        raise EmptyScheduleInput("No levels to schedule; define the building structure first")
    if len(catalog) == 0:
        raise EmptyScheduleInput("Phase catalog is empty; nothing to schedule")
    if Decimal(str(rate_per_unit)) < 0:
        raise ValueError(f"rate_per_unit must be non-negative, got {rate_per_unit}")
    if stagger_days < 0:
        raise ValueError(f"stagger_days must be non-negative, got {stagger_days}")
    catalog.check_scope(levels)

    tasks: list[ScheduleTask] = []
    floor_cursor = start_date

    for level in sorted(levels, key=lambda l: l.order):
        if not level.units:
            logger.debug("Skipping level %s (%s): no units", level.order, level.label)
            continue

        floor_start = floor_cursor
        floor_cursor = floor_cursor + timedelta(days=stagger_days)

        phase_cursor = floor_start
        duration = phase_duration_days(level.unit_count, rate_per_unit)

        for phase in catalog:
            if not level.applies_to(phase.id):
                continue

            end = phase_cursor + timedelta(days=duration)
            tasks.append(
                ScheduleTask(
                    name=f"{phase.label} - {level.label}",
                    description=f"Execution of {phase.label} on {level.unit_count} units.",
                    start=phase_cursor,
                    end=end,
                    progress=0,
                    status=TaskStatus.NOT_STARTED,
                    level_order=level.order,
                    phase_code=phase.code,
                    custom_id=task_custom_id(level, phase),
                    linked_phase_id=phase.id,
                )
            )
            phase_cursor = end

    logger.info(
        "Generated %d tasks for %d levels and %d phases starting %s",
        len(tasks),
        len(levels),
        len(catalog),
        start_date.isoformat(),
    )
    return tasks
