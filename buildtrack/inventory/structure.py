"""Building structure generator and level list editing.

Every editing helper returns a new list with ``order`` renumbered to the list
position, so orders stay unique and contiguous bottom to top.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Literal
from uuid import uuid4

from buildtrack.models import Level, LevelType, Unit, UnitType

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}_{uuid4().hex[:8]}"


def _renumber(levels: Sequence[Level]) -> list[Level]:
    return [level.model_copy(update={"order": idx}) for idx, level in enumerate(levels)]


def generate_structure(
    phase_ids: Sequence[str] = (),
    *,
    foundation: bool = True,
    basements: int = 0,
    garages: int = 0,
    common_floors: int = 1,
    apartment_floors: int = 0,
    units_per_floor: int = 4,
    roof: bool = True,
) -> list[Level]:
    """Build a standard building stack, bottom to top.

    Foundation, basements (deepest first), podium garages, common floors,
    apartment floors (units numbered ``floor * 100 + n`` plus a hall) and
    the roof, with consecutive orders starting at 0.

    Args:
        phase_ids: Phases every generated level is scoped to (empty = all)
    """
    for name, value in (
        ("basements", basements),
        ("garages", garages),
        ("common_floors", common_floors),
        ("apartment_floors", apartment_floors),
        ("units_per_floor", units_per_floor),
    ):
        if value < 0:
            raise ValueError(f"{name} must be non-negative, got {value}")

    scope = list(phase_ids)
    levels: list[Level] = []

    def add(prefix: str, label: str, level_type: LevelType, units: list[Unit]) -> None:
        levels.append(
            Level(
                id=_new_id(prefix),
                label=label,
                type=level_type,
                order=len(levels),
                units=units,
                active_phases=list(scope),
            )
        )

    if foundation:
        add(
            "L_FND",
            "Foundation",
            LevelType.FOUNDATION,
            [Unit(id=_new_id("U_FND_BLK"), name="Piles & Caps", type=UnitType.COMMON)],
        )

    for i in range(basements, 0, -1):
        add(
            f"L_SUB_{i}",
            f"Basement {i}",
            LevelType.BASEMENT,
            [
                Unit(id=_new_id(f"U_S{i}_GAR"), name=f"Basement {i} Garage", type=UnitType.GARAGE),
                Unit(id=_new_id(f"U_S{i}_HAL"), name=f"Access Hall {i}", type=UnitType.COMMON),
            ],
        )

    for i in range(1, garages + 1):
        add(
            f"L_GAR_{i}",
            f"Garage G{i}",
            LevelType.GARAGE,
            [
                Unit(id=_new_id(f"U_G{i}_VAG"), name=f"Garage Stalls G{i}", type=UnitType.GARAGE),
                Unit(id=_new_id(f"U_G{i}_RAM"), name="Access Ramps", type=UnitType.COMMON),
            ],
        )

    for i in range(1, common_floors + 1):
        label = "Ground Floor" if common_floors == 1 else f"Common Floor {i}"
        add(
            f"L_COM_{i}",
            label,
            LevelType.COMMON,
            [
                Unit(id=_new_id(f"U_C{i}_HAL"), name="Entrance Hall", type=UnitType.COMMON),
                Unit(id=_new_id(f"U_C{i}_LAZ"), name="Leisure Area", type=UnitType.COMMON),
            ],
        )

    for i in range(1, apartment_floors + 1):
        units = [
            Unit(id=_new_id(f"U_APT_{i * 100 + n}"), name=f"Apt {i * 100 + n}", type=UnitType.UNIT)
            for n in range(1, units_per_floor + 1)
        ]
        units.append(Unit(id=_new_id(f"U_APT_HAL_{i}"), name=f"Floor {i} Hall", type=UnitType.COMMON))
        add(f"L_APT_{i}", f"Floor {i}", LevelType.APARTMENTS, units)

    if roof:
        add(
            "L_ROOF",
            "Roof",
            LevelType.ROOF,
            [
                Unit(id=_new_id("U_ROOF_RES"), name="Upper Water Tank", type=UnitType.COMMON),
                Unit(id=_new_id("U_ROOF_MAC"), name="Machine Room", type=UnitType.COMMON),
            ],
        )

    logger.info(
        "Generated structure: %d levels, %d units",
        len(levels),
        sum(l.unit_count for l in levels),
    )
    return levels


def _position(levels: Sequence[Level], level_id: str) -> int:
    for idx, level in enumerate(levels):
        if level.id == level_id:
            return idx
    raise KeyError(f"Level not found: {level_id}")


def insert_level(levels: Sequence[Level], position: int, level: Level) -> list[Level]:
    """Insert a level at ``position`` (clamped to the list bounds)."""
    result = list(levels)
    result.insert(max(0, min(position, len(result))), level)
    return _renumber(result)


def remove_level(levels: Sequence[Level], level_id: str) -> list[Level]:
    """Drop a level; callers cascade its units' progress via ProgressStore.remove_level."""
    result = list(levels)
    del result[_position(result, level_id)]
    return _renumber(result)


def move_level(
    levels: Sequence[Level],
    level_id: str,
    direction: Literal["up", "down"],
) -> list[Level]:
    """Swap a level with its neighbour. "up" moves it one position lower in order."""
    result = list(levels)
    idx = _position(result, level_id)
    target = idx - 1 if direction == "up" else idx + 1
    if not 0 <= target < len(result):
        return _renumber(result)
    result[idx], result[target] = result[target], result[idx]
    return _renumber(result)


def duplicate_level(levels: Sequence[Level], level_id: str) -> list[Level]:
    """Copy a level right after the original, with fresh level and unit ids."""
    result = list(levels)
    idx = _position(result, level_id)
    source = result[idx]
    copy_id = _new_id("L_COPY")
    copy = source.model_copy(
        update={
            "id": copy_id,
            "label": f"{source.label} (Copy)",
            "units": [
                unit.model_copy(update={"id": _new_id(f"U_{copy_id}")}) for unit in source.units
            ],
            "active_phases": list(source.active_phases),
        }
    )
    result.insert(idx + 1, copy)
    return _renumber(result)
