"""Inventory & phase-scope validation.

Collects every problem instead of stopping at the first one so a
configuration screen can show them all at once. Run it before aggregation
or schedule generation; ``ensure_valid`` turns the list into an exception.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable

from buildtrack.errors import InvariantViolation
from buildtrack.models import Level, Phase, Violation

logger = logging.getLogger(__name__)


def validate(levels: Iterable[Level], phases: Iterable[Phase]) -> list[Violation]:
    """Check the inventory and phase catalog invariants.

    Args:
        levels: Building levels
        phases: Phase catalog (a PhaseCatalog or a plain list of phases)

    Returns:
        List of Violation models (empty list if the configuration is valid)
    """
    levels = list(levels)
    phases = list(phases)
    violations: list[Violation] = []

    def violation(code: str, message: str, subject: str | None = None) -> None:
        violations.append(Violation(code=code, message=message, subject=subject))

    # Phase catalog
    if not phases:
        violation("empty_catalog", "Phase catalog is empty")

    for phase_id, count in Counter(p.id for p in phases).items():
        if count > 1:
            violation(
                "duplicate_phase_id",
                f"Phase id '{phase_id}' appears {count} times",
                phase_id,
            )

    for code, count in Counter(p.code for p in phases).items():
        if count > 1:
            violation(
                "duplicate_phase_code",
                f"Phase code '{code}' is used by {count} phases; schedule task keys would collide",
                code,
            )

    for phase in phases:
        if not phase.id.strip():
            violation("blank_phase_id", f"Phase '{phase.label}' has a blank id", phase.label)
        for name, count in Counter(phase.subtasks).items():
            if count > 1:
                violation(
                    "duplicate_subtask",
                    f"Subtask '{name}' appears {count} times in phase '{phase.id}'",
                    phase.id,
                )

    # Levels
    for order, count in Counter(l.order for l in levels).items():
        if count > 1:
            labels = ", ".join(l.label for l in levels if l.order == order)
            violation(
                "duplicate_level_order",
                f"Level order {order} is shared by {count} levels ({labels})",
                str(order),
            )

    for level_id, count in Counter(l.id for l in levels).items():
        if count > 1:
            violation("duplicate_level_id", f"Level id '{level_id}' appears {count} times", level_id)

    unit_ids = Counter(u.id for l in levels for u in l.units)
    for unit_id, count in unit_ids.items():
        if count > 1:
            violation("duplicate_unit_id", f"Unit id '{unit_id}' appears {count} times", unit_id)

    # Phase scope
    known = {p.id for p in phases}
    for level in levels:
        for phase_id in level.active_phases:
            if phase_id not in known:
                violation(
                    "unknown_active_phase",
                    f"Level '{level.label}' references unknown phase '{phase_id}'",
                    level.id,
                )

    if violations:
        logger.info("Configuration validation found %d violation(s)", len(violations))
    return violations


def ensure_valid(levels: Iterable[Level], phases: Iterable[Phase]) -> None:
    """Raise InvariantViolation carrying every violation found."""
    violations = validate(levels, phases)
    if violations:
        raise InvariantViolation(violations)
