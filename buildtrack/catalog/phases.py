"""Ordered phase catalog.

Catalog order does double duty: display order and the dependency chain used
by the line-of-balance generator. ``reorder`` is the only way to change it,
so every dependency-chain change goes through one logged entry point.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from buildtrack.errors import InvalidPhaseReference, InvariantViolation
from buildtrack.models import Level, Phase, Violation

logger = logging.getLogger(__name__)


DEFAULT_PHASES: list[Phase] = [
    Phase(
        id="structure",
        label="STRUCTURE",
        code="#STR",
        color="stone",
        icon="Box",
        subtasks=["Slab Pour", "Beams and Columns", "Staircase", "Concrete Curing"],
    ),
    Phase(
        id="masonry",
        label="MASONRY",
        code="#MAS",
        color="orange",
        icon="GripHorizontal",
        subtasks=[
            "Layout (First Course)",
            "Wall Raising",
            "Lintels and Sills",
            "Wall Wedging",
            "Shaft Closing",
        ],
    ),
    Phase(
        id="waterproofing",
        label="WATERPROOFING",
        code="#WAT",
        color="cyan",
        icon="ShieldAlert",
        subtasks=[
            "Shower Waterproofing",
            "Balcony Waterproofing",
            "Flood Test (72h)",
            "Asphalt Membrane",
        ],
    ),
    Phase(
        id="hydraulic_infra",
        label="PLUMBING (ROUGH-IN)",
        code="#HYD",
        color="blue",
        icon="Droplets",
        subtasks=[
            "Risers (Water/Sewer)",
            "Internal Branches",
            "Pressure Test (Water/Sewer)",
            "A/C Drain Rough-in",
            "Outlet Protection",
        ],
    ),
    Phase(
        id="gas",
        label="GAS",
        code="#GAS",
        color="red",
        icon="Flame",
        subtasks=["Gas Piping", "Gas Pressure Test"],
    ),
    Phase(
        id="electrical_infra",
        label="ELECTRICAL (ROUGH-IN)",
        code="#ELE",
        color="yellow",
        icon="Zap",
        subtasks=[
            "Slab Conduits",
            "Wall Chasing and Conduits",
            "Box Installation",
            "Floor Conduits",
        ],
    ),
    Phase(
        id="plaster",
        label="PLASTER / DRYWALL",
        code="#PLA",
        color="amber",
        icon="Layers",
        subtasks=[
            "Scratch Coat",
            "Screeds and Guides",
            "Interior Plaster",
            "Facade Render",
            "Plasterboard Ceiling",
        ],
    ),
    Phase(
        id="flooring",
        label="SCREED",
        code="#FLO",
        color="slate",
        icon="LayoutGrid",
        subtasks=["Slab Cleaning", "Acoustic Underlay", "Levelling and Screed"],
    ),
    Phase(
        id="electrical_wiring",
        label="ELECTRICAL (WIRING)",
        code="#WIR",
        color="orange",
        icon="Cable",
        subtasks=[
            "Box Cleaning",
            "Wire Pulling",
            "Structured Cabling (TV/Internet)",
            "Distribution Board Assembly",
            "Continuity Test",
        ],
    ),
    Phase(
        id="coating",
        label="TILING",
        code="#COA",
        color="emerald",
        icon="Box",
        subtasks=["Floor Tiling", "Wall Tiling", "Grouting", "Thresholds and Sills"],
    ),
    Phase(
        id="painting",
        label="PAINTING",
        code="#PAI",
        color="rose",
        icon="PaintBucket",
        subtasks=["Sanding and Sealer", "Skim Coat", "Ceiling Paint", "Wall Paint"],
    ),
    Phase(
        id="final_finishing",
        label="FINAL FINISHES",
        code="#FIN",
        color="violet",
        icon="Sparkles",
        subtasks=[
            "Sanitaryware",
            "Taps and Valves",
            "Electrical Fittings",
            "Final Test (Load and Leak)",
        ],
    ),
]


class PhaseCatalog:
    """Ordered, invariant-checked list of phases."""

    def __init__(self, phases: Iterable[Phase] = ()):
        self._phases: list[Phase] = list(phases)
        self._check_unique_ids()

    def _check_unique_ids(self) -> None:
        seen: set[str] = set()
        violations = []
        for phase in self._phases:
            if phase.id in seen:
                violations.append(
                    Violation(
                        code="duplicate_phase_id",
                        message=f"Phase id '{phase.id}' appears more than once",
                        subject=phase.id,
                    )
                )
            seen.add(phase.id)
        if violations:
            raise InvariantViolation(violations)

    def __iter__(self) -> Iterator[Phase]:
        return iter(tuple(self._phases))

    def __len__(self) -> int:
        return len(self._phases)

    def __contains__(self, phase_id: object) -> bool:
        return any(p.id == phase_id for p in self._phases)

    def __repr__(self) -> str:
        return f"PhaseCatalog({self.ids!r})"

    @property
    def ids(self) -> list[str]:
        return [p.id for p in self._phases]

    @property
    def phases(self) -> list[Phase]:
        """Copy of the phases in dependency order."""
        return list(self._phases)

    def get(self, phase_id: str) -> Phase:
        """Resolve a phase id.

        Raises:
            InvalidPhaseReference: If the id is not in the catalog
        """
        for phase in self._phases:
            if phase.id == phase_id:
                return phase
        raise InvalidPhaseReference(phase_id)

    def check_scope(self, levels: Iterable[Level]) -> None:
        """Ensure every id in each level's ``active_phases`` is catalogued.

        Raises:
            InvalidPhaseReference: On the first unknown id
        """
        for level in levels:
            for phase_id in level.active_phases:
                self.get(phase_id)

    def index(self, phase_id: str) -> int:
        for idx, phase in enumerate(self._phases):
            if phase.id == phase_id:
                return idx
        raise InvalidPhaseReference(phase_id)

    def reorder(self, phase_id: str, new_index: int) -> None:
        """Move a phase to ``new_index``, shifting the others.

        Changes the dependency chain for every schedule generated afterwards.

        Raises:
            InvalidPhaseReference: If the id is not in the catalog
            ValueError: If new_index is out of range
        """
        old_index = self.index(phase_id)
        if not 0 <= new_index < len(self._phases):
            raise ValueError(
                f"new_index {new_index} out of range for catalog of {len(self._phases)} phases"
            )
        if old_index == new_index:
            return

        phase = self._phases.pop(old_index)
        self._phases.insert(new_index, phase)
        logger.info(
            "Phase '%s' moved from position %d to %d; dependency chain is now %s",
            phase_id,
            old_index,
            new_index,
            " -> ".join(self.ids),
        )

    def add(self, phase: Phase) -> None:
        """Append a phase at the end of the dependency chain."""
        if phase.id in self:
            raise InvariantViolation(
                [
                    Violation(
                        code="duplicate_phase_id",
                        message=f"Phase id '{phase.id}' already exists",
                        subject=phase.id,
                    )
                ]
            )
        self._phases.append(phase)
        logger.info("Phase '%s' appended to catalog", phase.id)

    def remove(self, phase_id: str) -> Phase:
        """Drop a phase. Existing progress entries for it are left untouched."""
        phase = self._phases.pop(self.index(phase_id))
        logger.info("Phase '%s' removed from catalog", phase_id)
        return phase


def default_catalog() -> PhaseCatalog:
    """Stock twelve-phase residential catalog."""
    return PhaseCatalog(p.model_copy(deep=True) for p in DEFAULT_PHASES)
