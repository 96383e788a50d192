"""Progress snapshot and aggregation engine."""

from buildtrack.progress.aggregation import (
    NOT_APPLICABLE,
    compute_floor_average,
    compute_floor_progress,
    compute_global_progress,
    compute_phase_averages,
    compute_unit_phase_percentage,
    mass_update,
    phase_state,
    round_half_up,
    set_subtask_progress,
)
from buildtrack.progress.fronts import PhaseFlow, summarize_phase_flow
from buildtrack.progress.store import ProgressStore

__all__ = [
    "NOT_APPLICABLE",
    "PhaseFlow",
    "ProgressStore",
    "compute_floor_average",
    "compute_floor_progress",
    "compute_global_progress",
    "compute_phase_averages",
    "compute_unit_phase_percentage",
    "mass_update",
    "phase_state",
    "round_half_up",
    "set_subtask_progress",
    "summarize_phase_flow",
]
