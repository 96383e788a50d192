"""BuildTrack error hierarchy.

Pure-computation errors are raised synchronously to the caller. Storage
errors (SQLAlchemyError) are never wrapped and pass through unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from buildtrack.models import Violation


class BuildTrackError(Exception):
    """Base class for all BuildTrack domain errors."""


class InvalidPhaseReference(BuildTrackError):
    """Raised when a phase id does not resolve against the phase catalog."""

    def __init__(self, phase_id: str):
        self.phase_id = phase_id
        super().__init__(f"Unknown phase id: '{phase_id}'")


class EmptyScheduleInput(BuildTrackError):
    """Raised when there are no levels or no phases to schedule."""


class InvariantViolation(BuildTrackError):
    """Raised when inventory / phase-scope configuration breaks an invariant.

    Carries every violation found so callers can surface them at once.
    """

    def __init__(self, violations: list[Violation]):
        self.violations = list(violations)
        summary = "; ".join(v.message for v in self.violations) or "invalid configuration"
        super().__init__(f"{len(self.violations)} invariant violation(s): {summary}")


class Conflict(BuildTrackError):
    """Raised when a progress write carries a stale version token."""

    def __init__(self, unit_id: str, phase_id: str, expected: int, actual: int):
        self.unit_id = unit_id
        self.phase_id = phase_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Progress record ({unit_id}, {phase_id}) changed concurrently: "
            f"expected version {expected}, found {actual}"
        )
