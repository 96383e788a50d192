"""In-memory snapshot of progress records keyed by (unit_id, phase_id)."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from buildtrack.models import Level, ProgressRecord


class ProgressStore:
    """Snapshot of ProgressRecords for one project.

    Entry points take a full snapshot and hand back the updated one; the
    store never talks to the database itself.
    """

    def __init__(self, records: Iterable[ProgressRecord] = ()):
        self._records: dict[tuple[str, str], ProgressRecord] = {}
        for record in records:
            self.put(record)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ProgressRecord]:
        return iter(list(self._records.values()))

    def get(self, unit_id: str, phase_id: str) -> ProgressRecord | None:
        return self._records.get((unit_id, phase_id))

    def put(self, record: ProgressRecord) -> None:
        self._records[record.key] = record

    def percentage(self, unit_id: str, phase_id: str) -> int:
        """Stored percentage, 0 when no record exists."""
        record = self.get(unit_id, phase_id)
        return record.percentage if record else 0

    def for_unit(self, unit_id: str) -> list[ProgressRecord]:
        return [r for r in self._records.values() if r.unit_id == unit_id]

    def remove_unit(self, unit_id: str) -> int:
        """Cascade-delete every record of a unit. Returns the number removed."""
        keys = [k for k in self._records if k[0] == unit_id]
        for key in keys:
            del self._records[key]
        return len(keys)

    def remove_level(self, level: Level) -> int:
        return sum(self.remove_unit(unit.id) for unit in level.units)

    def copy(self) -> ProgressStore:
        return ProgressStore(r.model_copy(deep=True) for r in self._records.values())
