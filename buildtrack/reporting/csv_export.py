"""CSV export of unit progress.

One row per existing (unit, phase) record, floors bottom to top:
Level, Unit, Phase, Progress (%), Completed Subtasks.
"""

from __future__ import annotations

import csv
from collections.abc import Generator, Iterable
from io import StringIO

from buildtrack.catalog.phases import PhaseCatalog
from buildtrack.models import Level
from buildtrack.progress.store import ProgressStore

HEADERS = ["Level", "Unit", "Phase", "Progress (%)", "Completed Subtasks"]


def export_progress_csv(
    levels: Iterable[Level],
    catalog: PhaseCatalog,
    store: ProgressStore,
) -> Generator[str, None, None]:
    """Generate CSV text for unit progress.

    Yields:
        CSV rows as strings (header first)
    """
    output = StringIO()
    writer = csv.writer(output)

    writer.writerow(HEADERS)
    yield output.getvalue()
    output.seek(0)
    output.truncate(0)

    for level in sorted(levels, key=lambda l: l.order):
        for unit in level.units:
            for phase in catalog:
                record = store.get(unit.id, phase.id)
                if record is None:
                    continue
                completed = "; ".join(
                    name for name, entry in record.subtasks.items() if entry.progress == 100
                )
                writer.writerow([level.label, unit.name, phase.label, record.percentage, completed])
                yield output.getvalue()
                output.seek(0)
                output.truncate(0)
