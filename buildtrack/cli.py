"""BuildTrack CLI.

Commands:
- init: Initialize database schema
- validate: Check a project file's inventory and phase catalog
- schedule: Generate the line-of-balance schedule (optionally persist it)
- progress: Show floor-by-phase progress and project totals
- set-subtask: Record one checklist value and persist derived percentages
- export: Write unit progress as CSV
- generate-structure: Scaffold a project file from a standard building stack
- serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from buildtrack.catalog.phases import default_catalog
from buildtrack.config import ScheduleConfig, get_config
from buildtrack.core.logging import configure_logging
from buildtrack.errors import BuildTrackError
from buildtrack.inventory.loader import ProjectSnapshot, load_project, save_project
from buildtrack.inventory.structure import generate_structure
from buildtrack.progress.aggregation import (
    NOT_APPLICABLE,
    compute_floor_progress,
    compute_global_progress,
    compute_phase_averages,
)
from buildtrack.progress.fronts import summarize_phase_flow
from buildtrack.progress.store import ProgressStore
from buildtrack.reporting.csv_export import export_progress_csv
from buildtrack.scheduling.line_of_balance import generate_schedule
from buildtrack.validation.validator import validate

app = typer.Typer(
    name="buildtrack",
    help="BuildTrack - construction progress roll-up and line-of-balance scheduling",
    no_args_is_help=True,
)

console = Console()


@app.callback()
def main() -> None:
    try:
        configure_logging()
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e


def _load(project_file: Path) -> ProjectSnapshot:
    try:
        return load_project(project_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e


def _parse_date(value: str | None) -> date | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise typer.BadParameter(f"Invalid date '{value}', expected YYYY-MM-DD") from e


@app.command()
def init(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Initialize database schema."""
    from buildtrack.db.connection import close_db, init_db

    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    async def _init():
        await init_db(drop=drop)
        await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="validate")
def validate_cmd(
    project_file: Path = typer.Argument(..., help="Project YAML file"),
):
    """Validate levels and phase catalog of a project file."""
    snapshot = _load(project_file)
    violations = validate(snapshot.levels, snapshot.catalog)

    if not violations:
        console.print(f"[bold green]✓[/bold green] {snapshot.name}: configuration is valid")
        return

    table = Table(title=f"Violations - {snapshot.name}")
    table.add_column("Code", style="red")
    table.add_column("Subject", style="cyan")
    table.add_column("Message")
    for v in violations:
        table.add_row(v.code, v.subject or "-", v.message)
    console.print(table)
    raise typer.Exit(1)


@app.command()
def schedule(
    project_file: Path = typer.Argument(..., help="Project YAML file"),
    start: str | None = typer.Option(None, "--start", help="Start date (YYYY-MM-DD)"),
    rate: float | None = typer.Option(None, "--rate", help="Days per unit per phase"),
    stagger: int | None = typer.Option(None, "--stagger", help="Days between floor starts"),
    save: bool = typer.Option(False, "--save", help="Persist the schedule to the database"),
):
    """Generate the line-of-balance schedule for a project."""
    snapshot = _load(project_file)
    start_date = _parse_date(start) or snapshot.start_date or date.today()

    # Only the persisting path needs DATABASE_URL
    defaults = get_config().schedule if save else ScheduleConfig()
    rate_value = Decimal(str(rate)) if rate is not None else defaults.rate_per_unit
    stagger_value = stagger if stagger is not None else defaults.stagger_days

    try:
        tasks = generate_schedule(
            snapshot.levels, snapshot.catalog, start_date, rate_value, stagger_value
        )
    except (BuildTrackError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    table = Table(title=f"Schedule - {snapshot.name}")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Task", style="green")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Days", justify="right")
    for task in tasks:
        table.add_row(
            task.custom_id or "",
            task.name,
            task.start.isoformat(),
            task.end.isoformat(),
            str(task.duration_days),
        )
    console.print(table)

    if not tasks:
        console.print("[yellow]No tasks generated. Check that levels have units and active phases.[/yellow]")
        return

    if save:
        from buildtrack.db.connection import close_db, get_session
        from buildtrack.db.repository import ProgressRepository
        from buildtrack.service import ProgressService

        async def _save():
            try:
                async with get_session() as session:
                    service = ProgressService(ProgressRepository(session))
                    return await service.generate_schedule(
                        snapshot, rate_value, start_date, stagger_value
                    )
            finally:
                await close_db()

        try:
            diff = asyncio.run(_save())
        except BuildTrackError as e:
            console.print(f"[red]Error: {e}[/red]")
            raise typer.Exit(1) from e

        console.print(
            f"[bold green]✓[/bold green] Saved: {len(diff.inserted)} new, "
            f"{len(diff.updated)} updated, {len(diff.unchanged)} unchanged"
        )
        if diff.orphaned:
            console.print(
                f"[yellow]{len(diff.orphaned)} stored tasks no longer match the structure[/yellow]"
            )


@app.command()
def progress(
    project_file: Path = typer.Argument(..., help="Project YAML file"),
    from_db: bool = typer.Option(False, "--from-db", help="Read progress records from the database"),
):
    """Show floor-by-phase progress and project totals."""
    snapshot = _load(project_file)

    if from_db:
        snapshot.store = asyncio.run(_fetch_store(snapshot.project_id))

    try:
        floors = compute_floor_progress(snapshot.store, snapshot.levels, snapshot.catalog)
        averages = compute_phase_averages(snapshot.store, snapshot.levels, snapshot.catalog)
        flows = summarize_phase_flow(snapshot.store, snapshot.levels, snapshot.catalog)
        total = compute_global_progress(snapshot.store, snapshot.levels, snapshot.catalog)
    except BuildTrackError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    phases = list(snapshot.catalog)

    table = Table(title=f"Progress - {snapshot.name}")
    table.add_column("Level", style="cyan", no_wrap=True)
    for phase in phases:
        table.add_column(phase.code, justify="right")
    for floor in reversed(floors):  # Top floor first, like the building
        cells = []
        for phase in phases:
            value = floor.averages[phase.id]
            cells.append("-" if value == NOT_APPLICABLE else f"{value}%")
        table.add_row(floor.label, *cells)

    table.add_row("[bold]All[/bold]", *[f"[bold]{averages[p.id]}%[/bold]" for p in phases])
    console.print(table)

    fronts = Table(title="Work fronts")
    fronts.add_column("Phase", style="cyan")
    fronts.add_column("Done", justify="right")
    fronts.add_column("Active")
    fronts.add_column("Last completed")
    for phase_id, flow in flows.items():
        fronts.add_row(
            snapshot.catalog.get(phase_id).label,
            f"{flow.completed_count}/{flow.total_floors} ({flow.completion_pct}%)",
            ", ".join(f"{f.label} {f.progress}%" for f in flow.active_fronts) or "-",
            flow.last_completed or "-",
        )
    console.print(fronts)

    console.print(f"[bold]Project progress:[/bold] {total}%")


async def _fetch_store(project_id: str) -> ProgressStore:
    from buildtrack.db.connection import close_db, get_session
    from buildtrack.db.repository import ProgressRepository

    try:
        async with get_session() as session:
            records = await ProgressRepository(session).fetch_progress_records(project_id)
    finally:
        await close_db()
    return ProgressStore(records)


@app.command(name="set-subtask")
def set_subtask(
    project_file: Path = typer.Argument(..., help="Project YAML file"),
    unit_id: str = typer.Argument(..., help="Unit ID"),
    phase_id: str = typer.Argument(..., help="Phase ID"),
    subtask: str = typer.Argument(..., help="Subtask name"),
    value: int = typer.Argument(..., min=0, max=100, help="Progress 0-100"),
):
    """Record one checklist value and persist unit, project and task progress."""
    from buildtrack.db.connection import close_db, get_session
    from buildtrack.db.repository import ProgressRepository
    from buildtrack.service import ProgressService

    snapshot = _load(project_file)

    async def _set():
        try:
            async with get_session() as session:
                repo = ProgressRepository(session)
                snapshot.store = ProgressStore(await repo.fetch_progress_records(snapshot.project_id))
                return await ProgressService(repo).record_subtask_progress(
                    snapshot, unit_id, phase_id, subtask, value
                )
        finally:
            await close_db()

    try:
        update = asyncio.run(_set())
    except (BuildTrackError, KeyError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(
        f"[bold green]✓[/bold green] {unit_id}/{phase_id}: {update.percentage}% "
        f"(project {update.global_progress}%)"
    )


@app.command()
def export(
    project_file: Path = typer.Argument(..., help="Project YAML file"),
    output: Path = typer.Option(Path("progress.csv"), "--output", "-o", help="CSV output path"),
):
    """Export unit progress to CSV."""
    snapshot = _load(project_file)
    with open(output, "w", newline="", encoding="utf-8-sig") as f:
        for chunk in export_progress_csv(snapshot.levels, snapshot.catalog, snapshot.store):
            f.write(chunk)
    console.print(f"[bold green]✓[/bold green] Progress exported to {output}")


@app.command(name="generate-structure")
def generate_structure_cmd(
    output: Path = typer.Argument(..., help="Project YAML file to write"),
    project_id: str = typer.Option("default", "--project", help="Project ID"),
    name: str = typer.Option("New Project", "--name", help="Project name"),
    foundation: bool = typer.Option(True, "--foundation/--no-foundation"),
    basements: int = typer.Option(0, "--basements", min=0),
    garages: int = typer.Option(0, "--garages", min=0),
    common: int = typer.Option(1, "--common", min=0, help="Common/ground floors"),
    floors: int = typer.Option(4, "--floors", min=0, help="Apartment floors"),
    units: int = typer.Option(4, "--units", min=0, help="Apartments per floor"),
    roof: bool = typer.Option(True, "--roof/--no-roof"),
    start: str | None = typer.Option(None, "--start", help="Start date (YYYY-MM-DD)"),
):
    """Scaffold a project file from a standard building stack."""
    if output.exists():
        console.print(f"[red]Error: {output} already exists[/red]")
        raise typer.Exit(1)

    catalog = default_catalog()
    levels = generate_structure(
        catalog.ids,
        foundation=foundation,
        basements=basements,
        garages=garages,
        common_floors=common,
        apartment_floors=floors,
        units_per_floor=units,
        roof=roof,
    )
    snapshot = ProjectSnapshot(
        project_id=project_id,
        name=name,
        levels=levels,
        catalog=catalog,
        start_date=_parse_date(start),
    )
    save_project(snapshot, output)
    console.print(
        f"[bold green]✓[/bold green] Wrote {len(levels)} levels "
        f"({sum(l.unit_count for l in levels)} units) to {output}"
    )


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8001, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("buildtrack.web.app:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
