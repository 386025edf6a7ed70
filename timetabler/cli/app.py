"""
Main CLI application using Typer.
"""

import logging
from dataclasses import replace
from enum import Enum
from pathlib import Path
from typing import List, Optional, Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..adapters import EXPORTERS
from ..config import AppConfig
from ..domain.exceptions import TimetableError
from ..domain.models import WEEK, CalendarSettings, DayOfWeek, EntryDraft, TimeFormat, TimetableEntry
from ..domain.time_grid import default_end_time, find_overlaps, grid_issues, visible_spans
from ..services.timetable_store import ChangeResult, TimetableSnapshot, TimetableStore

app = typer.Typer(
    name="timetabler",
    help="Edit a weekly timetable and export it to PDF or Excel",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

SESSION_COMMANDS = ("add", "edit", "delete", "list", "show", "settings", "export", "quit")


class ExportFormat(str, Enum):
    PDF = "pdf"
    XLSX = "xlsx"


ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]


def configure_logging(verbose: bool, level: str = "WARNING") -> None:
    """Route log records through rich; --verbose forces DEBUG."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level, logging.WARNING),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(config_file: Optional[Path], verbose: bool) -> AppConfig:
    config = AppConfig.load_or_default(config_file)
    configure_logging(verbose, config.log_level)
    return config


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    return typer.Exit(1)


def _entry_markup(entry: TimetableEntry) -> str:
    return (
        f"[bold blue]{escape(entry.subject)}[/bold blue]\n"
        f"{escape(entry.location)}\n[dim]{escape(entry.lecturer)}[/dim]"
    )


def render_grid(snapshot: TimetableSnapshot) -> Table:
    """
    Build a rich table of the weekly grid.

    Rich tables cannot merge columns, so the cells covered by a multi-slot
    entry show a continuation marker instead.
    """
    table = Table(title="Weekly Schedule", show_header=True, header_style="bold cyan", show_lines=True)
    table.add_column("Days", style="bold yellow", no_wrap=True)
    for label in snapshot.labels:
        table.add_column(label, justify="left", min_width=11)

    for day in snapshot.settings.work_days:
        day_schedule = snapshot.schedule.get(day, {})
        cells = [day.value]
        spans = visible_spans(day_schedule, snapshot.time_slots)
        covered_until = 0
        for index, slot in enumerate(snapshot.time_slots):
            if index in spans:
                cells.append(_entry_markup(day_schedule[slot].entry))
                covered_until = index + spans[index]
            elif index < covered_until:
                cells.append("[dim]…[/dim]")
            else:
                cells.append("")
        table.add_row(*cells)

    return table


def _entries_table(entries: List[TimetableEntry], title: str = "Entries") -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Day", style="bold yellow")
    table.add_column("Time")
    table.add_column("Subject", style="bold")
    table.add_column("Location")
    table.add_column("Lecturer", style="dim")
    for number, entry in enumerate(entries, 1):
        table.add_row(
            str(number), entry.day.value, f"{entry.start_time}-{entry.end_time}",
            escape(entry.subject), escape(entry.location), escape(entry.lecturer),
        )
    return table


def _settings_summary(settings: CalendarSettings) -> str:
    days = ", ".join(day.value for day in settings.work_days)
    return (
        f"   Working hours: {settings.start_time} - {settings.end_time}\n"
        f"   Time format: {settings.time_format.value}\n"
        f"   Working days: {days}"
    )


def _export(store: TimetableStore, config: AppConfig, fmt: ExportFormat, output: Optional[Path]) -> Path:
    exporter = EXPORTERS[fmt.value](
        title=config.export.title,
        filename_prefix=config.export.filename_prefix,
    )
    path = exporter.resolve_path(output, config.export.output_dir)
    return exporter.export(store.snapshot(), path)


@app.command()
def show(
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Show the weekly grid of the configured timetable.
    """
    try:
        config = _load(config_file, verbose)
        store = config.build_store()
        snapshot = store.snapshot()
    except (FileNotFoundError, ValueError, TimetableError) as e:
        raise _fail(e)

    console.print()
    console.print(render_grid(snapshot))
    console.print(_settings_summary(snapshot.settings))
    console.print()


@app.command()
def slots(
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    List the time slots of the configured calendar.
    """
    try:
        config = _load(config_file, verbose)
        snapshot = config.build_store().snapshot()
    except (FileNotFoundError, ValueError, TimetableError) as e:
        raise _fail(e)

    table = Table(title="Time Slots", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right")
    table.add_column("Start", style="bold yellow")
    table.add_column("Range")
    for number, (slot, label) in enumerate(zip(snapshot.time_slots, snapshot.labels), 1):
        table.add_row(str(number), slot, label)

    console.print()
    console.print(table)
    console.print()


@app.command()
def check(
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
    fail_on_conflict: Annotated[bool, typer.Option("--fail-on-conflict", help="Exit with status 1 when entries overlap.")] = False,
):
    """
    Report overlapping entries and entries that are not displayed.
    """
    try:
        config = _load(config_file, verbose)
        store = config.build_store()
    except (FileNotFoundError, ValueError, TimetableError) as e:
        raise _fail(e)

    entries = list(store.entries)
    settings = store.settings
    console.print()

    conflicts = 0
    for position, entry in enumerate(entries):
        for other in find_overlaps(entry, entries[position + 1:]):
            conflicts += 1
            console.print(f"[yellow]⚠ Overlap:[/yellow] {escape(entry.describe())} ↔ {escape(other.describe())}")

    for issue in grid_issues(entries, settings):
        label = "Not displayed" if issue.hidden else "Cut off"
        console.print(f"[dim]{label} ({escape(issue.reason)}): {escape(issue.entry.describe())}[/dim]")

    if conflicts:
        console.print(f"\n[bold yellow]{conflicts} overlapping pair(s) found.[/bold yellow]\n")
        if fail_on_conflict:
            raise typer.Exit(1)
    else:
        console.print(f"[bold green]✓ No overlaps among {len(entries)} entries.[/bold green]\n")


@app.command()
def export(
    fmt: Annotated[ExportFormat, typer.Option("--format", "-f", help="Document format")] = ExportFormat.PDF,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Output file or directory")] = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Export the timetable to PDF or Excel.

    Examples:

        timetabler export
        timetabler export --format xlsx --output plan.xlsx
    """
    try:
        config = _load(config_file, verbose)
        store = config.build_store()
        path = _export(store, config, fmt, output)
    except (FileNotFoundError, ValueError, TimetableError) as e:
        raise _fail(e)

    console.print(f"\n[green]✓ Exported timetable to {path}[/green]\n")


# -----------------------------------------------------------
# Interactive session
# -----------------------------------------------------------

def _prompt_day(settings: CalendarSettings, default: Optional[DayOfWeek] = None) -> DayOfWeek:
    console.print("\nWorking days:")
    for idx, day in enumerate(settings.work_days, 1):
        console.print(f"  {idx}. {day.value}")
    default_day = default or settings.work_days[0]

    while True:
        answer = typer.prompt("→ Day (name or number)", default=default_day.value).strip()
        if answer.isdigit() and 1 <= int(answer) <= len(settings.work_days):
            return settings.work_days[int(answer) - 1]
        for day in WEEK:
            if day.value.lower() == answer.lower():
                return day
        console.print(f"[yellow]Unknown day: {escape(answer)}[/yellow]")


def _confirm_change(result: ChangeResult, apply) -> Optional[ChangeResult]:
    """Ask the user about overlaps and re-apply the change if confirmed."""
    if not result.needs_confirmation:
        return result
    console.print(f"[yellow]⚠ {escape(result.conflict_message())}[/yellow]")
    if typer.confirm("Do you want to save this entry anyway?", default=False):
        return apply()
    console.print("[dim]Discarded.[/dim]")
    return None


def _choose_entry(store: TimetableStore) -> Optional[TimetableEntry]:
    entries = list(store.entries)
    if not entries:
        console.print("[yellow]No entries yet.[/yellow]")
        return None
    console.print(_entries_table(entries))
    number = typer.prompt("→ Entry number", type=int)
    if not 1 <= number <= len(entries):
        console.print(f"[yellow]Number {number} is invalid.[/yellow]")
        return None
    return entries[number - 1]


def _session_add(store: TimetableStore) -> None:
    settings = store.settings
    day = _prompt_day(settings)
    subject = typer.prompt("→ Subject")
    location = typer.prompt("→ Location", default="")
    lecturer = typer.prompt("→ Lecturer", default="")
    start_time = typer.prompt("→ Start time (HH:MM)", default=settings.start_time).strip()
    end_time = typer.prompt(
        "→ End time (HH:MM)",
        default=default_end_time(start_time, store.time_slots(), settings.end_time),
    ).strip()

    draft = EntryDraft(
        subject=subject, location=location, lecturer=lecturer,
        day=day, start_time=start_time, end_time=end_time,
    )
    result = _confirm_change(
        store.create(draft),
        lambda: store.create(draft, allow_overlap=True),
    )
    if result is not None:
        console.print(f"[green]✓ Created {escape(result.entry.describe())}[/green]")


def _session_edit(store: TimetableStore) -> None:
    entry = _choose_entry(store)
    if entry is None:
        return

    day = _prompt_day(store.settings, default=entry.day)
    updated = replace(
        entry,
        day=day,
        subject=typer.prompt("→ Subject", default=entry.subject),
        location=typer.prompt("→ Location", default=entry.location),
        lecturer=typer.prompt("→ Lecturer", default=entry.lecturer),
        start_time=typer.prompt("→ Start time (HH:MM)", default=entry.start_time).strip(),
        end_time=typer.prompt("→ End time (HH:MM)", default=entry.end_time).strip(),
    )
    result = _confirm_change(
        store.update(updated),
        lambda: store.update(updated, allow_overlap=True),
    )
    if result is not None:
        console.print(f"[green]✓ Updated {escape(result.entry.describe())}[/green]")


def _session_delete(store: TimetableStore) -> None:
    entry = _choose_entry(store)
    if entry is None:
        return
    if typer.confirm(f"Delete {entry.describe()}?", default=True):
        store.delete(entry.id)
        console.print("[green]✓ Deleted[/green]")


def _session_settings(store: TimetableStore) -> None:
    current = store.settings
    fmt = TimeFormat(typer.prompt(
        "→ Time format (hourly, half-hour)", default=current.time_format.value
    ).strip())
    base = current.with_time_format(fmt) if fmt != current.time_format else current

    start_time = typer.prompt("→ Start time (HH:MM)", default=base.start_time).strip()
    end_time = typer.prompt("→ End time (HH:MM)", default=base.end_time).strip()
    days_answer = typer.prompt(
        "→ Working days (comma separated)",
        default=", ".join(day.value for day in base.work_days),
    )
    work_days = [DayOfWeek(part.strip().capitalize()) for part in days_answer.split(",") if part.strip()]

    settings = CalendarSettings(
        start_time=start_time, end_time=end_time, work_days=tuple(work_days), time_format=fmt,
    )
    store.update_settings(settings)
    console.print("[green]✓ Settings saved[/green]")
    console.print(_settings_summary(settings))


@app.command()
def session(
    config_file: ConfigOption = None,
    verbose: VerboseOption = False,
):
    """
    Edit the timetable interactively.

    Entries live in memory for the duration of the session; export before
    quitting to keep the result.
    """
    try:
        config = _load(config_file, verbose)
        store = config.build_store()
    except (FileNotFoundError, ValueError, TimetableError) as e:
        raise _fail(e)

    console.print("\n" + "=" * 60)
    console.print("[bold cyan]🗓️  Timetabler - Weekly timetable editor[/bold cyan]")
    console.print("=" * 60)
    console.print(_settings_summary(store.settings) + "\n")

    while True:
        command = typer.prompt(
            f"\n→ Command ({', '.join(SESSION_COMMANDS)})", default="show"
        ).strip().lower()

        try:
            if command == "quit":
                break
            elif command == "add":
                _session_add(store)
            elif command == "edit":
                _session_edit(store)
            elif command == "delete":
                _session_delete(store)
            elif command == "list":
                console.print(_entries_table(list(store.entries)))
            elif command == "show":
                console.print(render_grid(store.snapshot()))
            elif command == "settings":
                _session_settings(store)
            elif command == "export":
                fmt = ExportFormat(typer.prompt("→ Format (pdf, xlsx)", default="pdf").strip().lower())
                path = _export(store, config, fmt, None)
                console.print(f"[green]✓ Exported timetable to {path}[/green]")
            else:
                console.print(f"[yellow]Unknown command: {escape(command)}[/yellow]")
        except (TimetableError, ValueError) as e:
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")

    console.print(f"\n{len(store)} entries in this session. Bye.\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(Panel.fit(f"[bold cyan]timetabler[/bold cyan] version [bold]{__version__}[/bold]"))


if __name__ == "__main__":
    app()
