"""Typer-based CLI for Pawlog."""

from datetime import datetime

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import PawlogConfig
from .event_log import EventLog
from .gaps import gap_history
from .models.event import CoverageGapType, EventLocation, EventType, PuppyEvent
from .models.prediction import TriggerKind, Urgency
from .paths import DataPaths
from .prediction import predict
from .sessions import (
    build_sleep_sessions,
    build_walk_sessions,
    contained_potty_event_ids,
    ongoing_sleep_session,
    sleep_event,
    wake_event,
)
from .sleep import current_sleep_state

app = typer.Typer(
    name="pawlog",
    help="Pawlog - puppy care log with sleep/walk sessions and potty predictions",
    add_completion=False,
)

console = Console()

DATA_DIR_HELP = "Path to data directory (default: PAWLOG_DATA_DIR env or ./pawlog_data)"

URGENCY_STYLES = {
    Urgency.JUST_WENT: "green",
    Urgency.NORMAL: "cyan",
    Urgency.ATTENTION: "yellow",
    Urgency.SOON: "dark_orange",
    Urgency.OVERDUE: "red",
    Urgency.POST_ACCIDENT: "red",
    Urgency.COVERAGE_GAP: "magenta",
    Urgency.UNKNOWN: "dim",
}


def _load(data_dir: str | None) -> tuple[PawlogConfig, DataPaths]:
    try:
        config = PawlogConfig.from_env(cli_data_dir=data_dir)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/red]")
        raise typer.Exit(code=1)
    return config, DataPaths.from_config(config)


def _open_log(data_dir: str | None) -> tuple[PawlogConfig, EventLog]:
    config, paths = _load(data_dir)
    if not paths.is_initialized():
        console.print(f"[red]Error: Data directory not initialized at {paths.root}[/red]")
        console.print("[yellow]Run 'pawlog init' first[/yellow]")
        raise typer.Exit(code=1)
    return config, EventLog(paths.events_file)


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _parse_time(value: str | None) -> datetime:
    """Parse an ISO8601 timestamp; naive input is wall-clock time in the local zone."""
    if not value:
        return _local_now()
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        console.print(f"[red]Error: Invalid timestamp '{value}' (expected ISO8601)[/red]")
        raise typer.Exit(code=1)
    return parsed if parsed.tzinfo is not None else parsed.astimezone()


def _fmt(ts: datetime | None) -> str:
    return ts.astimezone().strftime("%Y-%m-%d %H:%M") if ts else "-"


@app.command()
def init(
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Initialize a Pawlog data directory with an empty event log and config.

    This command is idempotent - it will not overwrite existing data.
    """
    config, paths = _load(data_dir)

    if not paths.root.exists():
        paths.root.mkdir(parents=True, exist_ok=True)
        console.print(f"[green]Initializing new Pawlog data directory at:[/green] {paths.root}")
    else:
        console.print(f"[yellow]Directory already exists:[/yellow] {paths.root}")

    if not paths.config_file.exists():
        paths.config_file.write_text(config.to_toml_str())
        console.print(f"[green]+[/green] Created config: {paths.config_file}")
    else:
        console.print(f"[dim]Config already exists: {paths.config_file}[/dim]")

    if not paths.events_file.exists():
        paths.events_file.touch()
        console.print(f"[green]+[/green] Created event log: {paths.events_file}")
    else:
        console.print(f"[dim]Event log already exists: {paths.events_file}[/dim]")


@app.command()
def log(
    event_type: EventType = typer.Argument(..., help="Kind of event to log"),
    at: str = typer.Option(None, "--at", help="Event time (ISO8601, default: now)"),
    location: EventLocation = typer.Option(None, "--location", "-l", help="Inside/outside for potty events"),
    parent: str = typer.Option(None, "--walk", help="Id of the walk this potty break happened during"),
    note: str = typer.Option(None, "--note", "-n", help="Free-form note"),
    duration: int = typer.Option(None, "--duration", help="Duration in minutes"),
    weight: float = typer.Option(None, "--weight", help="Weight in kg"),
    gap_type: CoverageGapType = typer.Option(None, "--gap-type", help="Coverage gap kind"),
    end: str = typer.Option(None, "--end", help="Coverage gap end time (ISO8601)"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Append a new event to the log.

    Sleep events get a fresh session link; wake events inherit the link of the
    sleep they close.
    """
    _, event_log = _open_log(data_dir)
    time = _parse_time(at)
    if event_type.requires_location and location is None:
        console.print(f"[red]Error: {event_type.value} events need --location (inside or outside)[/red]")
        raise typer.Exit(code=1)

    fields = {
        "location": location,
        "parent_id": parent,
        "note": note,
        "duration_min": duration,
        "weight_kg": weight,
        "gap_type": gap_type,
        "end_time": _parse_time(end) if end else None,
    }
    fields = {k: v for k, v in fields.items() if v is not None}

    try:
        if event_type == EventType.SLEEP:
            event = sleep_event(time, **fields)
        elif event_type == EventType.WAKE:
            event = wake_event(event_log.snapshot(), time, **fields)
        else:
            event = PuppyEvent.create(event_type, time, **fields)
        event_log.append(event)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Logged {event.type.value}[/green] at {_fmt(event.time)}")
    console.print(f"  ID: {event.id}")
    if event.session_link_id:
        console.print(f"  Session: {event.session_link_id}")


@app.command()
def edit(
    event_id: str = typer.Argument(..., help="Id of the event to edit"),
    at: str = typer.Option(None, "--at", help="New event time (ISO8601)"),
    location: EventLocation = typer.Option(None, "--location", "-l", help="New location"),
    note: str = typer.Option(None, "--note", "-n", help="New note"),
    end: str = typer.Option(None, "--end", help="Coverage gap end time (ISO8601)"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Replace an event with an edited version carrying the same id."""
    _, event_log = _open_log(data_dir)

    current = event_log.get(event_id)
    if current is None:
        console.print(f"[red]Error: No event with id {event_id}[/red]")
        raise typer.Exit(code=1)

    changes = {}
    if at:
        changes["time"] = _parse_time(at)
    if location:
        changes["location"] = location
    if note is not None:
        changes["note"] = note
    if end:
        changes["end_time"] = _parse_time(end)

    if not changes:
        console.print("[yellow]Nothing to change[/yellow]")
        return

    try:
        event_log.replace(current.edited(**changes))
    except (ValidationError, KeyError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Updated[/green] {event_id}")


@app.command()
def delete(
    event_id: str = typer.Argument(..., help="Id of the event to delete"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Remove an event from the log."""
    _, event_log = _open_log(data_dir)
    try:
        event_log.delete(event_id)
    except KeyError:
        console.print(f"[red]Error: No event with id {event_id}[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]Deleted[/green] {event_id}")


@app.command()
def events(
    n: int = typer.Option(20, "--n", help="Number of recent events to display"),
    group_walks: bool = typer.Option(False, "--group-walks", help="Hide potty breaks logged under a walk"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Display the most recent events."""
    _, event_log = _open_log(data_dir)
    snapshot = event_log.snapshot()
    if group_walks:
        hidden = contained_potty_event_ids(snapshot)
        snapshot = [e for e in snapshot if e.id not in hidden]
    snapshot = snapshot[-n:]

    if not snapshot:
        console.print("[dim]No events logged[/dim]")
        return

    table = Table(title=f"Last {len(snapshot)} Event(s)")
    table.add_column("Time", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Location")
    table.add_column("ID", style="dim")
    table.add_column("Note", style="dim")

    for event in snapshot:
        note = event.note or ""
        if len(note) > 40:
            note = note[:37] + "..."
        table.add_row(
            _fmt(event.time),
            event.type.value,
            event.location.value if event.location else "-",
            event.id[:8] + "...",
            note,
        )

    console.print(table)


@app.command()
def sessions(
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Show sleep sessions and walks reconstructed from the log."""
    _, event_log = _open_log(data_dir)
    snapshot = event_log.snapshot()
    now = _local_now()

    sleep_table = Table(title="Sleep Sessions")
    sleep_table.add_column("Start", style="cyan", no_wrap=True)
    sleep_table.add_column("End", style="cyan", no_wrap=True)
    sleep_table.add_column("Minutes", justify="right")
    sleep_table.add_column("Session", style="dim")
    for session in build_sleep_sessions(snapshot):
        sleep_table.add_row(
            _fmt(session.start_time),
            _fmt(session.end_time) if not session.is_ongoing else "[yellow]ongoing[/yellow]",
            str(session.duration_minutes(now)),
            session.id[:8] + "...",
        )
    console.print(sleep_table)

    walk_table = Table(title="Walks")
    walk_table.add_column("Start", style="cyan", no_wrap=True)
    walk_table.add_column("Pee")
    walk_table.add_column("Poop")
    walk_table.add_column("Potty Breaks", justify="right")
    for walk in build_walk_sessions(snapshot):
        walk_table.add_row(
            _fmt(walk.start_time),
            "yes" if walk.has_pee else "-",
            "yes" if walk.has_poop else "-",
            str(len(walk.child_potty_events)),
        )
    console.print(walk_table)

    ongoing = ongoing_sleep_session(snapshot)
    if ongoing:
        console.print(f"[yellow]Sleeping since {_fmt(ongoing.start_time)}[/yellow]")


@app.command()
def gaps(
    event_type: EventType = typer.Option(EventType.PEE, "--type", "-t", help="Event type to analyze"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Show historical gaps between events of one type."""
    config, event_log = _open_log(data_dir)
    history, stats = gap_history(event_log.snapshot(), event_type, config.prediction)

    if not stats.is_sufficient:
        console.print(f"[dim]Not enough {event_type.value} events to compute gaps[/dim]")
        return

    console.print(f"[bold]{event_type.value} gaps[/bold] ({stats.count} intervals)")
    console.print(f"  Typical ({stats.statistic}): {stats.typical_minutes} min")
    console.print(f"  Min / Max:      {stats.min_minutes} / {stats.max_minutes} min")
    console.print(f"  Mean / Median:  {stats.mean_minutes} / {stats.median_minutes} min")
    console.print(f"  Ended outside:  {stats.outdoor_percentage}%")
    if stats.excluded_count:
        console.print(f"  [dim]{stats.excluded_count} interval(s) skipped for coverage gaps[/dim]")


@app.command()
def status(
    event_type: EventType = typer.Option(EventType.PEE, "--type", "-t", help="Event type to predict"),
    at: str = typer.Option(None, "--at", help="Evaluate as of this time (ISO8601, default: now)"),
    data_dir: str = typer.Option(None, "--data-dir", "-d", help=DATA_DIR_HELP),
):
    """Show sleep state and when the next event is expected."""
    config, event_log = _open_log(data_dir)
    snapshot = event_log.snapshot()
    now = _parse_time(at)

    sleep_state = current_sleep_state(snapshot, now)
    prediction = predict(snapshot, config.prediction, now, event_type)

    style = URGENCY_STYLES[prediction.urgency]
    console.print(f"Urgency:  [{style}]{prediction.urgency.value}[/{style}]")
    if prediction.expected_next_time:
        console.print(f"Expected: {_fmt(prediction.expected_next_time)}")
    if prediction.minutes_since_last is not None:
        console.print(f"Last:     {prediction.minutes_since_last} min ago")
    if prediction.expected_gap_minutes is not None and prediction.gap_source:
        console.print(f"Gap:      {prediction.expected_gap_minutes} min ({prediction.gap_source})")
    if prediction.trigger.kind != TriggerKind.NONE:
        console.print(f"Trigger:  {prediction.trigger.kind.value} ({prediction.trigger.minutes_ago} min ago)")
    if prediction.is_night:
        console.print("[dim]Night time[/dim]")
    console.print(f"Sleep:    {sleep_state.status.value}")


@app.command()
def version():
    """Show Pawlog version."""
    from . import __version__
    console.print(f"Pawlog v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
