"""
Main CLI application using Typer.

Works against a YAML data file loaded into the in-memory store, which makes
it handy for checking a schedule before it goes live.
"""

import json
from pathlib import Path
from typing import Annotated, List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from ..adapters.memory import InMemoryStore
from ..config import AppConfig, configure_logging, get_default_config_path
from ..domain.exceptions import BookingEngineError, SchedulingConflictError
from ..domain.models import DAYS_OF_WEEK
from ..domain.schedule_validator import ScheduleValidator
from ..domain.timeutils import format_time_of_day
from ..services.facade import BookingEngine

app = typer.Typer(
    name="eventbooking",
    help="Inspect event schedules, list open slots and try bookings",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Explicit config files must exist; the default one is optional."""
    if config_file is not None:
        config = AppConfig.load_from_yaml(config_file)
    else:
        default_path = get_default_config_path()
        config = AppConfig.load_from_yaml(default_path) if default_path.exists() else AppConfig()

    configure_logging(config.log_level)
    return config


def _build_engine(config: AppConfig, data_file: Path) -> BookingEngine:
    validator = ScheduleValidator(config.defaults.schedule_defaults())
    store = InMemoryStore.load_fixture(data_file, validator=validator)
    return BookingEngine.from_config(config, store)


def _parse_guest(value: str) -> dict:
    """Accept ``Name <email>`` or a bare email address."""
    if "<" in value and value.endswith(">"):
        name, email = value[:-1].split("<", 1)
        return {"name": name.strip(), "email": email.strip()}
    return {"name": value.split("@", 1)[0], "email": value.strip()}


@app.command()
def normalize(
    schedule_file: Annotated[Path, typer.Argument(help="YAML or JSON file with a weekly schedule")],
    config_file: ConfigOption = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the normalized schedule as JSON")] = False,
):
    """
    Show how a raw schedule is normalized.

    Examples:

        eventbooking normalize schedule.yaml
        eventbooking normalize schedule.yaml --json
    """
    try:
        config = _load_config(config_file)

        if not schedule_file.exists():
            raise FileNotFoundError(f"Schedule file not found: {schedule_file}")

        with open(schedule_file, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)

        if isinstance(raw, dict) and "schedule" in raw:
            raw = raw["schedule"]

        schedule = ScheduleValidator(config.defaults.schedule_defaults()).normalize(raw)

        if as_json:
            console.print_json(json.dumps(schedule.to_dict()))
            return

        table = Table(title="Weekly schedule", show_header=True, header_style="bold cyan")
        table.add_column("Day", style="bold yellow")
        table.add_column("Enabled")
        table.add_column("Hours")
        table.add_column("Breaks", style="dim")

        for day_name in DAYS_OF_WEEK:
            day = schedule.days[day_name]
            breaks = ", ".join(
                f"{format_time_of_day(p.start_time)}-{format_time_of_day(p.end_time)}"
                for p in day.breaks
            )
            table.add_row(
                day_name.capitalize(),
                "[green]yes[/green]" if day.enabled else "[red]no[/red]",
                f"{format_time_of_day(day.start_time)} - {format_time_of_day(day.end_time)}",
                breaks or "-",
            )

        console.print()
        console.print(table)
        console.print()

    except (FileNotFoundError, ValueError, yaml.YAMLError, BookingEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def slots(
    data_file: Annotated[Path, typer.Argument(help="YAML file with events and bookings")],
    event_id: Annotated[int, typer.Argument(help="Event to inspect")],
    day: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    duration: Annotated[Optional[int], typer.Option("--duration", help="Slot length in minutes")] = None,
    include_booked: Annotated[bool, typer.Option("--all", help="Also list slots that are already booked")] = False,
    config_file: ConfigOption = None,
):
    """
    List the open slots of an event for one day.

    Examples:

        eventbooking slots data.yaml 1 --date 2024-11-25
        eventbooking slots data.yaml 1 --date 2024-11-25 --duration 60 --all
    """
    try:
        config = _load_config(config_file)
        engine = _build_engine(config, data_file)

        found = engine.compute_availability(event_id, day, duration, only_free=not include_booked)

        console.print()
        if not found:
            console.print(f"[yellow]⚠ No open slots on {day}.[/yellow]")
        else:
            console.print(f"[bold green]✓ {len(found)} slot(s) on {day}:[/bold green]\n")
            for slot in found:
                console.print(f"  {slot}")
        console.print()

    except (FileNotFoundError, ValueError, BookingEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def check(
    data_file: Annotated[Path, typer.Argument(help="YAML file with events and bookings")],
    event_id: Annotated[int, typer.Argument(help="Event to check")],
    start: Annotated[str, typer.Option("--start", help="Start timestamp (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="End timestamp (ISO 8601)")],
    tz: Annotated[Optional[str], typer.Option("--tz", help="Zone for timestamps without offset")] = None,
    config_file: ConfigOption = None,
):
    """
    Check whether a time range can be booked.
    """
    try:
        config = _load_config(config_file)
        engine = _build_engine(config, data_file)

        if engine.schedules.is_time_slot_available(event_id, start, end, timezone=tz):
            console.print("[bold green]✓ Available[/bold green]")
        else:
            console.print("[bold red]✗ Not available[/bold red]")
            raise typer.Exit(2)

    except (FileNotFoundError, ValueError, BookingEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def book(
    data_file: Annotated[Path, typer.Argument(help="YAML file with events and bookings")],
    event_id: Annotated[int, typer.Argument(help="Event to book")],
    start: Annotated[str, typer.Option("--start", help="Start timestamp (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="End timestamp (ISO 8601)")],
    guests: Annotated[Optional[List[str]], typer.Option("--guest", "-g", help="Guest as 'Name <email>'")] = None,
    tz: Annotated[Optional[str], typer.Option("--tz", help="Zone for timestamps without offset")] = None,
    config_file: ConfigOption = None,
):
    """
    Try a booking against the data file (nothing is written back).
    """
    try:
        config = _load_config(config_file)
        engine = _build_engine(config, data_file)

        booking = engine.create_booking({
            "event_id": event_id,
            "start_time": start,
            "end_time": end,
            "timezone": tz,
            "guests": [_parse_guest(g) for g in guests or []],
        })

        console.print(f"[bold green]✓ Booking {booking.id} confirmed[/bold green]")
        console.print_json(json.dumps(booking.to_dict()))

    except SchedulingConflictError as e:
        console.print(f"[bold red]✗ Conflict:[/bold red] {e.reason}")
        raise typer.Exit(2)

    except (FileNotFoundError, ValueError, BookingEngineError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]eventbooking[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
