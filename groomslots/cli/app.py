"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..adapters.json_appointments import load_appointment_snapshot
from ..config import AppConfig, get_default_config_path
from ..domain.clock import FixedClock
from ..domain.exceptions import SchedulingError
from ..domain.models import ExistingAppointment, Service
from ..domain.timeutils import (
    format_date,
    format_time_display,
    parse_date,
    parse_instant,
    parse_time_of_day,
)
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="groomslots",
    help="Compute bookable grooming appointment slots",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
AppointmentsOption = Annotated[
    Optional[Path],
    typer.Option("--appointments", "-a", help="JSON snapshot of existing appointments"),
]
DurationOption = Annotated[
    int,
    typer.Option("--duration", "-d", help="Service duration in minutes"),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Print machine-readable JSON")]
NowOption = Annotated[
    Optional[str],
    typer.Option("--now", help="Evaluate as of this ISO-8601 instant instead of the current time"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """
    Appointment availability for grooming salons.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _build_service(config: AppConfig, now: Optional[str]) -> AvailabilityService:
    settings = config.to_settings()
    clock = FixedClock(parse_instant(now, settings.timezone, "now")) if now else None
    return AvailabilityService(settings, clock=clock)


def _load_appointments(path: Optional[Path], timezone: str) -> List[ExistingAppointment]:
    if path is None:
        return []
    return load_appointment_snapshot(path, timezone)


def _fail(error: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")
    raise typer.Exit(1)


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Date to query (YYYY-MM-DD)")],
    duration: DurationOption = 60,
    appointments: AppointmentsOption = None,
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
    now: NowOption = None,
):
    """
    List time slots for a service on one date.

    Examples:

        groomslots slots 2024-01-08 --duration 90

        groomslots slots 2024-01-08 -a appointments.json --json
    """
    try:
        config = _load_config(config_file)
        availability = _build_service(config, now)
        service = Service(duration_minutes=duration)
        day = parse_date(date)
        snapshot = _load_appointments(appointments, config.timezone)

        result = availability.describe_day(day, service, snapshot)
    except (FileNotFoundError, SchedulingError) as e:
        _fail(e)

    if as_json:
        console.print_json(data=result.to_dict())
        return

    if result.is_closed:
        console.print(f"[yellow]⚠ {format_date(day)} is closed: {result.reason}[/yellow]")
        return

    if not result.slots:
        console.print(
            f"[yellow]⚠ No slots on {format_date(day)} for a {duration} minute service.[/yellow]"
        )
        return

    table = Table(
        title=f"Slots on {format_date(day)} ({duration} min)",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Time", style="bold")
    table.add_column("Display")
    table.add_column("Status")

    for slot in result.slots:
        status = "[green]available[/green]" if slot.available else "[red]booked[/red]"
        table.add_row(slot.label, format_time_display(slot.label), status)

    console.print()
    console.print(table)
    console.print()


@app.command()
def check(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    duration: DurationOption = 60,
    appointments: AppointmentsOption = None,
    config_file: ConfigOption = None,
    now: NowOption = None,
):
    """
    Check whether one start time can still be booked.
    """
    try:
        config = _load_config(config_file)
        availability = _build_service(config, now)
        day = parse_date(date)
        start = parse_time_of_day(time)
        service = Service(duration_minutes=duration)
        snapshot = _load_appointments(appointments, config.timezone)

        result = availability.check_slot(day, start, service, snapshot)
    except (FileNotFoundError, SchedulingError) as e:
        _fail(e)

    if result.allowed:
        console.print(f"[green]✓ {date} {time} is free[/green]")
        return

    console.print(f"[red]✗ {date} {time} cannot be booked:[/red] {result.reason}")
    raise typer.Exit(2 if result.conflict else 1)


@app.command("disabled-dates")
def disabled_dates(
    start: Annotated[str, typer.Argument(help="First date (YYYY-MM-DD)")],
    end: Annotated[str, typer.Argument(help="Last date (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    as_json: JsonOption = False,
    now: NowOption = None,
):
    """
    List dates a booking calendar should grey out.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, now)
        dates = [
            format_date(day)
            for day in service.get_disabled_dates(parse_date(start, "start"), parse_date(end, "end"))
        ]
    except (FileNotFoundError, SchedulingError) as e:
        _fail(e)

    if as_json:
        console.print_json(data=dates)
        return

    if not dates:
        console.print("[green]✓ Every date in range is bookable.[/green]")
        return

    for value in dates:
        console.print(f"  {value}")


@app.command("next-available")
def next_available(
    from_date: Annotated[Optional[str], typer.Option("--from", help="Start searching here (YYYY-MM-DD)")] = None,
    days: Annotated[int, typer.Option("--days", help="How many days to search")] = 60,
    config_file: ConfigOption = None,
    now: NowOption = None,
):
    """
    Show the next date that accepts bookings.
    """
    try:
        config = _load_config(config_file)
        service = _build_service(config, now)
        start = parse_date(from_date, "from") if from_date else None
        found = service.next_available_date(start, days)
    except (FileNotFoundError, SchedulingError) as e:
        _fail(e)

    if found is None:
        console.print(f"[yellow]⚠ No bookable date within {days} days.[/yellow]")
        raise typer.Exit(1)

    console.print(format_date(found))


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]groomslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
