"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..domain.closures import active_closures
from ..domain.exceptions import (
    BookingRejection,
    ClosedDateError,
    ConflictError,
    SchedulingError,
)
from ..domain.time_arithmetic import format_duration
from ..services.booking import BookingService

app = typer.Typer(
    name="salonscheduler",
    help="Find free appointment slots and book them without double-booking",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
MockOption = Annotated[
    bool,
    typer.Option("--mock", help="Use the bundled JSON sample data instead of Firestore."),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Salon appointment scheduling.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """
    Load an explicit config file, or ./config.yaml when present.

    Without either, the built-in defaults (standard opening hours) apply.
    """
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()


def _build_store(config: AppConfig, mock: bool):
    if mock:
        from ..adapters.memory_store import InMemoryStore

        return InMemoryStore.load_from_json(config.data_file, timezone=config.timezone)

    from ..adapters.firestore_store import FirestoreStore

    return FirestoreStore.from_project(
        config.firestore.project,
        timezone=config.timezone,
        appointments_collection=config.firestore.appointments_collection,
        closures_collection=config.firestore.closures_collection,
    )


def _build_service(config: AppConfig, mock: bool) -> BookingService:
    store = _build_store(config, mock)
    return BookingService(
        engine=config.build_engine(),
        appointments=store,
        closures=store,
        sink=store,
        buffer_minutes=config.buffer_minutes,
    )


def _resolve_date(value: str, tz: str):
    """Accept "today", "tomorrow" or any date the engine can normalize."""
    keyword = value.strip().lower()
    if keyword == "today":
        return pendulum.today(tz).date()
    if keyword == "tomorrow":
        return pendulum.tomorrow(tz).date()
    return value


def _resolve_service(config: AppConfig, service: Optional[str], duration: Optional[int]):
    """
    Return the canonical service name and the duration to use.

    A service with a single configured duration needs no --duration.
    """
    name = service or ""
    if service and config.services:
        configured = config.find_service(service)
        if configured is None:
            known = ", ".join(s.name for s in config.services)
            raise typer.BadParameter(f"Unknown service '{service}'. Known services: {known}")
        name = configured.name
        if duration is None and len(configured.durations) == 1:
            duration = configured.durations[0]

    if duration is None:
        raise typer.BadParameter("Please specify --duration (minutes).")
    return name, duration


def _print_rejection(rejection: BookingRejection) -> None:
    if isinstance(rejection, ConflictError):
        console.print("[bold red]✗ This slot has just been taken.[/bold red]")
        for conflict in rejection.conflicts:
            console.print(f"  Conflicts with {conflict.start_time}-{conflict.end_time}")
    elif isinstance(rejection, ClosedDateError) and rejection.closure is not None:
        closure = rejection.closure
        console.print(
            f"[bold red]✗ Closed:[/bold red] {closure.start_date.isoformat()} to "
            f"{closure.end_date.isoformat()} {closure.reason}".rstrip()
        )
    else:
        console.print(f"[bold red]✗ Not bookable:[/bold red] {rejection}")


@app.command()
def slots(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD, 'today' or 'tomorrow')")],
    service: Annotated[Optional[str], typer.Option("--service", "-s", help="Appointment type")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Duration in minutes")] = None,
    buffer: Annotated[Optional[int], typer.Option("--buffer", "-b", help="Minutes to keep free around existing appointments")] = None,
    days: Annotated[int, typer.Option("--days", help="Number of days to show, starting at DATE")] = 1,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List free start times.

    Examples:

        salonscheduler slots 2026-11-02 --duration 60 --mock

        salonscheduler slots tomorrow -s Manicure -d 30

        salonscheduler slots today -d 60 --days 7 --buffer 10
    """
    try:
        config = _load_config(config_file)
        appointment_type, minutes = _resolve_service(config, service, duration)
        booking = _build_service(config, mock)
        start = _resolve_date(date, config.timezone)

        if days > 1:
            availability = booking.upcoming_availability(
                start=start,
                days=days,
                appointment_type=appointment_type,
                duration_minutes=minutes,
                buffer_minutes=buffer,
            )
        else:
            result = booking.available_slots(
                date=start,
                appointment_type=appointment_type,
                duration_minutes=minutes,
                buffer_minutes=buffer,
            )
            availability = {result.date: result}

        console.print(
            f"\n[bold cyan]Free slots[/bold cyan] for {appointment_type or 'any service'} "
            f"({format_duration(minutes)})\n"
        )

        if not any(len(result) for result in availability.values()):
            console.print("[yellow]⚠ No free slots found.[/yellow]")
            for day in availability:
                if booking.is_date_closed(day):
                    console.print(f"  {day.isoformat()} falls in a closure period.")
            if not availability:
                console.print("  The salon is closed on the requested day(s).")
            console.print()
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Date", style="bold yellow", no_wrap=True)
        table.add_column("Free start times")
        for day, result in availability.items():
            label = f"{day.strftime('%a')} {day.isoformat()}"
            table.add_row(label, ", ".join(result.as_strings()) or "[dim]-[/dim]")
        console.print(table)
        console.print()

    except (SchedulingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def book(
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD, 'today' or 'tomorrow')")],
    start_time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    service: Annotated[Optional[str], typer.Option("--service", "-s", help="Appointment type")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", "-d", help="Duration in minutes")] = None,
    name: Annotated[str, typer.Option("--name", "-n", help="Customer name")] = "",
    buffer: Annotated[Optional[int], typer.Option("--buffer", "-b", help="Minutes to keep free around existing appointments")] = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    Book an appointment; the slot is re-checked inside the storage transaction.
    """
    try:
        config = _load_config(config_file)
        appointment_type, minutes = _resolve_service(config, service, duration)
        booking = _build_service(config, mock)

        appointment = booking.book(
            date=_resolve_date(date, config.timezone),
            start_time=start_time,
            duration_minutes=minutes,
            appointment_type=appointment_type,
            customer_name=name,
            buffer_minutes=buffer,
        )

        console.print(Panel.fit(
            f"[bold green]✓ Appointment booked[/bold green]\n\n"
            f"[bold]Date:[/bold] {appointment.date.isoformat()}\n"
            f"[bold]Time:[/bold] {appointment.start_time} - {appointment.end_time}\n"
            f"[bold]Service:[/bold] {appointment.appointment_type or 'N/A'}\n"
            f"[bold]Id:[/bold] {appointment.id}",
            title="Booking"
        ))
        if mock:
            console.print("[yellow]⊘ Mock mode: the booking is not persisted.[/yellow]")

    except BookingRejection as rejection:
        _print_rejection(rejection)
        raise typer.Exit(2)
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def hours(config_file: ConfigOption = None):
    """
    Show the weekly opening hours.
    """
    try:
        config = _load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    table = Table(title="Opening hours", show_header=True, header_style="bold cyan")
    table.add_column("Day", style="bold yellow")
    table.add_column("Hours")
    for day, window in config.build_calendar().summary().items():
        table.add_row(day, window if window != "Closed" else "[dim]Closed[/dim]")

    console.print()
    console.print(table)
    console.print()


@app.command()
def closures(
    show_all: Annotated[bool, typer.Option("--all", help="Include closure periods that have ended.")] = False,
    config_file: ConfigOption = None,
    mock: MockOption = False,
):
    """
    List closure (vacation) periods.
    """
    try:
        config = _load_config(config_file)
        store = _build_store(config, mock)
        periods = store.fetch_all_closures()
        if not show_all:
            periods = active_closures(periods, pendulum.today(config.timezone).date())
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not periods:
        console.print("[yellow]No closure periods.[/yellow]")
        return

    table = Table(title="Closure periods", show_header=True, header_style="bold cyan")
    table.add_column("From", style="bold yellow")
    table.add_column("To", style="bold yellow")
    table.add_column("Days")
    table.add_column("Reason", style="dim")
    for period in periods:
        table.add_row(
            period.start_date.isoformat(),
            period.end_date.isoformat(),
            str(period.length_days()),
            period.reason,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]salonscheduler[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
