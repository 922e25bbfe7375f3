"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import AreaSlotsError
from ..domain.models import Location, format_minutes, parse_date_string, parse_time_string
from ..domain.slot_calculator import SlotCalculator
from ..services.availability_service import AvailabilityService
from ..services.cache import RecordCache

app = typer.Typer(
    name="areaslots",
    help="Publish weekly availability per location and book appointments with travel buffers",
    add_completion=False
)

console = Console()

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    Availability and booking for calendar owners with several locations.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    try:
        return AppConfig.load_from_yaml(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _build_service(config: AppConfig) -> AvailabilityService:
    return AvailabilityService(
        store=config.store.create_store(),
        slot_calculator=SlotCalculator(policy=config.slots.get_alignment_policy()),
        cache=RecordCache(ttl_seconds=config.cache_ttl_seconds),
    )


def _owner_for_read(config: AppConfig, handle: str) -> Optional[str]:
    owner_id = config.resolve_owner(handle)
    if owner_id is None:
        console.print(f"[yellow]Unknown owner '{handle}'.[/yellow]")
    return owner_id


def _owner_for_write(config: AppConfig, handle: str) -> str:
    owner_id = config.resolve_owner(handle)
    if owner_id is None:
        console.print(f"[bold red]Error:[/bold red] Unknown owner '{handle}'.")
        raise typer.Exit(1)
    return owner_id


def _parse_day(value: Optional[str]):
    if value is None:
        return pendulum.today().date()
    try:
        return parse_date_string(value)
    except ValueError as e:
        console.print(f"[red]Could not parse date: {e}[/red]")
        raise typer.Exit(1)


def _parse_weekday(value: str) -> int:
    """Accept 0-6 (Sunday=0) or an English weekday name or prefix."""
    if value.isdigit() and 0 <= int(value) <= 6:
        return int(value)

    matches = [
        index for index, name in enumerate(WEEKDAY_NAMES)
        if len(value) >= 3 and name.lower().startswith(value.lower())
    ]
    if len(matches) != 1:
        console.print(f"[red]Invalid weekday: {value}[/red]")
        raise typer.Exit(1)
    return matches[0]


async def _find_location(service: AvailabilityService, owner_id: Optional[str], key: str) -> Optional[Location]:
    """Look a location up by id, then by case-insensitive name."""
    if not owner_id:
        return None
    locations = await service.list_locations(owner_id)
    for location in locations:
        if location.id == key:
            return location
    for location in locations:
        if location.name.lower() == key.lower():
            return location
    return None


def _run(coro):
    """Run a coroutine, turning application errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except AreaSlotsError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[bold red]Invalid input:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def slots(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    location: Annotated[str, typer.Argument(help="Location id or name")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Date (YYYY-MM-DD), defaults to today")] = None,
    duration: Annotated[Optional[int], typer.Option("--duration", help="Slot duration in minutes")] = None,
    config_file: ConfigOption = None,
):
    """
    Show the bookable slots of a location on one day.

    Examples:

        areaslots slots anna "Studio North" --date 2024-11-25
        areaslots slots anna studio-north --duration 30
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_read(config, owner)
    day = _parse_day(date)
    slot_duration = duration if duration is not None else config.slots.duration_minutes

    async def _compute():
        found = await _find_location(service, owner_id, location)
        location_id = found.id if found else location
        return found, await service.compute_available_slots(
            owner_id, location_id, day, slot_duration_minutes=slot_duration
        )

    found, available = _run(_compute())
    place_name = found.name if found else location

    console.print()
    if not available:
        console.print(
            f"[yellow]⚠ No available slots at {place_name} on {day.format('dddd, DD.MM.YYYY')}.[/yellow]"
        )
    else:
        console.print(
            f"[bold green]✓ {len(available)} slot(s) at {place_name} on "
            f"{day.format('dddd, DD.MM.YYYY')}:[/bold green]\n"
        )
        for slot in available:
            console.print(f"  {slot.format_display()}")
    console.print()


@app.command()
def days(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    month: Annotated[Optional[int], typer.Option("--month", "-m", help="Month (1-12), defaults to this month")] = None,
    year: Annotated[Optional[int], typer.Option("--year", "-y", help="Year, defaults to this year")] = None,
    config_file: ConfigOption = None,
):
    """
    List the days of a month that have opening hours.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_read(config, owner)
    today = pendulum.today()
    target_month = month or today.month
    target_year = year or today.year

    open_days = _run(service.compute_available_days(owner_id, target_month, target_year))

    if not open_days:
        console.print("[yellow]No open days in this month.[/yellow]")
        return

    table = Table(
        title=f"Open days {target_month:02d}/{target_year}",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Weekday", style="dim")

    for day in open_days:
        table.add_row(day.isoformat(), day.format("dddd"))

    console.print()
    console.print(table)
    console.print()


@app.command()
def locations(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    config_file: ConfigOption = None,
):
    """
    List the locations and areas of an owner.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_write(config, owner)

    records = _run(service.fetch_records(owner_id))

    if not records.locations:
        console.print("[yellow]No locations configured.[/yellow]")
        return

    table = Table(title="Locations", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold yellow")
    table.add_column("Area")
    table.add_column("Travel buffer (min)", justify="right")

    for location in records.locations:
        area = records.find_area(location.area) if location.area else None
        table.add_row(
            location.id,
            location.name,
            location.area or "-",
            str(area.travel_buffer_minutes) if area else "Not set",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def rules(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    config_file: ConfigOption = None,
):
    """
    List the weekly availability rules of an owner.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_write(config, owner)

    availability_rules = _run(service.list_availability_rules(owner_id))

    if not availability_rules:
        console.print("[yellow]No availability rules configured.[/yellow]")
        return

    table = Table(title="Availability rules", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Weekday", style="bold yellow")
    table.add_column("From")
    table.add_column("To")

    for rule in availability_rules:
        table.add_row(rule.id, WEEKDAY_NAMES[rule.day_of_week], rule.start_time, rule.end_time)

    console.print()
    console.print(table)
    console.print()


@app.command()
def bookings(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    date: Annotated[Optional[str], typer.Option("--date", "-d", help="Only bookings on this date (YYYY-MM-DD)")] = None,
    config_file: ConfigOption = None,
):
    """
    List booked slots.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_write(config, owner)
    day = _parse_day(date) if date else None

    booked = _run(service.list_booked_slots(owner_id, day))

    if not booked:
        console.print("[yellow]No bookings found.[/yellow]")
        return

    table = Table(title="Bookings", show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Date", style="bold yellow")
    table.add_column("Time")
    table.add_column("Location")
    table.add_column("Customer")

    for booking in booked:
        table.add_row(
            booking.id,
            booking.date,
            f"{booking.start_time} - {booking.end_time}",
            booking.location_id,
            f"{booking.customer_name} <{booking.customer_email}>",
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def add_area(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    name: Annotated[str, typer.Argument(help="Area name")],
    buffer: Annotated[int, typer.Option("--buffer", "-b", help="Travel buffer in minutes")] = 30,
    config_file: ConfigOption = None,
):
    """
    Create an area with its travel buffer.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_write(config, owner)

    area = _run(service.add_area(owner_id, name=name, travel_buffer_minutes=buffer))
    console.print(f"\n[green]✓ Area '{area.name}' created ({area.travel_buffer_minutes} min buffer).[/green]\n")


@app.command()
def add_location(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    name: Annotated[str, typer.Argument(help="Location name")],
    area: Annotated[str, typer.Option("--area", "-a", help="Area the location belongs to")] = "",
    config_file: ConfigOption = None,
):
    """
    Create a location.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_write(config, owner)

    location = _run(service.add_location(owner_id, name=name, area=area))
    console.print(f"\n[green]✓ Location '{location.name}' created with id {location.id}.[/green]\n")


@app.command()
def add_rule(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    weekday: Annotated[str, typer.Argument(help="Weekday name or number (Sunday=0)")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    end: Annotated[str, typer.Argument(help="End time (HH:MM)")],
    config_file: ConfigOption = None,
):
    """
    Add a weekly availability rule.

    Examples:

        areaslots add-rule anna monday 09:00 12:00
        areaslots add-rule anna 1 13:00 17:00
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_write(config, owner)
    day_of_week = _parse_weekday(weekday)

    rule = _run(
        service.add_availability_rule(
            owner_id, day_of_week=day_of_week, start_time=start, end_time=end
        )
    )
    console.print(
        f"\n[green]✓ Rule added: {WEEKDAY_NAMES[rule.day_of_week]} {rule.start_time} - {rule.end_time}.[/green]\n"
    )


@app.command()
def book(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    location: Annotated[str, typer.Argument(help="Location id or name")],
    start: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    date: Annotated[str, typer.Option("--date", "-d", help="Date (YYYY-MM-DD)")],
    name: Annotated[str, typer.Option("--name", "-n", help="Customer name")],
    email: Annotated[str, typer.Option("--email", "-e", help="Customer email")],
    duration: Annotated[Optional[int], typer.Option("--duration", help="Slot duration in minutes")] = None,
    config_file: ConfigOption = None,
):
    """
    Book an available slot.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_write(config, owner)
    day = _parse_day(date)
    slot_duration = duration if duration is not None else config.slots.duration_minutes

    try:
        start_minutes = parse_time_string(start)
    except ValueError:
        console.print(f"[red]Invalid start time: {start}[/red]")
        raise typer.Exit(1)
    end_minutes = start_minutes + slot_duration
    if end_minutes >= 24 * 60:
        console.print("[red]Slots must end on the same day.[/red]")
        raise typer.Exit(1)

    async def _book():
        found = await _find_location(service, owner_id, location)
        if found is None:
            raise ValueError(f"Unknown location '{location}'")
        return found, await service.book_slot(
            owner_id,
            location_id=found.id,
            day=day,
            start_time=format_minutes(start_minutes),
            end_time=format_minutes(end_minutes),
            customer_name=name,
            customer_email=email,
        )

    found, booking = _run(_book())

    console.print(Panel.fit(
        f"[bold green]✓ Your booking has been confirmed![/bold green]\n\n"
        f"[bold]Location:[/bold] {found.name}\n"
        f"[bold]Date:[/bold] {day.format('dddd, MMM DD, YYYY')}\n"
        f"[bold]Time:[/bold] {booking.start_time} - {booking.end_time}\n"
        f"[bold]Name:[/bold] {booking.customer_name}\n"
        f"[bold]Email:[/bold] {booking.customer_email}",
        title="Booking details"
    ))


@app.command()
def cancel(
    owner: Annotated[str, typer.Argument(help="Public handle of the calendar owner")],
    booking_id: Annotated[str, typer.Argument(help="Booking id")],
    config_file: ConfigOption = None,
):
    """
    Delete a booking.
    """
    config = _load_config(config_file)
    service = _build_service(config)
    owner_id = _owner_for_write(config, owner)

    _run(service.delete_booked_slot(owner_id, booking_id))
    console.print(f"\n[green]✓ Booking {booking_id} deleted.[/green]\n")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]areaslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
