"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from pendulum import DateTime
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..adapters.json_store import JsonAvailabilityStore
from ..domain.exceptions import SlotEngineError
from ..domain.time_grid import FixedClock
from ..services.availability_service import AvailabilityService

app = typer.Typer(
    name="bookingslots",
    help="Compute bookable appointment slots from availability rules and reservations",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DataOption = Annotated[Optional[Path], typer.Option("--data", help="JSON file with rules and reservations (overrides config)")]
TimezoneOption = Annotated[Optional[str], typer.Option("--timezone", "-t", help="Business timezone (overrides config)")]
DurationOption = Annotated[Optional[int], typer.Option("--duration", "-d", help="Booking duration in minutes")]
NowOption = Annotated[Optional[str], typer.Option("--now", help="Pretend the current time is this ISO 8601 instant")]


def _load_config(config_file: Optional[Path]) -> AppConfig:
    """Load the explicit config file, or the default one when it exists."""
    if config_file is not None:
        return AppConfig.load_from_yaml(config_file)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _parse_date(value: str, tz: str, label: str):
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=tz).date()
    except ValueError as e:
        console.print(f"[red]Error parsing {label} '{value}': {e}[/red]")
        raise typer.Exit(1)


def _build_service(
    config: AppConfig,
    data_file: Optional[Path],
    now: Optional[str],
) -> AvailabilityService:
    data_path = data_file or config.data_file
    if data_path is None:
        console.print("[red]Error: no data file given. Use --data or set data_file in the config.[/red]")
        raise typer.Exit(1)

    clock = None
    if now:
        try:
            instant = pendulum.parse(now, tz=config.timezone)
        except ValueError as e:
            console.print(f"[red]Error parsing --now '{now}': {e}[/red]")
            raise typer.Exit(1)
        if not isinstance(instant, DateTime):
            console.print(f"[red]Error: --now must be a date and time, got '{now}'[/red]")
            raise typer.Exit(1)
        clock = FixedClock(instant)

    return AvailabilityService.from_config(JsonAvailabilityStore(data_path), config, clock=clock)


def _setup(config_file: Optional[Path], timezone: Optional[str]) -> AppConfig:
    try:
        config = _load_config(config_file)
        if timezone:
            config = AppConfig(**{**config.model_dump(), "timezone": timezone})
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _configure_logging(config.log_level)
    return config


@app.command()
def slots(
    business_id: Annotated[str, typer.Argument(help="Business identifier")],
    date: Annotated[str, typer.Argument(help="Target date (YYYY-MM-DD)")],
    duration: DurationOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    timezone: TimezoneOption = None,
    now: NowOption = None,
):
    """
    List bookable start times of a business on one day.

    Examples:

        bookingslots slots salon-42 2024-11-25 --data availability.json
        bookingslots slots salon-42 2024-11-25 -d 60 -t Europe/Berlin
    """
    config = _setup(config_file, timezone)
    target_date = _parse_date(date, config.timezone, "date")
    duration_minutes = duration if duration is not None else config.engine.default_duration_minutes
    service = _build_service(config, data_file, now)

    try:
        found = asyncio.run(
            service.compute_slot_details(business_id, target_date, duration_minutes)
        )
    except SlotEngineError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not found:
        console.print(
            f"[yellow]No bookable slots for {business_id} on {target_date.isoformat()}.[/yellow]"
        )
        return

    table = Table(
        title=f"Slots for {business_id} on {target_date.isoformat()} ({duration_minutes} min)",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Start", style="bold yellow")
    table.add_column("End", style="dim")

    for slot in found:
        table.add_row(slot.label, slot.end.format("HH:mm"))

    console.print(table)


@app.command()
def overview(
    business_id: Annotated[str, typer.Argument(help="Business identifier")],
    start: Annotated[str, typer.Argument(help="First date (YYYY-MM-DD)")],
    end: Annotated[str, typer.Argument(help="Last date (YYYY-MM-DD), inclusive")],
    duration: DurationOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
    timezone: TimezoneOption = None,
    now: NowOption = None,
):
    """
    List the dates of a range that have at least one bookable slot.
    """
    config = _setup(config_file, timezone)
    start_date = _parse_date(start, config.timezone, "start date")
    end_date = _parse_date(end, config.timezone, "end date")
    duration_minutes = duration if duration is not None else config.engine.default_duration_minutes
    service = _build_service(config, data_file, now)

    try:
        dates = asyncio.run(
            service.available_dates(business_id, start_date, end_date, duration_minutes)
        )
    except (SlotEngineError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not dates:
        console.print("[yellow]No available dates in this range.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(dates)} available date(s):[/bold green]")
    for day in dates:
        console.print(f"  {day.isoformat()} ({day.format('dddd')})")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]bookingslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
