"""
Main CLI application using Typer.
"""

import json
from pathlib import Path
from typing import Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..adapters.memory_store import DEMO_BOOKINGS_FILE
from ..config import AppConfig, StoreConfig, load_config
from ..domain.definitions import format_time_range
from ..domain.exceptions import SlotSheetError
from ..domain.models import DisplayBlock, SlotDefinition
from ..logging_config import setup_logging
from ..services.signup_sheet import DaySheet, ResultStatus, SignupSheetService, build_service

app = typer.Typer(
    name="slotsheet",
    help="Weekly signup sheet for the shared machine",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
DemoOption = Annotated[
    bool,
    typer.Option("--demo", help="Use an in-memory sheet seeded with demo bookings.")
]

EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2


def _load(config_file: Optional[Path], demo: bool) -> tuple[AppConfig, SignupSheetService]:
    """
    Load configuration, set up logging and build the service.

    Exits with code 1 if the configuration or the stored grid is unusable.
    """
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    setup_logging(config.log_level)

    if demo:
        config = config.model_copy(
            update={"store": StoreConfig(backend="memory", seed_file=DEMO_BOOKINGS_FILE)}
        )

    try:
        service = build_service(config)
    except (SlotSheetError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    return config, service


def _current_position(timezone: str) -> tuple[int, float]:
    """Return today's day index (0=Sunday) and the current time as fractional hours."""
    now = pendulum.now(timezone)
    return now.isoweekday() % 7, now.hour + now.minute / 60


def _describe_block(block: DisplayBlock) -> str:
    if block.member_name and block.charge_time:
        return f"[yellow]{block.member_name} (charging)[/yellow]"
    if block.member_name:
        return f"[bold green]{block.member_name}[/bold green]"
    if block.peak_time:
        return "[dim]Peak time - charging only[/dim]"
    return "Available"


def _render_day(
    day: DaySheet,
    slot_defs: tuple[SlotDefinition, ...],
    slot_length: float,
    now: tuple[int, float] | None = None
) -> Table:
    table = Table(
        title=day.name,
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Slot", justify="right", style="dim")
    table.add_column("Time", style="bold")
    table.add_column("Booking")
    table.add_column("", style="bold magenta")

    for block in day.slots:
        start = slot_defs[block.slot_index].start_time
        end = slot_defs[block.slot_index + block.height - 1].start_time + slot_length

        marker = ""
        if now is not None and now[0] == day.id and start <= now[1] < end:
            marker = "◀ now"

        table.add_row(
            str(block.slot_index),
            format_time_range(start, end),
            _describe_block(block),
            marker
        )

    return table


def _print_sheet(
    service: SignupSheetService,
    config: AppConfig,
    day_index: Optional[int] = None
) -> None:
    sheet = service.get_sheet_data()
    now = _current_position(config.timezone)

    console.print()
    for day in sheet.days:
        if day_index is not None and day.id != day_index:
            continue
        console.print(_render_day(day, sheet.slot_defs, config.grid.slot_length_hours, now))
        console.print()


@app.command()
def init(
    config_file: ConfigOption = None,
):
    """
    Create the weekly grid, or verify an existing one.
    """
    config, service = _load(config_file, demo=False)
    grid = service.grid

    console.print(Panel.fit(
        f"[bold green]✓ Grid ready[/bold green]\n\n"
        f"[bold]Days:[/bold] {len(grid.day_defs)}\n"
        f"[bold]Slots per day:[/bold] {grid.slots_per_day}\n"
        f"[bold]Opening hours:[/bold] "
        f"{format_time_range(config.grid.open_hour, config.grid.close_hour)}",
        title="slotsheet"
    ))


@app.command()
def sheet(
    day: Annotated[Optional[int], typer.Option("--day", "-d", min=0, max=6, help="Only show one day (0=Sunday)")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the sheet data as JSON.")] = False,
    config_file: ConfigOption = None,
    demo: DemoOption = False,
):
    """
    Show the current signup sheet.
    """
    config, service = _load(config_file, demo)

    if as_json:
        console.print_json(json.dumps(service.get_sheet_data().to_dict()))
        return

    _print_sheet(service, config, day)


@app.command()
def signup(
    day: Annotated[int, typer.Argument(min=0, help="Day index (0=Sunday .. 6=Saturday)")],
    slot: Annotated[int, typer.Argument(min=0, help="Index of the first slot")],
    member_name: Annotated[str, typer.Argument(help="Name of the member")],
    duration: Annotated[str, typer.Option("--duration", help="Usage time in hours: 1/2 or 1")] = "1",
    config_file: ConfigOption = None,
    demo: DemoOption = False,
):
    """
    Sign a member up, reserving charging time after the use.

    Examples:

        slotsheet signup 1 4 alice

        slotsheet signup 3 10 bob --duration 1/2
    """
    config, service = _load(config_file, demo)

    result = service.signup(day, slot, member_name.strip(), duration.strip())

    if result.status is ResultStatus.USER_ERROR:
        console.print(f"[bold red]✗[/bold red] {result.message}")
        raise typer.Exit(EXIT_USER_ERROR)
    if result.status is ResultStatus.SYSTEM_ERROR:
        console.print("[bold red]✗ The signup failed, please try again later.[/bold red]")
        raise typer.Exit(EXIT_SYSTEM_ERROR)

    console.print(f"[green]✓ Signed up {member_name.strip()}[/green]")
    _print_sheet(service, config, day)


@app.command()
def clear(
    member_name: Annotated[str, typer.Argument(help="Name of the member")],
    config_file: ConfigOption = None,
    demo: DemoOption = False,
):
    """
    Clear all bookings of a member.
    """
    config, service = _load(config_file, demo)

    result = service.clear(member_name.strip())

    if result.status is ResultStatus.USER_ERROR:
        console.print(f"[bold red]✗[/bold red] {result.message}")
        raise typer.Exit(EXIT_USER_ERROR)
    if result.status is ResultStatus.SYSTEM_ERROR:
        console.print("[bold red]✗ Clearing failed, please try again later.[/bold red]")
        raise typer.Exit(EXIT_SYSTEM_ERROR)

    console.print(f"[green]✓ Cleared all bookings of {member_name.strip()}[/green]")


@app.command()
def ping(
    config_file: ConfigOption = None,
):
    """
    Check that the CLI runs and print the current time.
    """
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    timestamp = pendulum.now(config.timezone).format("YYYY/MM/DD hh:mm:ss A")
    console.print(f"PONG! {timestamp}")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotsheet[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
