"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..adapters.expert_api_client import ExpertApiClient
from ..adapters.mock_expert_client import MockExpertClient
from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import ExpertSlotsError
from ..domain.models import ConflictPolicy, SlotOrder
from ..domain.slot_resolver import SlotResolver
from ..services.availability import AvailabilityService

app = typer.Typer(
    name="expertslots",
    help="Show an expert's bookable consultation slots",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DurationOption = Annotated[Optional[int], typer.Option("--duration", "-d", help="Session duration in minutes (defaults to the expert's)")]
MockOption = Annotated[bool, typer.Option("--mock", help="Use bundled mock data instead of the platform API.")]
FailClosedOption = Annotated[bool, typer.Option("--fail-closed", help="Block the whole day when a booking has unreadable times.")]
LabelOrderOption = Annotated[bool, typer.Option("--label-order", help="Sort slots by their text label instead of by time.")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load_config(config_file: Optional[Path], mock: bool) -> AppConfig:
    """Load the config file; mock runs may go without one."""
    config_path = config_file or get_default_config_path()
    if mock and config_file is None and not config_path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(config_path)


def _build_client(config: AppConfig, mock: bool):
    if mock:
        return MockExpertClient(data_file=config.mock_data_file, timezone=config.timezone)
    return ExpertApiClient(
        base_url=config.api.base_url,
        token=config.api.token,
        timezone=config.timezone,
        timeout=config.api.timeout_seconds,
    )


def _build_service(config: AppConfig, mock: bool, fail_closed: bool, label_order: bool) -> AvailabilityService:
    client = _build_client(config, mock)

    resolver = SlotResolver(
        timezone=config.timezone,
        conflict_policy=ConflictPolicy.FAIL_CLOSED if fail_closed else config.defaults.conflict_policy,
        order=SlotOrder.LABEL if label_order else config.defaults.slot_order,
    )
    return AvailabilityService(profile_source=client, booking_source=client, resolver=resolver)


def _parse_date_option(value: Optional[str], fmt: str, tz: str, label: str):
    if not value:
        return pendulum.now(tz).date()
    try:
        return pendulum.from_format(value, fmt, tz=tz).date()
    except Exception as e:
        console.print(f"[red]Could not parse {label} '{value}': {e}[/red]")
        raise typer.Exit(1)


@app.command()
def slots(
    expert_id: Annotated[str, typer.Argument(help="Expert identifier")],
    date: Annotated[Optional[str], typer.Option("--date", help="Date (YYYY-MM-DD). Defaults to today.")] = None,
    duration: DurationOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    fail_closed: FailClosedOption = False,
    label_order: LabelOrderOption = False,
    verbose: VerboseOption = False,
):
    """
    List an expert's slots for one date.

    Examples:

        expertslots slots expert-anita --mock --date 2024-11-25

        expertslots slots 65f0c2 --duration 60
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file, mock)
        target_date = _parse_date_option(date, "YYYY-MM-DD", config.timezone, "date")
        service = _build_service(config, mock, fail_closed, label_order)

        result = service.get_slots(expert_id, target_date, duration_minutes=duration)

        console.print()
        if not result:
            console.print(
                f"[yellow]⚠ No slots for {expert_id} on {target_date.isoformat()}.[/yellow]"
            )
            console.print()
            return

        table = Table(
            title=f"{expert_id} · {target_date.strftime('%a, %d %b %Y')}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Time", style="bold")
        table.add_column("Status")

        for slot in result:
            status = "[green]available[/green]" if slot.available else "[red]booked[/red]"
            table.add_row(slot.label, status)

        console.print(table)
        open_count = sum(1 for slot in result if slot.available)
        console.print(f"\n[bold green]✓ {open_count} of {len(result)} slot(s) available[/bold green]\n")

    except (FileNotFoundError, ExpertSlotsError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except ValueError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def month(
    expert_id: Annotated[str, typer.Argument(help="Expert identifier")],
    month_option: Annotated[Optional[str], typer.Option("--month", help="Month (YYYY-MM). Defaults to the current month.")] = None,
    duration: DurationOption = None,
    config_file: ConfigOption = None,
    mock: MockOption = False,
    fail_closed: FailClosedOption = False,
    verbose: VerboseOption = False,
):
    """
    Summarise an expert's open slots for every bookable date of a month.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file, mock)
        month_start = _parse_date_option(month_option, "YYYY-MM", config.timezone, "month").replace(day=1)
        service = _build_service(config, mock, fail_closed, label_order=False)

        overview = service.month_overview(expert_id, month_start, duration_minutes=duration)

        table = Table(
            title=f"{expert_id} · {month_start.strftime('%B %Y')}",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Date", style="bold yellow")
        table.add_column("Open", justify="right")
        table.add_column("Booked", justify="right", style="dim")

        for day, day_slots in overview:
            if not day_slots:
                continue
            open_count = sum(1 for slot in day_slots if slot.available)
            table.add_row(day.strftime("%a %d %b"), str(open_count), str(len(day_slots) - open_count))

        console.print()
        if table.row_count:
            console.print(table)
        else:
            console.print("[yellow]⚠ No working days left in this month.[/yellow]")
        console.print(f"\n[bold]Total available slots:[/bold] {service.count_available(overview)}\n")

    except (FileNotFoundError, ExpertSlotsError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except ValueError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def check(
    expert_id: Annotated[str, typer.Argument(help="Expert identifier")],
    config_file: ConfigOption = None,
    mock: MockOption = False,
    verbose: VerboseOption = False,
):
    """
    Check that an expert's availability and sessions can be fetched.
    """
    _configure_logging(verbose)

    try:
        config = _load_config(config_file, mock)
        client = _build_client(config, mock)

        console.print(f"\n[bold]Checking data source for {expert_id}...[/bold]\n")
        info = client.test_connection(expert_id)

        console.print(Panel.fit(
            f"[bold green]✓ Data source reachable[/bold green]\n\n"
            f"[bold]Availability:[/bold] {info['availability']}\n"
            f"[bold]Sessions:[/bold] {info['bookings']}",
            title="✓ Connection check"
        ))
        console.print()

    except (FileNotFoundError, ExpertSlotsError) as e:
        console.print(f"\n[bold red]✗ Error:[/bold red] {e}\n")
        raise typer.Exit(1)

    except ValueError as e:
        console.print(f"[bold red]Invalid configuration:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]expertslots[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
