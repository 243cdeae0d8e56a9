"""
CLI Output Utilities

Rich console formatting utilities for mount CLI output.
"""

from rich.console import Console
from rich.table import Table

from zwo_am_mount.api.core.types import (
    CoordinatesUpdated,
    EquatorialCoordinates,
    GeographicLocation,
    HomeChanged,
    MountEvent,
    MountInfo,
    MountStatus,
    MountTime,
    PierSideChanged,
    TimeUpdated,
    TrackingChanged,
)
from zwo_am_mount.api.core.utils import format_dec, format_position, format_ra


console = Console()

# Detect if we can safely use unicode symbols
_use_unicode = console.is_terminal and not console.legacy_windows


def print_success(message: str) -> None:
    """Print success message in green."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print error message in red."""
    console.print(f"[red]✗[/red] {message}", style="red")


def print_warning(message: str) -> None:
    """Print warning message in yellow."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def print_info(message: str) -> None:
    """Print info message in blue."""
    info_icon = "ℹ" if _use_unicode else "i"
    console.print(f"[blue]{info_icon}[/blue] {message}")


def print_position_table(position: EquatorialCoordinates, epoch: float) -> None:
    """
    Print mount position in a formatted table.

    Args:
        position: RA/Dec at ``epoch``
        epoch: Julian epoch of the coordinates (0 for equinox of date)
    """
    epoch_label = "JNow" if epoch == 0 else f"J{epoch:g}"
    table = Table(title=f"Mount Position ({epoch_label})", show_header=True, header_style="bold magenta")
    table.add_column("Coordinate", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Right Ascension", format_ra(position.ra_hours))
    table.add_row("Declination", format_dec(position.dec_degrees))
    console.print(table)


def print_mount_info(info: MountInfo, site: GeographicLocation | None, details: dict[str, str]) -> None:
    """Print mount identification, site and settings."""
    table = Table(title="Mount Information", show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Product", info.product or "unknown")
    table.add_row("Firmware", info.firmware or "unknown")
    table.add_row("Site", str(site) if site else "unknown")
    for name, value in details.items():
        table.add_row(name, value)
    console.print(table)


def print_status_table(status: MountStatus, pier_side: str) -> None:
    """Print decoded status flags."""
    table = Table(title="Mount Status", show_header=False)
    table.add_column("Flag", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Slewing", "no" if status.idle else "yes")
    table.add_row("Tracking", "on" if status.tracking else "off")
    table.add_row("At home", "yes" if status.at_home else "no")
    table.add_row("Mode", status.mode.value)
    table.add_row("Pier side", pier_side)
    table.add_row("Raw flags", status.raw)
    console.print(table)


def print_time_table(mount_time: MountTime, sidereal_hours: float | None = None) -> None:
    """Print the mount clock."""
    table = Table(title="Mount Clock", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("UTC", f"{mount_time.utc:%Y-%m-%d %H:%M:%S}")
    table.add_row("Local", f"{mount_time.local:%Y-%m-%d %H:%M:%S}")
    table.add_row("UTC offset", f"{mount_time.utc_offset:+g} h")
    if mount_time.dst is not None:
        table.add_row("DST", "yes" if mount_time.dst else "no")
    if sidereal_hours is not None:
        table.add_row("Sidereal time", format_ra(sidereal_hours, precision=0))
    console.print(table)


def describe_event(event: MountEvent) -> str:
    """One-line description of a poller event."""
    match event:
        case TrackingChanged(tracking=tracking):
            return f"Tracking {'on' if tracking else 'off'}"
        case HomeChanged(at_home=at_home):
            return "At home" if at_home else "Left home"
        case PierSideChanged(pier_side=pier_side):
            return f"Pier side {pier_side.value}"
        case CoordinatesUpdated(coordinates=coordinates, state=state):
            position = format_position(coordinates.ra_hours, coordinates.dec_degrees) if coordinates else "unknown"
            return f"{position} [{state.value}]"
        case TimeUpdated(time=mount_time):
            return f"Clock {mount_time}" if mount_time else "Clock unreadable"
    return type(event).__name__
