"""
ZWO AM Mount CLI - Main Application

This is the main entry point for the ZWO AM mount command-line interface.
Each command opens the mount, does its work and disconnects.
"""

from __future__ import annotations

import os
import time
from collections.abc import Iterator
from contextlib import contextmanager
from enum import Enum
from typing import TypeVar

import typer
from click import Context
from dotenv import load_dotenv
from returns.pipeline import is_successful
from typer.core import TyperGroup

from zwo_am_mount import __version__
from zwo_am_mount.api.core.constants import DEFAULT_EPOCH, DEFAULT_SERIAL_PORT
from zwo_am_mount.api.core.enums import Axis, BuzzerVolume, MotionDirection, SlewRate, TrackRate
from zwo_am_mount.api.core.exceptions import InvalidCoordinateError, MountError
from zwo_am_mount.api.core.types import MountConfig, MountEvent
from zwo_am_mount.api.telescope import codec
from zwo_am_mount.api.telescope.telescope import ZwoGuider, ZwoMount
from zwo_am_mount.cli.utils.output import (
    console,
    describe_event,
    print_error,
    print_info,
    print_mount_info,
    print_position_table,
    print_status_table,
    print_success,
    print_time_table,
    print_warning,
)


class SortedCommandsGroup(TyperGroup):
    """Custom Typer group that sorts commands alphabetically within each help panel."""

    def list_commands(self, ctx: Context) -> list[str]:
        """Return commands sorted alphabetically."""
        commands = super().list_commands(ctx)
        return sorted(commands)


E = TypeVar("E", bound=Enum)


app = typer.Typer(
    name="zwo-am",
    help="ZWO AM Mount Control CLI",
    add_completion=False,
    rich_markup_mode="rich",
    cls=SortedCommandsGroup,
)

# Global state for CLI
state: dict[str, str | float | bool | None] = {
    "port": None,
    "epoch": None,
    "verbose": False,
}


@app.callback()
def main(
    port: str | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Serial device or network address (asi://host, tcp://host:port, host:port)",
        envvar="ZWO_AM_PORT",
    ),
    epoch: float | None = typer.Option(
        None,
        "--epoch",
        help="Epoch of coordinates (2000 for J2000, 0 for equinox of date)",
        envvar="ZWO_AM_EPOCH",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
) -> None:
    """
    ZWO AM Mount Control CLI

    Control a ZWO AM3/AM5/AM7 mount from the command line.

    [bold green]Examples:[/bold green]

        zwo-am --port /dev/ZWO_AM5 info
        zwo-am --port asi://192.168.4.1 position
        zwo-am goto 05:35:17 -05:23:28

    [bold blue]Environment Variables:[/bold blue]

        ZWO_AM_PORT  - Default serial device or network address
        ZWO_AM_EPOCH - Default coordinate epoch
    """
    load_dotenv()

    state["port"] = port
    state["epoch"] = epoch
    state["verbose"] = verbose

    if verbose:
        console.print("[dim]Verbose mode enabled[/dim]")
        if port:
            console.print(f"[dim]Using port: {port}[/dim]")


def _config() -> MountConfig:
    port = state["port"] or os.getenv("ZWO_AM_PORT") or DEFAULT_SERIAL_PORT
    epoch = state["epoch"]
    if epoch is None:
        epoch = float(os.getenv("ZWO_AM_EPOCH", DEFAULT_EPOCH))
    return MountConfig(port=str(port), epoch=float(epoch), verbose=bool(state["verbose"]))


@contextmanager
def open_mount() -> Iterator[ZwoMount]:
    """Connect to the mount for the duration of a command."""
    config = _config()
    mount = ZwoMount(config)
    try:
        with console.status(f"Connecting to {config.port}...", spinner="dots"):
            mount.connect()
    except MountError as e:
        print_error(f"Failed to connect to {config.port}: {e}")
        raise typer.Exit(code=1) from e
    try:
        yield mount
    finally:
        mount.disconnect()


def parse_ra(text: str) -> float:
    """Parse RA given as decimal hours or HH:MM:SS."""
    hours = codec.parse_sexagesimal(text).value_or(None)
    if hours is None or not 0 <= hours < 24:
        raise InvalidCoordinateError(f"Invalid RA {text!r}: expected 0-24 hours")
    return hours


def parse_dec(text: str) -> float:
    """Parse Dec given as decimal degrees or sDD:MM:SS."""
    degrees = codec.parse_sexagesimal(text).value_or(None)
    if degrees is None or not -90 <= degrees <= 90:
        raise InvalidCoordinateError(f"Invalid Dec {text!r}: expected -90 to +90 degrees")
    return degrees


def _choice(enum_type: type[E], name: str) -> E:
    try:
        return enum_type[name.upper()]
    except KeyError as e:
        choices = ", ".join(member.name.lower() for member in enum_type)
        print_error(f"Unknown value {name!r}, expected one of: {choices}")
        raise typer.Exit(code=1) from e


# ========== Information ==========


@app.command(rich_help_panel="Utilities")
def version() -> None:
    """Show the CLI version."""
    console.print(f"[bold]ZWO AM Mount CLI[/bold] version [cyan]{__version__}[/cyan]")


@app.command(rich_help_panel="Information")
def info() -> None:
    """Show mount model, firmware, site and settings."""
    with open_mount() as mount:
        mount_state = mount.state
        details = {
            "Mode": mount_state.mode.value,
            "Track rate": mount.track_rate.name.lower(),
            "Guide rate": f"{mount_state.guide_rate:g}%" if mount_state.guide_rate is not None else "unknown",
            "Buzzer": mount_state.buzzer.name.lower() if mount_state.buzzer is not None else "unknown",
        }
        print_mount_info(mount.info, mount.site, details)


@app.command(rich_help_panel="Information")
def position() -> None:
    """Show the current RA/Dec."""
    with open_mount() as mount:
        try:
            print_position_table(mount.get_position(), mount.config.epoch)
        except MountError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e


@app.command(rich_help_panel="Information")
def status() -> None:
    """Show slewing, tracking, home and pier side flags."""
    with open_mount() as mount:
        flags = mount.commands.get_status()
        pier_side = mount.commands.get_pier_side()
        if not is_successful(flags):
            print_error(str(flags.failure()))
            raise typer.Exit(code=1)
        print_status_table(flags.unwrap(), pier_side.map(lambda side: side.value).value_or("unknown"))


@app.command(rich_help_panel="Information")
def watch(
    seconds: float = typer.Option(10.0, "--seconds", "-s", help="How long to watch"),
) -> None:
    """Print status poller events as they happen."""

    def show(event: MountEvent) -> None:
        console.print(f"[dim]{time.strftime('%H:%M:%S')}[/dim] {describe_event(event)}")

    with open_mount() as mount:
        mount.add_listener(show)
        time.sleep(seconds)


# ========== Motion ==========


@app.command(rich_help_panel="Motion")
def goto(
    ra: str = typer.Argument(..., help="RA in hours (5.5881 or 05:35:17)"),
    dec: str = typer.Argument(..., help="Dec in degrees (-5.3911 or -05:23:28)"),
) -> None:
    """Slew to RA/Dec in the configured epoch."""
    try:
        ra_hours, dec_degrees = parse_ra(ra), parse_dec(dec)
    except InvalidCoordinateError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    with open_mount() as mount:
        try:
            mount.goto(ra_hours, dec_degrees)
        except MountError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success(f"Slewing to RA {ra}, Dec {dec}")


@app.command(rich_help_panel="Motion")
def sync(
    ra: str = typer.Argument(..., help="RA in hours (5.5881 or 05:35:17)"),
    dec: str = typer.Argument(..., help="Dec in degrees (-5.3911 or -05:23:28)"),
) -> None:
    """Sync the mount position to RA/Dec in the configured epoch."""
    try:
        ra_hours, dec_degrees = parse_ra(ra), parse_dec(dec)
    except InvalidCoordinateError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    with open_mount() as mount:
        try:
            mount.sync(ra_hours, dec_degrees)
        except MountError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success(f"Synced to RA {ra}, Dec {dec}")


@app.command(rich_help_panel="Motion")
def stop() -> None:
    """Stop all motion."""
    with open_mount() as mount:
        if not mount.abort():
            print_error("Failed to abort")
            raise typer.Exit(code=1)
        print_success("Aborted")


@app.command(rich_help_panel="Motion")
def home() -> None:
    """Slew to the home position."""
    with open_mount() as mount:
        if not mount.home():
            print_error("Failed to start homing")
            raise typer.Exit(code=1)
        print_success("Going home")


@app.command(rich_help_panel="Motion")
def move(
    direction: str = typer.Argument(..., help="north, south, west or east"),
    seconds: float = typer.Argument(1.0, help="How long to move"),
    rate: str = typer.Option("centering", "--rate", "-r", help="guide, centering, find or max"),
) -> None:
    """Move an axis for a number of seconds, then stop it."""
    motion = _choice(MotionDirection, direction)
    slew_rate = _choice(SlewRate, rate)
    with open_mount() as mount:
        move_axis = mount.move_dec if motion.axis is Axis.DEC else mount.move_ra
        if not move_axis(motion, slew_rate):
            print_error(f"Failed to start moving {direction}")
            raise typer.Exit(code=1)
        time.sleep(seconds)
        if not move_axis(None):
            print_warning("Stop command failed; use 'zwo-am stop'")
            raise typer.Exit(code=1)
        print_success(f"Moved {direction} for {seconds:g}s at {slew_rate.name.lower()} rate")


# ========== Tracking and guiding ==========


@app.command(rich_help_panel="Tracking")
def track(
    enable: bool = typer.Option(True, "--on/--off", help="Turn tracking on or off"),
) -> None:
    """Turn tracking on or off."""
    with open_mount() as mount:
        if not mount.set_tracking(enable):
            print_error("Failed to change tracking")
            raise typer.Exit(code=1)
        print_success(f"Tracking {'on' if enable else 'off'}")


@app.command("track-rate", rich_help_panel="Tracking")
def track_rate(
    rate: str = typer.Argument(..., help="sidereal, solar or lunar"),
) -> None:
    """Select the tracking rate."""
    selected = _choice(TrackRate, rate)
    with open_mount() as mount:
        if not mount.set_track_rate(selected):
            print_error("Failed to set track rate")
            raise typer.Exit(code=1)
        print_success(f"Track rate {selected.name.lower()}")


@app.command(rich_help_panel="Tracking")
def guide(
    direction: str = typer.Argument(..., help="north, south, west or east"),
    duration_ms: int = typer.Argument(..., help="Pulse length in milliseconds"),
) -> None:
    """Send a timed guide pulse."""
    pulse = _choice(MotionDirection, direction)
    with open_mount() as mount:
        guider = ZwoGuider(mount.session)
        guider.connect()
        try:
            if duration_ms <= 0 or duration_ms > guider.max_pulse_ms:
                print_error(f"Pulse must be 1-{guider.max_pulse_ms} ms")
                raise typer.Exit(code=1)
            if pulse is MotionDirection.NORTH:
                sent = guider.guide_dec(duration_ms, 0)
            elif pulse is MotionDirection.SOUTH:
                sent = guider.guide_dec(0, duration_ms)
            elif pulse is MotionDirection.WEST:
                sent = guider.guide_ra(duration_ms, 0)
            else:
                sent = guider.guide_ra(0, duration_ms)
        finally:
            guider.disconnect()
        if not sent:
            print_error("Guide pulse failed")
            raise typer.Exit(code=1)
        print_success(f"Guided {direction} for {duration_ms} ms")


@app.command("guide-rate", rich_help_panel="Tracking")
def guide_rate(
    rate: float = typer.Argument(..., help="Guide rate in percent of sidereal (10-90)"),
) -> None:
    """Set the guide rate."""
    with open_mount() as mount:
        if not mount.set_guide_rate(rate):
            print_error("Failed to set guide rate")
            raise typer.Exit(code=1)
        print_success(f"Guide rate {mount.state.guide_rate:g}%")


# ========== Site, time and settings ==========


@app.command(rich_help_panel="Configuration")
def site(
    latitude: float | None = typer.Option(None, "--lat", help="Latitude in degrees (north positive)"),
    longitude: float | None = typer.Option(None, "--lon", help="Longitude in degrees (east positive)"),
) -> None:
    """Show the site, or set it with --lat and --lon."""
    with open_mount() as mount:
        try:
            if latitude is None and longitude is None:
                print_info(f"Site: {mount.get_site()}")
                return
            if latitude is None or longitude is None:
                print_error("Both --lat and --lon are required to set the site")
                raise typer.Exit(code=1)
            if not -90 <= latitude <= 90:
                print_error("Latitude must be -90 to +90 degrees")
                raise typer.Exit(code=1)
            mount.set_site(latitude, longitude)
        except MountError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success(f"Site set to {mount.site}")


@app.command("time", rich_help_panel="Configuration")
def show_time() -> None:
    """Show the mount clock and sidereal time."""
    with open_mount() as mount:
        try:
            mount_time = mount.get_time()
        except MountError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        sidereal = mount.commands.get_sidereal_time().value_or(None)
        print_time_table(mount_time, sidereal)


@app.command("set-time", rich_help_panel="Configuration")
def set_time() -> None:
    """Set the mount clock from this computer."""
    with open_mount() as mount:
        try:
            mount.set_host_time()
        except MountError as e:
            print_error(str(e))
            raise typer.Exit(code=1) from e
        print_success("Mount clock set from host")


@app.command(rich_help_panel="Configuration")
def buzzer(
    volume: str | None = typer.Argument(None, help="off, low or high (omit to show)"),
) -> None:
    """Show or set the buzzer volume."""
    selected = _choice(BuzzerVolume, volume) if volume else None
    with open_mount() as mount:
        if selected is None:
            current = mount.state.buzzer
            print_info(f"Buzzer: {current.name.lower() if current is not None else 'unknown'}")
            return
        if not mount.set_buzzer(selected):
            print_error("Failed to set buzzer")
            raise typer.Exit(code=1)
        print_success(f"Buzzer {selected.name.lower()}")


if __name__ == "__main__":
    app()
