"""
Type definitions for ZWO AM mount control.

This module contains the dataclasses used throughout the library: the
connection configuration, coordinate and time values decoded from the
mount, and the events published by the status poller.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from zwo_am_mount.api.core.constants import (
    DEFAULT_BAUDRATE,
    DEFAULT_EPOCH,
    DEFAULT_GUIDE_RATE,
    DEFAULT_SERIAL_PORT,
    DEFAULT_TCP_PORT,
    FIRST_READ_TIMEOUT,
    NEXT_READ_TIMEOUT,
)
from zwo_am_mount.api.core.enums import CoordinateState, MountMode, PierSide


__all__ = [
    "CoordinatesUpdated",
    "EquatorialCoordinates",
    "GeographicLocation",
    "HomeChanged",
    "MountConfig",
    "MountEvent",
    "MountInfo",
    "MountStatus",
    "MountTime",
    "PierSideChanged",
    "TimeUpdated",
    "TrackingChanged",
]


@dataclass
class EquatorialCoordinates:
    """
    Equatorial coordinate system (RA/Dec).

    Attributes:
        ra_hours: Right Ascension in hours (0-24)
        dec_degrees: Declination in degrees (-90 to +90)
    """

    ra_hours: float
    dec_degrees: float

    def __str__(self) -> str:
        sign = "+" if self.dec_degrees >= 0 else "-"
        return f"RA {self.ra_hours:.4f}h, Dec {sign}{abs(self.dec_degrees):.4f}°"


@dataclass
class GeographicLocation:
    """
    Observer's geographic location on Earth.

    Attributes:
        latitude: Latitude in degrees (-90 to +90, positive=North)
        longitude: Longitude in degrees (0-360 or -180 to +180, positive=East)
    """

    latitude: float
    longitude: float

    def __str__(self) -> str:
        lon = self.longitude if self.longitude <= 180 else self.longitude - 360
        lat_dir = "N" if self.latitude >= 0 else "S"
        lon_dir = "E" if lon >= 0 else "W"
        return f"{abs(self.latitude):.4f}°{lat_dir}, {abs(lon):.4f}°{lon_dir}"


@dataclass
class MountTime:
    """
    Clock state read from the mount.

    Attributes:
        utc: Timezone-aware UTC timestamp
        utc_offset: Local offset from UTC in hours (positive east)
        dst: Daylight saving flag, None when the mount was not asked
    """

    utc: datetime
    utc_offset: float = 0.0
    dst: bool | None = None

    @property
    def local(self) -> datetime:
        """Naive local wall-clock time the mount displays."""
        return (self.utc + timedelta(hours=self.utc_offset)).replace(tzinfo=None)

    def __str__(self) -> str:
        return f"{self.utc:%Y-%m-%dT%H:%M:%S}Z (UTC{self.utc_offset:+g})"


@dataclass
class MountInfo:
    """
    Mount identification.

    Attributes:
        product: Product string from ``:GVP#`` (e.g. "AM5")
        firmware: Firmware version from ``:GV#``
    """

    product: str
    firmware: str = ""

    def __str__(self) -> str:
        return f"{self.product} firmware {self.firmware}" if self.firmware else self.product


@dataclass
class MountStatus:
    """
    Status flags decoded from ``:GU#``.

    Attributes:
        idle: Mount is not slewing ('N' flag present)
        tracking: Tracking is on ('n' flag absent)
        at_home: Mount is parked at home ('H' flag present)
        mode: Mount geometry ('G' equatorial, 'Z' alt-az)
        raw: Raw flag string
    """

    idle: bool
    tracking: bool
    at_home: bool
    mode: MountMode = MountMode.UNKNOWN
    raw: str = ""


@dataclass
class MountConfig:
    """
    Configuration for a mount session.

    Attributes:
        port: Serial device path, or network notation
            (``asi://host[:port]``, ``tcp://host[:port]`` or ``host:port``)
        baudrate: Serial speed
        tcp_port: TCP port used when the network notation has none
        first_read_timeout: Seconds to wait for the first reply byte
        read_timeout: Seconds to wait for each following reply byte
        epoch: Julian epoch of caller coordinates (0 keeps equinox of date)
        use_dst_commands: Mount understands ``:SH#``/``:GH#``
        latitude: Site latitude written to a mount that has no site set
        longitude: Site longitude written to a mount that has no site set
        guide_rate: Guide rate in percent written when the mount reports none
        verbose: Enable verbose logging
    """

    port: str = DEFAULT_SERIAL_PORT
    baudrate: int = DEFAULT_BAUDRATE
    tcp_port: int = DEFAULT_TCP_PORT
    first_read_timeout: float = FIRST_READ_TIMEOUT
    read_timeout: float = NEXT_READ_TIMEOUT
    epoch: float = DEFAULT_EPOCH
    use_dst_commands: bool = False
    latitude: float = 0.0
    longitude: float = 0.0
    guide_rate: float = DEFAULT_GUIDE_RATE
    verbose: bool = False


# ========== Poller events ==========


@dataclass
class MountEvent:
    """Base class of events published by the status poller."""


@dataclass
class TrackingChanged(MountEvent):
    tracking: bool


@dataclass
class HomeChanged(MountEvent):
    at_home: bool


@dataclass
class PierSideChanged(MountEvent):
    pier_side: PierSide


@dataclass
class CoordinatesUpdated(MountEvent):
    """Published every poll; ``coordinates`` is None when the read failed."""

    coordinates: EquatorialCoordinates | None
    state: CoordinateState


@dataclass
class TimeUpdated(MountEvent):
    """Published every poll; ``time`` is None when the read failed."""

    time: MountTime | None
