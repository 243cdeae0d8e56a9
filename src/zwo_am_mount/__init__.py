"""
ZWO AM Mount Control Library

A Python library for controlling ZWO AM-family equatorial mounts (AM3, AM5,
AM7) via USB serial or the mount's WiFi bridge, using the ASI dialect of
the LX200 command protocol.

Example:
    >>> from zwo_am_mount import MountConfig, ZwoMount
    >>> mount = ZwoMount(MountConfig(port="/dev/ZWO_AM5"))
    >>> mount.connect()
    >>> mount.goto(5.5881, -5.3911)
    >>> print(mount.state.coordinates)
    >>> mount.disconnect()
"""

# Enums
from zwo_am_mount.api.core.enums import (
    BuzzerVolume,
    CoordinateState,
    ErrorCode,
    MotionDirection,
    MountMode,
    PierSide,
    PollState,
    SlewRate,
    TrackRate,
)

# Exceptions
from zwo_am_mount.api.core.exceptions import (
    CommandError,
    HandshakeError,
    InvalidCoordinateError,
    MountConnectionError,
    MountError,
    NotConnectedError,
)

# Type definitions
from zwo_am_mount.api.core.types import (
    CoordinatesUpdated,
    EquatorialCoordinates,
    GeographicLocation,
    HomeChanged,
    MountConfig,
    MountEvent,
    MountInfo,
    MountStatus,
    MountTime,
    PierSideChanged,
    TimeUpdated,
    TrackingChanged,
)

# Coordinate conversion utilities
from zwo_am_mount.api.core.utils import epoch_to_jnow, format_dec, format_position, format_ra, jnow_to_epoch

# Mount control
from zwo_am_mount.api.telescope import (
    MountChannel,
    MountCommands,
    MountSession,
    MountState,
    MountStatePoller,
    ZwoGuider,
    ZwoMount,
    open_link,
)


__version__ = "0.1.0"

__all__ = [
    "BuzzerVolume",
    "CommandError",
    "CoordinateState",
    "CoordinatesUpdated",
    "EquatorialCoordinates",
    "ErrorCode",
    "GeographicLocation",
    "HandshakeError",
    "HomeChanged",
    "InvalidCoordinateError",
    "MotionDirection",
    "MountChannel",
    "MountCommands",
    "MountConfig",
    "MountConnectionError",
    "MountError",
    "MountEvent",
    "MountInfo",
    "MountMode",
    "MountSession",
    "MountState",
    "MountStatePoller",
    "MountStatus",
    "MountTime",
    "NotConnectedError",
    "PierSide",
    "PierSideChanged",
    "PollState",
    "SlewRate",
    "TimeUpdated",
    "TrackRate",
    "TrackingChanged",
    "ZwoGuider",
    "ZwoMount",
    "epoch_to_jnow",
    "format_dec",
    "format_position",
    "format_ra",
    "jnow_to_epoch",
    "open_link",
]
