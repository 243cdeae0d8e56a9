"""
Protocol and Timing Constants

Constants shared by the ZWO AM mount link, channel and state poller.
"""

from typing import Final


__all__ = [
    "AM_GUIDER_MAX_PULSE_MS",
    "BUSY_POLL_INTERVAL",
    "CHANNEL_DRAIN_TIMEOUT",
    "DEFAULT_BAUDRATE",
    "DEFAULT_EPOCH",
    "DEFAULT_GUIDE_RATE",
    "DEFAULT_SERIAL_PORT",
    "DEFAULT_TCP_PORT",
    "FIRST_READ_TIMEOUT",
    "GUIDE_RATE_MAX",
    "GUIDE_RATE_MIN",
    "IDLE_POLL_INTERVAL",
    "LINK_DRAIN_FIRST_TIMEOUT",
    "LINK_DRAIN_NEXT_TIMEOUT",
    "MAX_REPLY_LENGTH",
    "MOTION_COMMAND_DELAY",
    "MOUNT_CLOCK_VALID_AFTER",
    "NEXT_READ_TIMEOUT",
    "PULSE_LIMIT_MS",
    "TERMINATOR",
]


# Wire framing
TERMINATOR: Final[bytes] = b"#"
"""Reply terminator byte."""

MAX_REPLY_LENGTH: Final[int] = 128
"""Default capacity of the reply buffer."""

# Link defaults
DEFAULT_SERIAL_PORT: Final[str] = "/dev/ZWO_AM5"
"""Serial device created by the ZWO udev rules."""

DEFAULT_BAUDRATE: Final[int] = 9600
"""Serial speed, 8 data bits, no parity, 1 stop bit."""

DEFAULT_TCP_PORT: Final[int] = 4030
"""TCP port of the mount's WiFi bridge."""

LINK_DRAIN_FIRST_TIMEOUT: Final[float] = 1.0
"""Seconds to wait for the first stale byte after opening the link."""

LINK_DRAIN_NEXT_TIMEOUT: Final[float] = 0.1
"""Seconds to wait for each following stale byte after opening the link."""

# Channel timing
CHANNEL_DRAIN_TIMEOUT: Final[float] = 0.01
"""Seconds to wait for pending bytes before each command is written."""

FIRST_READ_TIMEOUT: Final[float] = 3.1
"""Seconds to wait for the first reply byte."""

NEXT_READ_TIMEOUT: Final[float] = 0.1
"""Seconds to wait for each following reply byte."""

MOTION_COMMAND_DELAY: Final[float] = 0.1
"""Post-write delay for goto and sync commands."""

# Poll cadence
IDLE_POLL_INTERVAL: Final[float] = 1.0
"""Seconds between polls while the mount is idle."""

BUSY_POLL_INTERVAL: Final[float] = 0.5
"""Seconds between polls while the mount is slewing."""

# Guiding
GUIDE_RATE_MIN: Final[float] = 10.0
"""Lowest guide rate in percent of sidereal."""

GUIDE_RATE_MAX: Final[float] = 90.0
"""Highest guide rate in percent of sidereal."""

DEFAULT_GUIDE_RATE: Final[float] = 50.0
"""Guide rate written to a mount that cannot report its own."""

PULSE_LIMIT_MS: Final[int] = 9999
"""Longest pulse the four-digit wire field can carry."""

AM_GUIDER_MAX_PULSE_MS: Final[int] = 3000
"""Longest pulse the guider role accepts for AM mounts."""

# Coordinates and time
DEFAULT_EPOCH: Final[float] = 2000.0
"""Reference epoch of coordinates exchanged with callers."""

MOUNT_CLOCK_VALID_AFTER: Final[int] = 978310800
"""Unix time (2001-01-01T01:00:00Z) before which the mount clock is considered unset."""
