"""
Common Enums

Enumerations used throughout the ZWO AM mount API.
"""

from enum import IntEnum, StrEnum


__all__ = [
    "Axis",
    "BuzzerVolume",
    "CoordinateState",
    "ErrorCode",
    "MotionDirection",
    "MountMode",
    "PierSide",
    "PollState",
    "SlewRate",
    "TrackRate",
]


class ErrorCode(IntEnum):
    """Error codes reported by the mount as ``e<digits>#`` replies."""

    NONE = 0
    OUT_OF_RANGE = 1
    FORMAT_ERROR = 2
    NOT_INITIALIZED = 3
    MOUNT_MOVING = 4
    BELOW_HORIZON = 5
    BELOW_ALTITUDE_LIMIT = 6
    TIME_LOCATION_NOT_SET = 7
    UNKNOWN = 8

    @property
    def message(self) -> str:
        """Human-readable description of the error."""
        return _ERROR_MESSAGES[self]

    @classmethod
    def from_value(cls, value: int) -> "ErrorCode":
        """Map a raw device code, treating anything outside the table as UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


_ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.NONE: "",
    ErrorCode.OUT_OF_RANGE: "Parameters out of range",
    ErrorCode.FORMAT_ERROR: "Format error",
    ErrorCode.NOT_INITIALIZED: "Mount not initialized",
    ErrorCode.MOUNT_MOVING: "Mount is Moving",
    ErrorCode.BELOW_HORIZON: "Target is below horizon",
    ErrorCode.BELOW_ALTITUDE_LIMIT: "Target is below the altitude limit",
    ErrorCode.TIME_LOCATION_NOT_SET: "Time and location is not set",
    ErrorCode.UNKNOWN: "Unknown error",
}


class Axis(StrEnum):
    """Mount axes for manual motion."""

    DEC = "dec"  # North/South
    RA = "ra"  # West/East


class MotionDirection(StrEnum):
    """Manual motion and guiding directions; the value is the wire letter."""

    NORTH = "n"
    SOUTH = "s"
    WEST = "w"
    EAST = "e"

    @property
    def axis(self) -> Axis:
        """Axis this direction moves."""
        if self in (MotionDirection.NORTH, MotionDirection.SOUTH):
            return Axis.DEC
        return Axis.RA


class SlewRate(StrEnum):
    """Manual slew rate selectors; the value is the wire letter after ``:R``."""

    GUIDE = "G"
    CENTERING = "C"
    FIND = "M"
    MAX = "S"


class TrackRate(StrEnum):
    """Tracking rates; the value is the wire letter after ``:T``."""

    SIDEREAL = "Q"
    SOLAR = "S"
    LUNAR = "L"


class PierSide(StrEnum):
    """Side of pier reported by ``:Gm#``."""

    WEST = "west"
    EAST = "east"
    UNKNOWN = "unknown"


class MountMode(StrEnum):
    """Mount geometry reported by the status flags."""

    EQUATORIAL = "equatorial"
    ALT_AZ = "alt-az"
    UNKNOWN = "unknown"


class BuzzerVolume(IntEnum):
    """Buzzer volume levels; the value is the wire digit."""

    OFF = 0
    LOW = 1
    HIGH = 2


class PollState(StrEnum):
    """Cadence state of the status poller."""

    IDLE = "idle"  # 1 s between polls
    BUSY = "busy"  # 0.5 s between polls


class CoordinateState(StrEnum):
    """Quality of the most recent coordinate reading."""

    OK = "ok"  # Mount idle, position settled
    BUSY = "busy"  # Mount slewing
    ALERT = "alert"  # A poll step failed
