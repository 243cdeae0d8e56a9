"""
ZWO AM Command Codec

Pure functions that build wire commands and decode replies. Nothing here
touches the link; the command set pairs these with channel exchanges.

Coordinate formats:
- RA:        HH:MM:SS        (":Sr12:30:00#", ":GR#" -> "12:30:00")
- Dec:       sDD*MM:SS       (":Sd+45*30:00#", ":GD#" -> "+45*30:00")
- Latitude:  sDD*MM          (":St+52*30#")
- Longitude: DDD*MM          (":Sg346*00#", stored as 360 - east longitude)

The mount sends a degree sign with the high bit set between degrees and
minutes; the channel already turns that into ':' so decoders accept any
single non-digit delimiter.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta

from returns.result import Failure, Result, Success

from zwo_am_mount.api.core.constants import GUIDE_RATE_MAX, GUIDE_RATE_MIN, PULSE_LIMIT_MS
from zwo_am_mount.api.core.enums import (
    BuzzerVolume,
    ErrorCode,
    MotionDirection,
    MountMode,
    PierSide,
    SlewRate,
    TrackRate,
)
from zwo_am_mount.api.core.types import MountStatus, MountTime
from zwo_am_mount.api.core.utils import normalize_longitude


__all__ = [
    "ABORT_ALL",
    "GET_BUZZER",
    "GET_DATE",
    "GET_DEC",
    "GET_DST",
    "GET_FIRMWARE",
    "GET_GUIDE_RATE",
    "GET_LATITUDE",
    "GET_LOCAL_TIME",
    "GET_LONGITUDE",
    "GET_PIER_SIDE",
    "GET_PRODUCT",
    "GET_RA",
    "GET_SIDEREAL_TIME",
    "GET_STATUS",
    "GET_TRACK_RATE",
    "GET_UTC_OFFSET",
    "HOME",
    "START_SLEW",
    "SYNC",
    "clamp_guide_rate",
    "decode_dec",
    "decode_latitude",
    "decode_longitude",
    "decode_ra",
    "encode_buzzer",
    "encode_dec",
    "encode_guide_pulse",
    "encode_guide_rate",
    "encode_latitude",
    "encode_longitude",
    "encode_motion_start",
    "encode_motion_stop",
    "encode_ra",
    "encode_set_date",
    "encode_set_dst",
    "encode_set_local_time",
    "encode_set_utc_offset",
    "encode_slew_rate",
    "encode_track_rate",
    "encode_tracking",
    "make_mount_time",
    "parse_buzzer",
    "parse_date",
    "parse_dst",
    "parse_error_code",
    "parse_guide_rate",
    "parse_pier_side",
    "parse_product",
    "parse_sexagesimal",
    "parse_status",
    "parse_time_of_day",
    "parse_track_rate",
    "parse_utc_offset",
]


# ========== Fixed commands ==========

START_SLEW = ":MS#"
SYNC = ":CM#"
HOME = ":hC#"
ABORT_ALL = ":Q#"

GET_RA = ":GR#"
GET_DEC = ":GD#"
GET_DATE = ":GC#"
GET_LOCAL_TIME = ":GL#"
GET_UTC_OFFSET = ":GG#"
GET_DST = ":GH#"
GET_SIDEREAL_TIME = ":GS#"
GET_LATITUDE = ":Gt#"
GET_LONGITUDE = ":Gg#"
GET_TRACK_RATE = ":GT#"
GET_STATUS = ":GU#"
GET_PIER_SIDE = ":Gm#"
GET_FIRMWARE = ":GV#"
GET_PRODUCT = ":GVP#"
GET_BUZZER = ":GBu#"
GET_GUIDE_RATE = ":Ggr#"


_SEXAGESIMAL = re.compile(
    r"^\s*(?P<sign>[+-])?(?P<first>\d{1,3})[^\d.](?P<minutes>\d{2})(?:[^\d.](?P<seconds>\d{2}(?:\.\d+)?))?\s*$"
)
_DECIMAL = re.compile(r"^\s*[+-]?\d+(?:\.\d+)?\s*$")
_DATE = re.compile(r"^(?P<month>\d{2})[^\d](?P<day>\d{2})[^\d](?P<year>\d{2})$")
_TIME_OF_DAY = re.compile(r"^(?P<hour>\d{2})[^\d](?P<minute>\d{2})[^\d](?P<second>\d{2})$")
_UTC_OFFSET = re.compile(r"^[+-]?\d{1,2}(?:\.\d+)?$")
_ERROR_REPLY = re.compile(r"^e(?P<code>\d+)")
_PRODUCT = re.compile(r"^AM\d")

_TRACK_RATE_DIGITS = {"0": TrackRate.SIDEREAL, "1": TrackRate.LUNAR, "2": TrackRate.SOLAR}


# ========== Sexagesimal helpers ==========


def _split(value: float, fields: int) -> tuple[int, ...]:
    """Split a non-negative value into integer fields, rounding at the last one."""
    scale = 60 ** (fields - 1)
    total = round(value * scale)
    parts = []
    for _ in range(fields - 1):
        total, rest = divmod(total, 60)
        parts.append(rest)
    parts.append(total)
    return tuple(reversed(parts))


def parse_sexagesimal(text: str) -> Result[float, str]:
    """
    Parse a sexagesimal (or plain decimal) reply into a float.

    Accepts an optional sign, a 1-3 digit leading field, a 2 digit minute
    field and an optional 2 digit second field (with optional fraction),
    separated by any single character other than a digit or a dot.

    Args:
        text: Reply text, e.g. "+45*30:15", "12:30:00", "-033:15"

    Returns:
        Success with the value in leading-field units, or Failure with message

    Example:
        >>> parse_sexagesimal("-12:30")
        <Success: -12.5>
    """
    match = _SEXAGESIMAL.match(text)
    if match:
        minutes = int(match.group("minutes"))
        seconds = float(match.group("seconds") or 0)
        if minutes >= 60 or seconds >= 60:
            return Failure(f"Minute or second field out of range in {text!r}")
        value = int(match.group("first")) + minutes / 60.0 + seconds / 3600.0
        return Success(-value if match.group("sign") == "-" else value)
    if _DECIMAL.match(text):
        return Success(float(text))
    return Failure(f"Invalid sexagesimal value: {text!r}")


def encode_ra(ra_hours: float) -> str:
    """Set-target-RA command ``:SrHH:MM:SS#``."""
    hours, minutes, seconds = _split(ra_hours % 24.0, 3)
    return f":Sr{hours % 24:02d}:{minutes:02d}:{seconds:02d}#"


def encode_dec(dec_degrees: float) -> str:
    """Set-target-Dec command ``:SdsDD*MM:SS#``."""
    sign = "-" if dec_degrees < 0 else "+"
    degrees, minutes, seconds = _split(abs(dec_degrees), 3)
    return f":Sd{sign}{degrees:02d}*{minutes:02d}:{seconds:02d}#"


def encode_latitude(latitude: float) -> str:
    """Set-latitude command ``:StsDD*MM#``."""
    sign = "-" if latitude < 0 else "+"
    degrees, minutes = _split(abs(latitude), 2)
    return f":St{sign}{degrees:02d}*{minutes:02d}#"


def encode_longitude(longitude: float) -> str:
    """
    Set-longitude command ``:SgDDD*MM#``.

    The mount keeps longitude as degrees west, so the value sent is
    ``(360 - normalize(longitude)) mod 360``.
    """
    device_value = (360.0 - normalize_longitude(longitude)) % 360.0
    degrees, minutes = _split(device_value, 2)
    return f":Sg{degrees % 360:03d}*{minutes:02d}#"


def decode_ra(text: str) -> Result[float, str]:
    """Decode a ``:GR#`` reply to hours."""
    return parse_sexagesimal(text).bind(
        lambda hours: Success(hours % 24.0) if 0 <= hours <= 24 else Failure(f"RA out of range: {text!r}")
    )


def decode_dec(text: str) -> Result[float, str]:
    """Decode a ``:GD#`` reply to degrees."""
    return parse_sexagesimal(text).bind(
        lambda degrees: Success(degrees) if -90 <= degrees <= 90 else Failure(f"Dec out of range: {text!r}")
    )


def decode_latitude(text: str) -> Result[float, str]:
    """Decode a ``:Gt#`` reply to degrees north."""
    return parse_sexagesimal(text).bind(
        lambda degrees: Success(degrees) if -90 <= degrees <= 90 else Failure(f"Latitude out of range: {text!r}")
    )


def decode_longitude(text: str) -> Result[float, str]:
    """Decode a ``:Gg#`` reply (degrees west) to degrees east in [0, 360)."""
    return parse_sexagesimal(text).map(lambda west: (360.0 - normalize_longitude(west)) % 360.0)


# ========== Time ==========


def encode_set_date(local: datetime) -> str:
    """Set-date command ``:SCMM/DD/YY#`` for the local calendar date."""
    return f":SC{local.month:02d}/{local.day:02d}/{local.year % 100:02d}#"


def encode_set_dst(dst: bool) -> str:
    return f":SH{int(dst)}#"


def encode_set_utc_offset(utc_offset: int) -> str:
    """
    Set-UTC-offset command ``:SGsHH#``.

    The mount expects the hours to add to local time to get UTC, so the
    sign is the opposite of the usual east-positive offset.
    """
    return f":SG{-utc_offset:+03d}#"


def encode_set_local_time(local: datetime) -> str:
    return f":SL{local.hour:02d}:{local.minute:02d}:{local.second:02d}#"


def parse_date(text: str) -> Result[date, str]:
    """
    Parse a ``:GC#`` reply ("MM/DD/YY").

    Two-digit years are taken as 20YY, so dates are valid until 2099.
    """
    match = _DATE.match(text)
    if not match:
        return Failure(f"Invalid date reply: {text!r}")
    try:
        return Success(date(2000 + int(match.group("year")), int(match.group("month")), int(match.group("day"))))
    except ValueError as e:
        return Failure(f"Invalid date reply {text!r}: {e}")


def parse_time_of_day(text: str) -> Result[tuple[int, int, int], str]:
    """Parse a ``:GL#`` or ``:GS#`` reply ("HH:MM:SS")."""
    match = _TIME_OF_DAY.match(text)
    if not match:
        return Failure(f"Invalid time reply: {text!r}")
    hour, minute, second = (int(match.group(name)) for name in ("hour", "minute", "second"))
    if hour > 23 or minute > 59 or second > 59:
        return Failure(f"Time field out of range: {text!r}")
    return Success((hour, minute, second))


def parse_utc_offset(text: str) -> Result[float, str]:
    """Parse a ``:GG#`` reply into an east-positive UTC offset in hours."""
    if not _UTC_OFFSET.match(text.strip()):
        return Failure(f"Invalid UTC offset reply: {text!r}")
    return Success(-float(text) + 0.0)


def parse_dst(text: str) -> Result[bool, str]:
    stripped = text.strip()
    if stripped not in ("0", "1"):
        return Failure(f"Invalid DST reply: {text!r}")
    return Success(stripped == "1")


def make_mount_time(
    day: date, time_of_day: tuple[int, int, int], utc_offset: float, dst: bool | None = None
) -> MountTime:
    """Combine the mount's local date and time with its offset into a UTC timestamp."""
    local = datetime(day.year, day.month, day.day, *time_of_day)
    utc = (local - timedelta(hours=utc_offset)).replace(tzinfo=UTC)
    return MountTime(utc=utc, utc_offset=utc_offset, dst=dst)


# ========== Rates, motion and guiding ==========


def clamp_guide_rate(rate: float) -> float:
    """Clamp a guide rate in percent of sidereal to what the mount accepts."""
    return min(max(rate, GUIDE_RATE_MIN), GUIDE_RATE_MAX)


def encode_guide_rate(rate: float) -> str:
    """
    Set-guide-rate command ``:Rg0.N#``.

    Args:
        rate: Guide rate in percent of sidereal, clamped to 10-90

    Example:
        >>> encode_guide_rate(5)
        ':Rg0.1#'
    """
    return f":Rg{clamp_guide_rate(rate) / 100.0:.1f}#"


def parse_guide_rate(text: str) -> Result[float, str]:
    """Parse a ``:Ggr#`` reply (fraction of sidereal) into percent."""
    try:
        return Success(round(float(text) * 100.0, 1))
    except ValueError:
        return Failure(f"Invalid guide rate reply: {text!r}")


def encode_guide_pulse(direction: MotionDirection, duration_ms: int) -> str:
    """Timed guide pulse ``:Mg{n|s|w|e}NNNN#``."""
    if not 0 < duration_ms <= PULSE_LIMIT_MS:
        raise ValueError(f"Pulse duration must be 1-{PULSE_LIMIT_MS} ms, got {duration_ms}")
    return f":Mg{direction.value}{duration_ms:04d}#"


def encode_motion_start(direction: MotionDirection) -> str:
    return f":M{direction.value}#"


def encode_motion_stop(direction: MotionDirection) -> str:
    return f":Q{direction.value}#"


def encode_tracking(enabled: bool) -> str:
    return ":Te#" if enabled else ":Td#"


def encode_track_rate(rate: TrackRate) -> str:
    return f":T{rate.value}#"


def encode_slew_rate(rate: SlewRate) -> str:
    return f":R{rate.value}#"


def parse_track_rate(text: str) -> Result[TrackRate, str]:
    """Parse a ``:GT#`` reply: 0 sidereal, 1 lunar, 2 solar."""
    for digit, rate in _TRACK_RATE_DIGITS.items():
        if digit in text:
            return Success(rate)
    return Failure(f"Invalid track rate reply: {text!r}")


# ========== Status ==========


def parse_status(text: str) -> Result[MountStatus, str]:
    """
    Parse the ``:GU#`` status flags.

    Flags used:
    - 'N': mount is not slewing
    - 'n': tracking is off
    - 'H': mount is at home
    - 'G' / 'Z': equatorial / alt-az mode
    """
    if not text:
        return Failure("Empty status reply")
    if "G" in text:
        mode = MountMode.EQUATORIAL
    elif "Z" in text:
        mode = MountMode.ALT_AZ
    else:
        mode = MountMode.UNKNOWN
    return Success(
        MountStatus(idle="N" in text, tracking="n" not in text, at_home="H" in text, mode=mode, raw=text)
    )


def parse_pier_side(text: str) -> PierSide:
    """Parse a ``:Gm#`` reply: 'W', 'E', anything else is unknown."""
    if "W" in text:
        return PierSide.WEST
    if "E" in text:
        return PierSide.EAST
    return PierSide.UNKNOWN


def parse_error_code(text: str) -> ErrorCode:
    """
    Extract the error code from an ``e<digits>`` reply.

    Returns:
        The matching ErrorCode, UNKNOWN for codes outside the table, or
        NONE when the reply is not an error reply
    """
    match = _ERROR_REPLY.match(text)
    if not match:
        return ErrorCode.NONE
    return ErrorCode.from_value(int(match.group("code")))


def parse_product(text: str) -> Result[str, str]:
    """Accept a ``:GVP#`` reply only for the AM family ("AM" followed by a digit)."""
    if _PRODUCT.match(text):
        return Success(text)
    return Failure(f"Not a ZWO AM mount: {text!r}")


def encode_buzzer(volume: BuzzerVolume) -> str:
    return f":SBu{int(volume)}#"


def parse_buzzer(text: str) -> Result[BuzzerVolume, str]:
    """Parse a ``:GBu#`` reply: 0 off, 1 low, 2 high."""
    for volume in BuzzerVolume:
        if str(int(volume)) in text:
            return Success(volume)
    return Failure(f"Invalid buzzer reply: {text!r}")
