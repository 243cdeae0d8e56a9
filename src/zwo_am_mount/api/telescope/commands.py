"""
ZWO AM Command Set

Logical mount operations built from codec commands and channel exchanges.

Each operation runs one or more exchanges and stops at the first
unexpected reply. Operations that can fail in interesting ways return a
``returns`` Result carrying a CommandError (with the mount's error code
when it sent one); fire-and-forget commands return a bool. Transport
failures are logged and reported the same way, never raised.

Reply conventions:
- Target, site and time setters answer '1' on success
- Start-slew (:MS#) answers '0' on success
- Sync (:CM#) answers text on success, 'e<code>' on failure
- Motion, rate and guide commands have no reply
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TypeVar

import deal
from returns.pipeline import is_successful
from returns.result import Failure, Result, Success

from zwo_am_mount.api.core.constants import MAX_REPLY_LENGTH, MOTION_COMMAND_DELAY
from zwo_am_mount.api.core.enums import (
    Axis,
    BuzzerVolume,
    CoordinateState,
    MotionDirection,
    MountMode,
    PierSide,
    PollState,
    SlewRate,
    TrackRate,
)
from zwo_am_mount.api.core.exceptions import CommandError, MountConnectionError, NotConnectedError
from zwo_am_mount.api.core.types import EquatorialCoordinates, GeographicLocation, MountStatus, MountTime
from zwo_am_mount.api.telescope import codec
from zwo_am_mount.api.telescope.protocol import MountChannel


__all__ = ["MountCommands", "MountState", "select_slew_rate", "select_track_rate"]


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class MountState:
    """
    Local model of the mount, updated by commands and by the status poller.

    Attributes:
        motion: Direction each axis was last told to move (None when stopped)
        last_slew_rate: Slew rate last sent to the mount
        last_track_rate: Track rate last sent to the mount
        guide_rate: Guide rate in percent of sidereal
        coordinates: Last polled position, in the caller's epoch
        coordinate_state: Quality of the last position reading
        poll_state: Current poll cadence
        utc_offset: Last UTC offset read from or written to the mount
        tracking: Tracking is on
        at_home: Mount is at home
        pier_side: Side of pier
        mode: Mount geometry
        product: Product string
        firmware: Firmware version
        buzzer: Buzzer volume
    """

    motion: dict[Axis, MotionDirection | None] = field(default_factory=lambda: {Axis.DEC: None, Axis.RA: None})
    last_slew_rate: SlewRate | None = None
    last_track_rate: TrackRate | None = None
    guide_rate: float | None = None
    coordinates: EquatorialCoordinates | None = None
    coordinate_state: CoordinateState = CoordinateState.OK
    poll_state: PollState = PollState.IDLE
    utc_offset: float = 0.0
    tracking: bool = False
    at_home: bool = False
    pier_side: PierSide = PierSide.UNKNOWN
    mode: MountMode = MountMode.UNKNOWN
    product: str = ""
    firmware: str = ""
    buzzer: BuzzerVolume | None = None

    def reset_motion(self) -> None:
        """Forget any manual motion on both axes."""
        self.motion[Axis.DEC] = None
        self.motion[Axis.RA] = None


def select_track_rate(sidereal: bool = False, solar: bool = False, lunar: bool = False) -> TrackRate | None:
    """
    Resolve mutually exclusive track rate switches.

    Returns:
        The first active rate in the order sidereal, solar, lunar, or None
        when no switch is on (meaning "leave the rate alone")
    """
    for active, rate in ((sidereal, TrackRate.SIDEREAL), (solar, TrackRate.SOLAR), (lunar, TrackRate.LUNAR)):
        if active:
            return rate
    return None


def select_slew_rate(
    guide: bool = False, centering: bool = False, find: bool = False, max_rate: bool = False
) -> SlewRate | None:
    """
    Resolve mutually exclusive slew rate switches.

    Returns:
        The first active rate in the order guide, centering, find, max, or
        None when no switch is on
    """
    switches = (
        (guide, SlewRate.GUIDE),
        (centering, SlewRate.CENTERING),
        (find, SlewRate.FIND),
        (max_rate, SlewRate.MAX),
    )
    for active, rate in switches:
        if active:
            return rate
    return None


def _replied(expected: str) -> Callable[[str], bool]:
    return lambda reply: reply[:1] == expected


def _not_error(reply: str) -> bool:
    return not reply.startswith("e")


class MountCommands:
    """
    Command set for one mount session.

    Example:
        >>> channel = MountChannel(open_link("/dev/ZWO_AM5"))
        >>> commands = MountCommands(channel)
        >>> commands.detect()
        <Success: AM5>
        >>> commands.slew(5.5, -5.4)
        <Success: None>
    """

    def __init__(
        self,
        channel: MountChannel,
        state: MountState | None = None,
        use_dst_commands: bool = False,
    ) -> None:
        """
        Initialize the command set.

        Args:
            channel: Channel to exchange commands on
            state: Shared session state (a new one is created if None)
            use_dst_commands: The mount understands :SH#/:GH#
        """
        self.channel = channel
        self.state = state if state is not None else MountState()
        self.use_dst_commands = use_dst_commands

    # ========== Exchange helpers ==========

    def _query(
        self, command: str, max_reply_len: int = MAX_REPLY_LENGTH, post_write_delay: float = 0.0
    ) -> Result[str, CommandError]:
        try:
            return Success(
                self.channel.exchange(command, max_reply_len=max_reply_len, post_write_delay=post_write_delay)
            )
        except (MountConnectionError, NotConnectedError) as e:
            logger.error(f"Command {command!r} failed: {e}")
            return Failure(CommandError(f"{command} failed: {e}", command=command))

    def _send(self, command: str) -> bool:
        try:
            self.channel.exchange(command, expect_reply=False)
            return True
        except (MountConnectionError, NotConnectedError) as e:
            logger.error(f"Command {command!r} failed: {e}")
            return False

    def _expect(
        self,
        command: str,
        accept: Callable[[str], bool],
        max_reply_len: int = MAX_REPLY_LENGTH,
        post_write_delay: float = 0.0,
    ) -> Result[str, CommandError]:
        """Run a command and fail with the decoded error code unless ``accept(reply)``."""

        def check(reply: str) -> Result[str, CommandError]:
            if accept(reply):
                return Success(reply)
            code = codec.parse_error_code(reply)
            logger.warning(f"{command} failed with response: {reply!r}")
            return Failure(CommandError(f"{command} rejected", command=command, response=reply, code=code))

        return self._query(command, max_reply_len, post_write_delay).bind(check)

    def _read(self, command: str, decoder: Callable[[str], Result[T, str]]) -> Result[T, CommandError]:
        """Run a query and decode its reply."""
        return self._query(command).bind(
            lambda reply: decoder(reply).alt(
                lambda message: CommandError(message, command=command, response=reply)
            )
        )

    # ========== Identification ==========

    def detect(self) -> Result[str, CommandError]:
        """
        Check that the device is a ZWO AM mount.
        Command: :GVP#
        Response: AM5#

        Returns:
            Success with the product string, or Failure if the reply is not AM<digit>
        """
        result = self._read(codec.GET_PRODUCT, codec.parse_product)
        if is_successful(result):
            self.state.product = result.unwrap()
            logger.info(f"Product: {self.state.product!r}")
        return result

    def get_firmware(self) -> Result[str, CommandError]:
        """
        Get the firmware version.
        Command: :GV#
        Response: <version>#
        """
        result = self._read(codec.GET_FIRMWARE, lambda reply: Success(reply.strip()))
        self.state.firmware = result.value_or(self.state.firmware)
        return result

    # ========== Time and site ==========

    def set_utc(self, utc: datetime, utc_offset: float, dst: bool = False) -> Result[None, CommandError]:
        """
        Set the mount clock.
        Commands: :SCMM/DD/YY#  [:SHd#]  :SGsHH#  :SLHH:MM:SS#
        Response: 1 for each (none for :SH#)

        The date and time sent are local wall-clock values. The date reply
        is followed by progress text which is discarded by the next drain.

        Args:
            utc: UTC time (naive values are taken as UTC)
            utc_offset: Local offset from UTC in hours, east positive. The mount
                only holds whole hours, so it is rounded and the local time is
                shifted by the rounded value.
            dst: Daylight saving flag, sent only when the mount uses DST commands

        Returns:
            Success(None), or Failure with the first rejected command
        """
        utc = utc.replace(tzinfo=UTC) if utc.tzinfo is None else utc.astimezone(UTC)
        offset_hours = round(utc_offset)
        local = utc.replace(tzinfo=None) + timedelta(hours=offset_hours)
        replied_one = _replied("1")

        def set_dst(_: str) -> Result[None, CommandError]:
            if self.use_dst_commands:
                self._send(codec.encode_set_dst(dst))
            return Success(None)

        result = (
            self._expect(codec.encode_set_date(local), replied_one, max_reply_len=1)
            .bind(set_dst)
            .bind(lambda _: self._expect(codec.encode_set_utc_offset(offset_hours), replied_one, max_reply_len=1))
            .bind(lambda _: self._expect(codec.encode_set_local_time(local), replied_one, max_reply_len=1))
            .map(lambda _: None)
        )
        if is_successful(result):
            self.state.utc_offset = float(offset_hours)
        return result

    def get_utc(self) -> Result[MountTime, CommandError]:
        """
        Read the mount clock.
        Commands: :GC# :GL# :GG# [:GH#]
        Response: MM/DD/YY#  HH:MM:SS#  sHH#  [0|1#]

        Returns:
            Success with MountTime, or Failure at the first unreadable reply
        """
        result: Result[MountTime, CommandError] = Result.do(
            codec.make_mount_time(day, time_of_day, offset, dst)
            for day in self._read(codec.GET_DATE, codec.parse_date)
            for time_of_day in self._read(codec.GET_LOCAL_TIME, codec.parse_time_of_day)
            for offset in self._read(codec.GET_UTC_OFFSET, codec.parse_utc_offset)
            for dst in self._read_dst()
        )
        self.state.utc_offset = result.map(lambda mount_time: mount_time.utc_offset).value_or(self.state.utc_offset)
        return result

    def _read_dst(self) -> Result[bool | None, CommandError]:
        if not self.use_dst_commands:
            return Success(None)
        return self._read(codec.GET_DST, codec.parse_dst)

    def get_sidereal_time(self) -> Result[float, CommandError]:
        """
        Get local sidereal time in hours.
        Command: :GS#
        Response: HH:MM:SS#
        """
        return self._read(codec.GET_SIDEREAL_TIME, codec.parse_time_of_day).map(
            lambda hms: hms[0] + hms[1] / 60.0 + hms[2] / 3600.0
        )

    def get_site(self) -> Result[GeographicLocation, CommandError]:
        """
        Get the site location.
        Commands: :Gt# :Gg#
        Response: sDD*MM#  DDD*MM# (degrees west)

        Returns:
            Success with GeographicLocation (longitude east, 0-360)
        """
        return Result.do(
            GeographicLocation(latitude, longitude)
            for latitude in self._read(codec.GET_LATITUDE, codec.decode_latitude)
            for longitude in self._read(codec.GET_LONGITUDE, codec.decode_longitude)
        )

    @deal.pre(lambda self, latitude, longitude: -90 <= latitude <= 90, message="Latitude must be -90 to +90 degrees")  # type: ignore[misc,arg-type]
    def set_site(self, latitude: float, longitude: float) -> Result[None, CommandError]:
        """
        Set the site location.
        Commands: :StsDD*MM#  :SgDDD*MM#
        Response: 1 for each

        Args:
            latitude: Degrees north
            longitude: Degrees east (any range, normalized to 0-360)
        """
        replied_one = _replied("1")
        return (
            self._expect(codec.encode_latitude(latitude), replied_one, max_reply_len=1)
            .bind(lambda _: self._expect(codec.encode_longitude(longitude), replied_one, max_reply_len=1))
            .map(lambda _: None)
        )

    # ========== Position, goto and sync ==========

    def get_coordinates(self) -> Result[EquatorialCoordinates, CommandError]:
        """
        Get the current position (equinox of date).
        Commands: :GR# :GD#
        Response: HH:MM:SS#  sDD*MM:SS#
        """
        return Result.do(
            EquatorialCoordinates(ra, dec)
            for ra in self._read(codec.GET_RA, codec.decode_ra)
            for dec in self._read(codec.GET_DEC, codec.decode_dec)
        )

    def _set_target(self, ra_hours: float, dec_degrees: float) -> Result[str, CommandError]:
        replied_one = _replied("1")
        return self._expect(codec.encode_ra(ra_hours), replied_one).bind(
            lambda _: self._expect(codec.encode_dec(dec_degrees), replied_one)
        )

    @deal.pre(lambda self, ra_hours, dec_degrees: 0 <= ra_hours < 24, message="RA must be 0-24 hours")  # type: ignore[misc,arg-type]
    @deal.pre(lambda self, ra_hours, dec_degrees: -90 <= dec_degrees <= 90, message="Dec must be -90 to +90 degrees")  # type: ignore[misc,arg-type]
    def slew(self, ra_hours: float, dec_degrees: float) -> Result[None, CommandError]:
        """
        Slew to coordinates (equinox of date).
        Commands: :SrHH:MM:SS#  :SdsDD*MM:SS#  :MS#
        Response: 1  1  0

        Start-slew answers '0' on success, unlike the target setters.

        Returns:
            Success(None), or Failure with the mount's error code
        """
        logger.info(f"Slewing to RA {ra_hours:.4f}h, Dec {dec_degrees:+.4f}°")
        return (
            self._set_target(ra_hours, dec_degrees)
            .bind(lambda _: self._expect(codec.START_SLEW, _replied("0"), post_write_delay=MOTION_COMMAND_DELAY))
            .map(lambda _: None)
        )

    @deal.pre(lambda self, ra_hours, dec_degrees: 0 <= ra_hours < 24, message="RA must be 0-24 hours")  # type: ignore[misc,arg-type]
    @deal.pre(lambda self, ra_hours, dec_degrees: -90 <= dec_degrees <= 90, message="Dec must be -90 to +90 degrees")  # type: ignore[misc,arg-type]
    def sync(self, ra_hours: float, dec_degrees: float) -> Result[None, CommandError]:
        """
        Sync the mount position to coordinates (equinox of date).
        Commands: :SrHH:MM:SS#  :SdsDD*MM:SS#  :CM#
        Response: 1  1  <text>

        Returns:
            Success(None), or Failure when any step is rejected (e<code>)
        """
        logger.info(f"Syncing to RA {ra_hours:.4f}h, Dec {dec_degrees:+.4f}°")
        return (
            self._set_target(ra_hours, dec_degrees)
            .bind(lambda _: self._expect(codec.SYNC, _not_error, post_write_delay=MOTION_COMMAND_DELAY))
            .map(lambda _: None)
        )

    def home(self) -> bool:
        """Slew to the home position. Command: :hC#"""
        return self._send(codec.HOME)

    def stop(self) -> bool:
        """
        Stop all motion.
        Command: :Q#

        Both axes are marked idle so the next manual move starts cleanly.
        """
        stopped = self._send(codec.ABORT_ALL)
        if stopped:
            self.state.reset_motion()
        return stopped

    # ========== Manual motion ==========

    def _motion(self, axis: Axis, direction: MotionDirection | None) -> bool:
        if direction is not None and direction.axis is not axis:
            raise ValueError(f"{direction.name} does not move the {axis.value} axis")
        last = self.state.motion[axis]
        if direction == last:
            return True
        if last is not None and not self._send(codec.encode_motion_stop(last)):
            return False
        self.state.motion[axis] = direction
        if direction is None:
            return True
        return self._send(codec.encode_motion_start(direction))

    def motion_dec(self, direction: MotionDirection | None) -> bool:
        """
        Move the Dec axis north or south, or stop it.
        Commands: :Qn#/:Qs# to stop, :Mn#/:Ms# to start

        Repeating the active direction sends nothing. Changing direction
        stops the old one first; if that stop fails nothing is started.

        Args:
            direction: NORTH, SOUTH, or None to stop

        Returns:
            True if the mount was told what it needed to hear
        """
        return self._motion(Axis.DEC, direction)

    def motion_ra(self, direction: MotionDirection | None) -> bool:
        """
        Move the RA axis west or east, or stop it.
        Commands: :Qw#/:Qe# to stop, :Mw#/:Me# to start
        """
        return self._motion(Axis.RA, direction)

    # ========== Tracking and rates ==========

    def set_tracking(self, enabled: bool) -> bool:
        """Turn tracking on or off. Command: :Te# / :Td#"""
        sent = self._send(codec.encode_tracking(enabled))
        if sent:
            self.state.tracking = enabled
        return sent

    def set_track_rate(self, rate: TrackRate | None) -> bool:
        """
        Select the tracking rate.
        Command: :TQ# (sidereal) / :TS# (solar) / :TL# (lunar)

        Nothing is sent when ``rate`` is None or equals the rate last sent.
        """
        if rate is None or rate == self.state.last_track_rate:
            return True
        sent = self._send(codec.encode_track_rate(rate))
        if sent:
            self.state.last_track_rate = rate
        return sent

    def get_track_rate(self) -> Result[TrackRate, CommandError]:
        """Read the tracking rate. Command: :GT#  Response: 0 sidereal, 1 lunar, 2 solar"""
        return self._read(codec.GET_TRACK_RATE, codec.parse_track_rate)

    def set_slew_rate(self, rate: SlewRate | None) -> bool:
        """
        Select the manual slew rate.
        Command: :RG# (guide) / :RC# (centering) / :RM# (find) / :RS# (max)

        Nothing is sent when ``rate`` is None or equals the rate last sent.
        """
        if rate is None or rate == self.state.last_slew_rate:
            return True
        sent = self._send(codec.encode_slew_rate(rate))
        if sent:
            self.state.last_slew_rate = rate
        return sent

    # ========== Guiding ==========

    def set_guide_rate(self, rate: float) -> bool:
        """
        Set the guide rate.
        Command: :Rg0.N#

        Args:
            rate: Percent of sidereal, clamped to 10-90
        """
        clamped = codec.clamp_guide_rate(rate)
        if clamped != rate:
            logger.debug(f"Guide rate {rate} clamped to {clamped}")
        sent = self._send(codec.encode_guide_rate(clamped))
        if sent:
            self.state.guide_rate = clamped
        return sent

    def get_guide_rate(self) -> Result[float, CommandError]:
        """Read the guide rate in percent. Command: :Ggr#  Response: 0.N#"""
        result = self._read(codec.GET_GUIDE_RATE, codec.parse_guide_rate)
        self.state.guide_rate = result.value_or(self.state.guide_rate)
        return result

    @deal.pre(lambda self, direction, duration_ms: duration_ms > 0, message="Pulse duration must be positive")  # type: ignore[misc,arg-type]
    def guide_pulse(self, direction: MotionDirection, duration_ms: int) -> bool:
        """
        Start a timed guide pulse.
        Command: :Mg{n|s|w|e}NNNN#

        Returns as soon as the command is written; the mount gives no
        completion signal, so the caller waits out ``duration_ms``.
        """
        return self._send(codec.encode_guide_pulse(direction, duration_ms))

    @deal.pre(lambda self, north, south: not (north > 0 and south > 0), message="Only one Dec direction may pulse")  # type: ignore[misc,arg-type]
    def guide_dec(self, north: int, south: int) -> bool:
        """Pulse north or south for the given milliseconds; False when both are zero."""
        if north > 0:
            return self.guide_pulse(MotionDirection.NORTH, north)
        if south > 0:
            return self.guide_pulse(MotionDirection.SOUTH, south)
        return False

    @deal.pre(lambda self, west, east: not (west > 0 and east > 0), message="Only one RA direction may pulse")  # type: ignore[misc,arg-type]
    def guide_ra(self, west: int, east: int) -> bool:
        """Pulse west or east for the given milliseconds; False when both are zero."""
        if west > 0:
            return self.guide_pulse(MotionDirection.WEST, west)
        if east > 0:
            return self.guide_pulse(MotionDirection.EAST, east)
        return False

    # ========== Status ==========

    def get_status(self) -> Result[MountStatus, CommandError]:
        """Read status flags. Command: :GU#"""
        return self._read(codec.GET_STATUS, codec.parse_status)

    def get_pier_side(self) -> Result[PierSide, CommandError]:
        """Read the side of pier. Command: :Gm#  Response: W#, E# or N#"""
        return self._read(codec.GET_PIER_SIDE, lambda reply: Success(codec.parse_pier_side(reply)))

    # ========== Buzzer ==========

    def get_buzzer(self) -> Result[BuzzerVolume, CommandError]:
        """Read the buzzer volume. Command: :GBu#"""
        result = self._read(codec.GET_BUZZER, codec.parse_buzzer)
        self.state.buzzer = result.value_or(self.state.buzzer)
        return result

    def set_buzzer(self, volume: BuzzerVolume) -> bool:
        """Set the buzzer volume. Command: :SBu{0|1|2}#"""
        sent = self._send(codec.encode_buzzer(volume))
        if sent:
            self.state.buzzer = volume
        return sent
