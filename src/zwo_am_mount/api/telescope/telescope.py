"""
ZWO AM Mount API

Provides a high-level Python interface for controlling ZWO AM-family
mounts (AM3, AM5, AM7) over USB serial or the mount's WiFi bridge.

One physical mount can be used by two roles at once: ZwoMount for goto,
sync, tracking and manual motion, and ZwoGuider for timed guide pulses.
Both hold the same MountSession, which opens the link for the first role
that connects and closes it after the last one disconnects.

Example:
    >>> from zwo_am_mount import MountConfig, MountSession, ZwoGuider, ZwoMount
    >>> session = MountSession(MountConfig(port="/dev/ZWO_AM5"))
    >>> mount = ZwoMount(session)
    >>> guider = ZwoGuider(session)
    >>> mount.connect()
    >>> guider.connect()
    >>> mount.goto(5.5881, -5.3911)
    >>> guider.guide_dec(north=200, south=0)
    >>> guider.disconnect()
    >>> mount.disconnect()
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import deal
from returns.pipeline import is_successful
from returns.result import Result

from zwo_am_mount.api.core.constants import AM_GUIDER_MAX_PULSE_MS, MOUNT_CLOCK_VALID_AFTER, PULSE_LIMIT_MS
from zwo_am_mount.api.core.enums import BuzzerVolume, CoordinateState, MotionDirection, SlewRate, TrackRate
from zwo_am_mount.api.core.exceptions import CommandError, HandshakeError, MountConnectionError, NotConnectedError
from zwo_am_mount.api.core.types import (
    EquatorialCoordinates,
    GeographicLocation,
    MountConfig,
    MountInfo,
    MountTime,
)
from zwo_am_mount.api.core.utils import epoch_to_jnow, jnow_to_epoch
from zwo_am_mount.api.telescope.commands import MountCommands, MountState
from zwo_am_mount.api.telescope.link import Link, open_link
from zwo_am_mount.api.telescope.poller import EpochConverter, MountListener, MountStatePoller
from zwo_am_mount.api.telescope.protocol import MountChannel


__all__ = ["MountSession", "ZwoGuider", "ZwoMount", "host_utc_offset"]


logger = logging.getLogger(__name__)

T = TypeVar("T")


def host_utc_offset() -> float:
    """Offset of the host's local time from UTC in hours, daylight saving included."""
    offset = datetime.now().astimezone().utcoffset()
    return offset.total_seconds() / 3600.0 if offset is not None else 0.0


def _unwrap(result: Result[T, CommandError], message: str) -> T:
    """Return the success value or raise CommandError with ``message`` and the mount's error code."""
    if is_successful(result):
        return result.unwrap()
    error = result.failure()
    raise CommandError(message, command=error.command, response=error.response, code=error.code) from error


def _default_link_factory(config: MountConfig) -> Link:
    return open_link(config.port, baudrate=config.baudrate, tcp_port=config.tcp_port)


class MountSession:
    """
    Shared resources for one physical mount.

    Owns the channel, the command set, the session state and the status
    poller. ``acquire()``/``release()`` keep an open-count so the link is
    opened by the first user and closed by the last.
    """

    def __init__(
        self,
        config: MountConfig | str | None = None,
        link_factory: Callable[[MountConfig], Link] | None = None,
        converter: EpochConverter = jnow_to_epoch,
    ) -> None:
        """
        Initialize the session.

        Args:
            config: MountConfig object or port string.
                   If string, uses default configuration with specified port.
                   If None, uses default '/dev/ZWO_AM5'
            link_factory: Opens a Link for a config (default: open_link)
            converter: Converts polled coordinates from equinox of date to the config epoch
        """
        if config is None:
            self.config = MountConfig()
        elif isinstance(config, str):
            self.config = MountConfig(port=config)
        else:
            self.config = config

        if self.config.verbose:
            logging.basicConfig(level=logging.DEBUG)

        self.channel = MountChannel(
            first_read_timeout=self.config.first_read_timeout,
            read_timeout=self.config.read_timeout,
        )
        self.commands = MountCommands(self.channel, use_dst_commands=self.config.use_dst_commands)
        self.poller = MountStatePoller(self.commands, epoch=self.config.epoch, converter=converter)
        self._link_factory = link_factory or _default_link_factory
        self._lock = threading.RLock()
        self._open_count = 0

    @property
    def state(self) -> MountState:
        return self.commands.state

    @property
    def open_count(self) -> int:
        return self._open_count

    def is_open(self) -> bool:
        return self.channel.is_open()

    @deal.raises(MountConnectionError)
    def acquire(self) -> None:
        """
        Register a user of the link, opening it if this is the first.

        Raises:
            MountConnectionError: If the link cannot be opened
        """
        with self._lock:
            if self._open_count == 0:
                link = self._link_factory(self.config)
                self.channel.attach(link)
                self.commands.state = MountState()
                logger.info(f"Link to {self.config.port} opened")
            self._open_count += 1

    def release(self, stop_mount: bool = False) -> bool:
        """
        Unregister a user of the link, closing it after the last one.

        Args:
            stop_mount: Send stop-all before closing

        Returns:
            True if this call closed the link
        """
        with self._lock:
            if self._open_count == 0:
                return False
            self._open_count -= 1
            if self._open_count > 0:
                return False
            self.poller.stop()
            if stop_mount:
                self.commands.stop()
            link = self.channel.detach()
            if link is not None:
                link.close()
            logger.info(f"Link to {self.config.port} closed")
            return True


class ZwoMount:
    """
    Motion control role of a ZWO AM mount.

    Coordinates given to and returned from this class are in the epoch
    configured in MountConfig (J2000 by default); the mount itself works in
    the equinox of date.

    Example:
        >>> mount = ZwoMount("/dev/ZWO_AM5")
        >>> mount.connect()
        >>> mount.goto(10.6847, 41.2690)
        >>> print(mount.state.coordinates)
        >>> mount.disconnect()
    """

    def __init__(
        self,
        session: MountSession | MountConfig | str | None = None,
        to_jnow: EpochConverter = epoch_to_jnow,
    ) -> None:
        """
        Initialize the mount role.

        Args:
            session: Shared MountSession, or a config/port used to create one
            to_jnow: Converts caller coordinates from the config epoch to equinox of date
        """
        self.session = session if isinstance(session, MountSession) else MountSession(session)
        self.to_jnow = to_jnow
        self.connected = False
        self.track_rate = TrackRate.SIDEREAL
        self.site: GeographicLocation | None = None

    @property
    def config(self) -> MountConfig:
        return self.session.config

    @property
    def commands(self) -> MountCommands:
        return self.session.commands

    @property
    def state(self) -> MountState:
        return self.session.state

    @property
    def info(self) -> MountInfo:
        return MountInfo(product=self.state.product, firmware=self.state.firmware)

    def __enter__(self) -> ZwoMount:
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.disconnect()

    def _require_connection(self) -> None:
        if not self.connected:
            raise NotConnectedError("Mount is not connected. Call connect() first.")

    # ========== Connection ==========

    @deal.raises(MountConnectionError, HandshakeError)
    def connect(self) -> MountInfo:
        """
        Open the link, verify the mount, read its settings and start polling.

        Returns:
            MountInfo with product and firmware

        Raises:
            MountConnectionError: If the link cannot be opened
            HandshakeError: If the device is not a ZWO AM mount
        """
        if self.connected:
            return self.info
        self.session.acquire()
        if not is_successful(self.commands.detect()):
            self.session.release()
            logger.error("Handshake failed, not a ZWO AM mount")
            raise HandshakeError("Handshake failed, not a ZWO AM mount")
        try:
            self._initialize()
        except Exception:
            self.session.release()
            raise
        self.session.poller.start()
        self.connected = True
        logger.info(f"Connected to {self.info}")
        return self.info

    def _initialize(self) -> None:
        commands = self.commands
        commands.get_firmware()

        if not is_successful(commands.get_guide_rate()):
            logger.debug("Guide rate can not be read, setting it")
            commands.set_guide_rate(self.config.guide_rate)

        status = commands.get_status()
        if is_successful(status):
            self.state.mode = status.unwrap().mode

        site = commands.get_site()
        self.site = site.value_or(None)

        mount_time = commands.get_utc()
        if not is_successful(mount_time) or mount_time.unwrap().utc.timestamp() < MOUNT_CLOCK_VALID_AFTER:
            logger.info("Mount is not initialized, setting time and site from host")
            try:
                self.set_host_time()
                self.set_site(self.config.latitude, self.config.longitude)
            except CommandError as e:
                logger.warning(f"Failed to initialize mount: {e}")

        self.track_rate = commands.get_track_rate().value_or(self.track_rate)
        commands.get_buzzer()

    def disconnect(self) -> None:
        """Stop polling; the last user of the link also stops the mount and closes it."""
        if not self.connected:
            return
        self.session.poller.stop()
        self.session.release(stop_mount=True)
        self.connected = False
        logger.info("Mount disconnected")

    def add_listener(self, listener: MountListener) -> None:
        """Subscribe to status poller events."""
        self.session.poller.add_listener(listener)

    # ========== Position ==========

    def get_position(self) -> EquatorialCoordinates:
        """
        Read the current position now, converted to the configured epoch.

        Raises:
            CommandError: If the position cannot be read
        """
        self._require_connection()
        jnow = _unwrap(self.commands.get_coordinates(), "Position read failed")
        ra, dec = self.session.poller.converter(jnow.ra_hours, jnow.dec_degrees, self.config.epoch)
        return EquatorialCoordinates(ra, dec)

    @deal.pre(lambda self, ra_hours, dec_degrees: 0 <= ra_hours < 24, message="RA must be 0-24 hours")  # type: ignore[misc,arg-type]
    @deal.pre(lambda self, ra_hours, dec_degrees: -90 <= dec_degrees <= 90, message="Dec must be -90 to +90 degrees")  # type: ignore[misc,arg-type]
    def goto(self, ra_hours: float, dec_degrees: float) -> None:
        """
        Apply the selected track rate and slew to coordinates.

        Args:
            ra_hours: RA in hours at the configured epoch
            dec_degrees: Dec in degrees at the configured epoch

        Raises:
            CommandError: "Slew failed", with the mount's error code when it sent one
        """
        self._require_connection()
        ra, dec = self.to_jnow(ra_hours, dec_degrees, self.config.epoch)
        if not self.commands.set_track_rate(self.track_rate):
            raise CommandError("Slew failed")
        _unwrap(self.commands.slew(ra, dec), "Slew failed")
        self.state.coordinate_state = CoordinateState.BUSY

    @deal.pre(lambda self, ra_hours, dec_degrees: 0 <= ra_hours < 24, message="RA must be 0-24 hours")  # type: ignore[misc,arg-type]
    @deal.pre(lambda self, ra_hours, dec_degrees: -90 <= dec_degrees <= 90, message="Dec must be -90 to +90 degrees")  # type: ignore[misc,arg-type]
    def sync(self, ra_hours: float, dec_degrees: float) -> None:
        """
        Tell the mount it is pointing at the given coordinates.

        Raises:
            CommandError: "Sync failed", with the mount's error code when it sent one
        """
        self._require_connection()
        ra, dec = self.to_jnow(ra_hours, dec_degrees, self.config.epoch)
        _unwrap(self.commands.sync(ra, dec), "Sync failed")
        self.state.coordinate_state = CoordinateState.OK

    def abort(self) -> bool:
        """Stop all motion and forget manual moves on both axes."""
        self._require_connection()
        aborted = self.commands.stop()
        if aborted:
            self.state.coordinate_state = CoordinateState.OK
            logger.info("Aborted")
        else:
            logger.warning("Failed to abort")
        return aborted

    def home(self) -> bool:
        """Slew to the home position; the poller reports HomeChanged on arrival."""
        self._require_connection()
        started = self.commands.home()
        if started:
            self.state.at_home = False
            logger.info("Going home")
        return started

    # ========== Tracking and motion ==========

    def set_tracking(self, enabled: bool) -> bool:
        self._require_connection()
        return self.commands.set_tracking(enabled)

    def set_track_rate(self, rate: TrackRate) -> bool:
        """Select the tracking rate now and for subsequent gotos."""
        self._require_connection()
        self.track_rate = rate
        return self.commands.set_track_rate(rate)

    def move_dec(self, direction: MotionDirection | None, rate: SlewRate | None = None) -> bool:
        """
        Start moving north/south at ``rate``, or stop with None.

        Args:
            direction: NORTH, SOUTH or None
            rate: Slew rate to select first (None keeps the current one)
        """
        self._require_connection()
        return self.commands.set_slew_rate(rate) and self.commands.motion_dec(direction)

    def move_ra(self, direction: MotionDirection | None, rate: SlewRate | None = None) -> bool:
        """Start moving west/east at ``rate``, or stop with None."""
        self._require_connection()
        return self.commands.set_slew_rate(rate) and self.commands.motion_ra(direction)

    def set_guide_rate(self, rate: float) -> bool:
        """Set the guide rate in percent of sidereal (10-90)."""
        self._require_connection()
        return self.commands.set_guide_rate(rate)

    # ========== Site and time ==========

    def get_site(self) -> GeographicLocation:
        self._require_connection()
        self.site = _unwrap(self.commands.get_site(), "Site read failed")
        return self.site

    def set_site(self, latitude: float, longitude: float) -> None:
        """
        Set the site location.

        Raises:
            CommandError: If the mount rejects either value
        """
        _unwrap(self.commands.set_site(latitude, longitude), "Site update failed")
        self.site = GeographicLocation(latitude, longitude % 360.0)

    def get_time(self) -> MountTime:
        self._require_connection()
        return _unwrap(self.commands.get_utc(), "Time read failed")

    def set_time(self, utc: datetime, utc_offset: float, dst: bool = False) -> None:
        """
        Set the mount clock.

        Raises:
            CommandError: If the mount rejects the date, offset or time
        """
        _unwrap(self.commands.set_utc(utc, utc_offset, dst), "Time update failed")

    def set_host_time(self) -> None:
        """Set the mount clock from the host clock and time zone."""
        now = datetime.now(UTC)
        self.set_time(now, host_utc_offset(), dst=bool(time.localtime().tm_isdst > 0))

    def get_sidereal_time(self) -> float:
        self._require_connection()
        return _unwrap(self.commands.get_sidereal_time(), "Sidereal time read failed")

    # ========== Buzzer ==========

    def set_buzzer(self, volume: BuzzerVolume) -> bool:
        self._require_connection()
        return self.commands.set_buzzer(volume)


class ZwoGuider:
    """
    Guiding role of a ZWO AM mount.

    Sends timed pulses and blocks for the pulse duration; the channel is
    only held while the pulse command is written, so the mount role and
    the poller keep working during the wait.
    """

    def __init__(self, session: MountSession | MountConfig | str | None = None) -> None:
        self.session = session if isinstance(session, MountSession) else MountSession(session)
        self.connected = False
        self.max_pulse_ms = PULSE_LIMIT_MS

    @property
    def commands(self) -> MountCommands:
        return self.session.commands

    def __enter__(self) -> ZwoGuider:
        self.connect()
        return self

    def __exit__(self, *args: Any) -> None:
        self.disconnect()

    @deal.raises(MountConnectionError)
    def connect(self) -> None:
        """
        Join the shared link and limit pulses to 3 s on AM mounts.

        Raises:
            MountConnectionError: If the link cannot be opened
        """
        if self.connected:
            return
        self.session.acquire()
        if is_successful(self.commands.detect()):
            self.max_pulse_ms = AM_GUIDER_MAX_PULSE_MS
        self.connected = True
        logger.info(f"Guider connected, pulses up to {self.max_pulse_ms} ms")

    def disconnect(self) -> None:
        if not self.connected:
            return
        self.session.release()
        self.connected = False
        logger.info("Guider disconnected")

    def _pulse(self, sent: bool, duration_ms: int) -> bool:
        if sent:
            time.sleep(duration_ms / 1000.0)
        return sent

    @deal.pre(lambda self, north, south: max(north, south) <= self.max_pulse_ms, message="Pulse longer than allowed")  # type: ignore[misc,arg-type]
    def guide_dec(self, north: int, south: int) -> bool:
        """
        Pulse north or south and wait for the pulse to finish.

        Args:
            north: Pulse length in ms (0 for none)
            south: Pulse length in ms (0 for none)

        Returns:
            True if a pulse was sent
        """
        if not self.connected:
            raise NotConnectedError("Guider is not connected. Call connect() first.")
        return self._pulse(self.commands.guide_dec(north, south), max(north, south))

    @deal.pre(lambda self, west, east: max(west, east) <= self.max_pulse_ms, message="Pulse longer than allowed")  # type: ignore[misc,arg-type]
    def guide_ra(self, west: int, east: int) -> bool:
        """Pulse west or east and wait for the pulse to finish."""
        if not self.connected:
            raise NotConnectedError("Guider is not connected. Call connect() first.")
        return self._pulse(self.commands.guide_ra(west, east), max(west, east))
