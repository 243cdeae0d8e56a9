"""
Mount status poller.

Keeps the session state in step with the mount by running a fixed set of
read-only queries on a background thread:

1. Position (:GR#, :GD#), converted to the configured epoch
2. Status flags (:GU#): slewing, tracking, at home
3. Side of pier (:Gm#)
4. Clock (:GC#, :GL#, :GG#)

The cadence is 0.5 s while the mount is slewing and 1 s otherwise. A
failed query marks the position ALERT for that tick; the other queries
still run and the loop always goes on. Only stop() ends it.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from returns.pipeline import is_successful

from zwo_am_mount.api.core.constants import BUSY_POLL_INTERVAL, DEFAULT_EPOCH, IDLE_POLL_INTERVAL
from zwo_am_mount.api.core.enums import CoordinateState, PollState
from zwo_am_mount.api.core.types import (
    CoordinatesUpdated,
    EquatorialCoordinates,
    HomeChanged,
    MountEvent,
    PierSideChanged,
    TimeUpdated,
    TrackingChanged,
)
from zwo_am_mount.api.core.utils import jnow_to_epoch
from zwo_am_mount.api.telescope.commands import MountCommands, MountState


__all__ = ["EpochConverter", "MountListener", "MountStatePoller"]


logger = logging.getLogger(__name__)

MountListener = Callable[[MountEvent], None]
EpochConverter = Callable[[float, float, float], tuple[float, float]]


class MountStatePoller:
    """
    Periodic reconciler of mount state.

    Listeners receive TrackingChanged, HomeChanged and PierSideChanged only
    when the value flips, and CoordinatesUpdated and TimeUpdated on every
    tick.
    """

    def __init__(
        self,
        commands: MountCommands,
        epoch: float = DEFAULT_EPOCH,
        converter: EpochConverter = jnow_to_epoch,
        idle_interval: float = IDLE_POLL_INTERVAL,
        busy_interval: float = BUSY_POLL_INTERVAL,
    ) -> None:
        """
        Initialize the poller.

        Args:
            commands: Command set whose state this poller maintains
            epoch: Epoch of published coordinates (0 publishes equinox of date)
            converter: Function (ra_hours, dec_degrees, epoch) -> (ra, dec)
                converting from equinox of date
            idle_interval: Seconds between ticks while idle
            busy_interval: Seconds between ticks while slewing
        """
        self.commands = commands
        self.epoch = epoch
        self.converter = converter
        self.idle_interval = idle_interval
        self.busy_interval = busy_interval
        self._listeners: list[MountListener] = []
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> MountState:
        return self.commands.state

    def add_listener(self, listener: MountListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: MountListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _publish(self, event: MountEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"Listener {listener!r} failed on {type(event).__name__}")

    # ========== Tick ==========

    def poll_tick(self) -> float:
        """
        Run one reconciliation pass.

        Returns:
            Seconds until the next tick should run
        """
        state = self.commands.state
        healthy = True

        published: EquatorialCoordinates | None = None
        coordinates = self.commands.get_coordinates()
        if is_successful(coordinates):
            jnow = coordinates.unwrap()
            try:
                ra, dec = self.converter(jnow.ra_hours, jnow.dec_degrees, self.epoch)
                published = EquatorialCoordinates(ra, dec)
                state.coordinates = published
            except Exception:
                logger.exception("Epoch conversion failed")
                healthy = False
        else:
            logger.warning(f"Position poll failed: {coordinates.failure()}")
            healthy = False

        status = self.commands.get_status()
        if is_successful(status):
            flags = status.unwrap()
            state.coordinate_state = CoordinateState.OK if flags.idle else CoordinateState.BUSY
            if flags.tracking != state.tracking:
                state.tracking = flags.tracking
                self._publish(TrackingChanged(flags.tracking))
            if flags.at_home != state.at_home:
                state.at_home = flags.at_home
                self._publish(HomeChanged(flags.at_home))
        else:
            logger.warning(f"Status poll failed: {status.failure()}")
            healthy = False

        pier_side = self.commands.get_pier_side()
        if is_successful(pier_side):
            side = pier_side.unwrap()
            if side != state.pier_side:
                state.pier_side = side
                self._publish(PierSideChanged(side))
        else:
            logger.warning(f"Pier side poll failed: {pier_side.failure()}")
            healthy = False

        if not healthy:
            state.coordinate_state = CoordinateState.ALERT
        self._publish(CoordinatesUpdated(published, state.coordinate_state))

        mount_time = self.commands.get_utc()
        if not is_successful(mount_time):
            logger.warning(f"Clock poll failed: {mount_time.failure()}")
        self._publish(TimeUpdated(mount_time.value_or(None)))

        if state.coordinate_state is CoordinateState.BUSY:
            state.poll_state = PollState.BUSY
            return self.busy_interval
        state.poll_state = PollState.IDLE
        return self.idle_interval

    # ========== Thread lifecycle ==========

    def _run(self) -> None:
        delay = 0.0
        while not self._stop_event.wait(delay):
            try:
                delay = self.poll_tick()
            except Exception:
                logger.exception("Poll tick failed")
                self.commands.state.coordinate_state = CoordinateState.ALERT
                delay = self.idle_interval

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start polling on a background thread; the first tick runs immediately."""
        if self.is_running():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="zwo-am-poller", daemon=True)
        self._thread.start()
        logger.debug("Status poller started")

    def stop(self, timeout: float | None = None) -> None:
        """
        Stop polling and wait for an in-flight tick to finish.

        Args:
            timeout: Seconds to wait for the thread (None waits as long as it takes)
        """
        self._stop_event.set()
        thread, self._thread = self._thread, None
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout)
            if thread.is_alive():
                logger.warning("Status poller did not stop in time")
        logger.debug("Status poller stopped")
