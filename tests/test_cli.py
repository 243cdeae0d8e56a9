"""
Unit tests for the zwo-am command-line interface.

The mount is replaced with a mock so each command can be checked for the
calls it makes and the exit code it returns.
"""

import unittest
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

from returns.result import Success
from typer.testing import CliRunner

from zwo_am_mount.api.core.enums import (
    BuzzerVolume,
    ErrorCode,
    MotionDirection,
    MountMode,
    PierSide,
    SlewRate,
    TrackRate,
)
from zwo_am_mount.api.core.exceptions import CommandError, InvalidCoordinateError, MountConnectionError
from zwo_am_mount.api.core.types import (
    EquatorialCoordinates,
    GeographicLocation,
    MountInfo,
    MountStatus,
    MountTime,
)
from zwo_am_mount.api.telescope.commands import MountState
from zwo_am_mount.cli.main import app, parse_dec, parse_ra


runner = CliRunner()


class CliTestCase(unittest.TestCase):
    """Base class replacing ZwoMount in the CLI module"""

    def setUp(self):
        mount_patcher = patch("zwo_am_mount.cli.main.ZwoMount")
        self.mock_mount_class = mount_patcher.start()
        self.addCleanup(mount_patcher.stop)
        self.mount = self.mock_mount_class.return_value
        self.mount.config.epoch = 2000.0

    def invoke(self, *args, env=None):
        return runner.invoke(app, list(args), env=env or {})


class TestConnection(CliTestCase):
    """Test suite for connection handling"""

    def test_port_option(self):
        """Test --port reaches the mount config"""
        result = self.invoke("--port", "asi://192.168.4.1", "stop")

        self.assertEqual(result.exit_code, 0, result.output)
        config = self.mock_mount_class.call_args.args[0]
        self.assertEqual(config.port, "asi://192.168.4.1")
        self.mount.disconnect.assert_called_once()

    def test_port_environment(self):
        """Test ZWO_AM_PORT supplies the port"""
        result = self.invoke("stop", env={"ZWO_AM_PORT": "tcp://10.0.0.2:4030"})

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(self.mock_mount_class.call_args.args[0].port, "tcp://10.0.0.2:4030")

    def test_epoch_option(self):
        """Test --epoch reaches the mount config"""
        self.invoke("--epoch", "0", "stop")

        self.assertEqual(self.mock_mount_class.call_args.args[0].epoch, 0.0)

    def test_connect_failure(self):
        """Test a connection error exits with status 1"""
        self.mount.connect.side_effect = MountConnectionError("Port not found")

        result = self.invoke("--port", "/dev/missing", "stop")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Port not found", result.output)
        self.mount.abort.assert_not_called()

    def test_version(self):
        """Test version output"""
        result = self.invoke("version")

        self.assertEqual(result.exit_code, 0)
        self.assertIn("0.1.0", result.output)
        self.mock_mount_class.assert_not_called()


class TestInformationCommands(CliTestCase):
    """Test suite for read-only commands"""

    def test_info(self):
        """Test mount information table"""
        self.mount.info = MountInfo("AM5", "1.9.5")
        self.mount.site = GeographicLocation(52.5, 14.0)
        self.mount.state = MountState(guide_rate=50.0, buzzer=BuzzerVolume.LOW, mode=MountMode.EQUATORIAL)
        self.mount.track_rate = TrackRate.SIDEREAL

        result = self.invoke("info")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("AM5", result.output)
        self.assertIn("1.9.5", result.output)

    def test_position(self):
        """Test position table"""
        self.mount.get_position.return_value = EquatorialCoordinates(5.5, -5.4)

        result = self.invoke("position")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("J2000", result.output)
        self.assertIn("05h 30m", result.output)

    def test_position_failure(self):
        """Test a failed position read"""
        self.mount.get_position.side_effect = CommandError("Position read failed")

        result = self.invoke("position")

        self.assertEqual(result.exit_code, 1)

    def test_status(self):
        """Test status table"""
        self.mount.commands.get_status.return_value = Success(
            MountStatus(idle=True, tracking=False, at_home=True, mode=MountMode.EQUATORIAL, raw="NnHG")
        )
        self.mount.commands.get_pier_side.return_value = Success(PierSide.WEST)

        result = self.invoke("status")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("west", result.output)
        self.assertIn("NnHG", result.output)

    def test_time(self):
        """Test clock table"""
        self.mount.get_time.return_value = MountTime(datetime(2023, 6, 15, 8, 0, 0, tzinfo=UTC), 2.0)
        self.mount.commands.get_sidereal_time.return_value = Success(14.5)

        result = self.invoke("time")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("2023-06-15 08:00:00", result.output)
        self.assertIn("2023-06-15 10:00:00", result.output)

    @patch("zwo_am_mount.cli.main.time.sleep")
    def test_watch(self, mock_sleep):
        """Test watch subscribes to poller events for the given time"""
        result = self.invoke("watch", "--seconds", "3")

        self.assertEqual(result.exit_code, 0, result.output)
        self.mount.add_listener.assert_called_once()
        mock_sleep.assert_called_once_with(3.0)


class TestMotionCommands(CliTestCase):
    """Test suite for goto, sync and manual motion"""

    def test_goto_sexagesimal(self):
        """Test goto with sexagesimal coordinates"""
        result = self.invoke("goto", "--", "05:35:17", "-05:23:28")

        self.assertEqual(result.exit_code, 0, result.output)
        ra, dec = self.mount.goto.call_args.args
        self.assertAlmostEqual(ra, 5.588055, places=5)
        self.assertAlmostEqual(dec, -5.391111, places=5)

    def test_goto_decimal(self):
        """Test goto with decimal coordinates"""
        self.invoke("goto", "5.5", "--", "-5.25")

        self.mount.goto.assert_called_once_with(5.5, -5.25)

    def test_goto_invalid_ra(self):
        """Test an RA outside 0-24h never connects"""
        result = self.invoke("goto", "25:00:00", "10:00:00")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid RA", result.output)
        self.mock_mount_class.assert_not_called()

    def test_goto_rejected(self):
        """Test the mount's error message is shown"""
        self.mount.goto.side_effect = CommandError("Slew failed", code=ErrorCode.BELOW_HORIZON)

        result = self.invoke("goto", "--", "05:35:17", "-05:23:28")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("below horizon", result.output)
        self.mount.disconnect.assert_called_once()

    def test_sync(self):
        """Test sync"""
        result = self.invoke("sync", "05:35:17", "+10:00:00")

        self.assertEqual(result.exit_code, 0, result.output)
        self.mount.sync.assert_called_once()

    def test_stop(self):
        """Test stop"""
        self.invoke("stop")

        self.mount.abort.assert_called_once()

    def test_stop_failure(self):
        """Test a failed stop exits with status 1"""
        self.mount.abort.return_value = False

        self.assertEqual(self.invoke("stop").exit_code, 1)

    def test_home(self):
        """Test home"""
        self.assertEqual(self.invoke("home").exit_code, 0)
        self.mount.home.assert_called_once()

    @patch("zwo_am_mount.cli.main.time.sleep")
    def test_move(self, mock_sleep):
        """Test move starts, waits and stops"""
        result = self.invoke("move", "north", "2", "--rate", "max")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            self.mount.move_dec.call_args_list[0].args, (MotionDirection.NORTH, SlewRate.MAX)
        )
        self.assertEqual(self.mount.move_dec.call_args_list[1].args, (None,))
        mock_sleep.assert_called_once_with(2.0)

    @patch("zwo_am_mount.cli.main.time.sleep")
    def test_move_ra(self, mock_sleep):
        """Test east uses the RA axis"""
        self.invoke("move", "east", "1")

        self.mount.move_ra.assert_any_call(MotionDirection.EAST, SlewRate.CENTERING)
        self.mount.move_dec.assert_not_called()

    def test_move_bad_direction(self):
        """Test an unknown direction"""
        result = self.invoke("move", "up", "1")

        self.assertEqual(result.exit_code, 1)
        self.assertIn("north", result.output)


class TestTrackingCommands(CliTestCase):
    """Test suite for tracking and guiding"""

    def test_track_off(self):
        """Test tracking off"""
        self.invoke("track", "--off")

        self.mount.set_tracking.assert_called_once_with(False)

    def test_track_rate(self):
        """Test track rate selection"""
        result = self.invoke("track-rate", "lunar")

        self.assertEqual(result.exit_code, 0, result.output)
        self.mount.set_track_rate.assert_called_once_with(TrackRate.LUNAR)

    def test_track_rate_unknown(self):
        """Test unknown track rate"""
        self.assertEqual(self.invoke("track-rate", "fast").exit_code, 1)

    @patch("zwo_am_mount.cli.main.ZwoGuider")
    def test_guide(self, mock_guider_class):
        """Test a south guide pulse through a guider sharing the session"""
        guider = mock_guider_class.return_value
        guider.max_pulse_ms = 3000
        guider.guide_dec.return_value = True

        result = self.invoke("guide", "south", "500")

        self.assertEqual(result.exit_code, 0, result.output)
        mock_guider_class.assert_called_once_with(self.mount.session)
        guider.guide_dec.assert_called_once_with(0, 500)
        guider.disconnect.assert_called_once()

    @patch("zwo_am_mount.cli.main.ZwoGuider")
    def test_guide_too_long(self, mock_guider_class):
        """Test pulses above the guider limit"""
        mock_guider_class.return_value.max_pulse_ms = 3000

        result = self.invoke("guide", "west", "5000")

        self.assertEqual(result.exit_code, 1)
        mock_guider_class.return_value.guide_ra.assert_not_called()

    def test_guide_rate(self):
        """Test guide rate"""
        self.mount.state = MountState(guide_rate=30.0)

        result = self.invoke("guide-rate", "30")

        self.assertEqual(result.exit_code, 0, result.output)
        self.mount.set_guide_rate.assert_called_once_with(30.0)


class TestConfigurationCommands(CliTestCase):
    """Test suite for site, clock and buzzer"""

    def test_site_show(self):
        """Test site read"""
        self.mount.get_site.return_value = GeographicLocation(52.5, 14.0)

        result = self.invoke("site")

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("52.5000", result.output)
        self.mount.set_site.assert_not_called()

    def test_site_set(self):
        """Test site update"""
        result = self.invoke("site", "--lat", "52.5", "--lon", "14")

        self.assertEqual(result.exit_code, 0, result.output)
        self.mount.set_site.assert_called_once_with(52.5, 14.0)

    def test_site_needs_both(self):
        """Test a lone latitude is refused"""
        result = self.invoke("site", "--lat", "52.5")

        self.assertEqual(result.exit_code, 1)
        self.mount.set_site.assert_not_called()

    def test_set_time(self):
        """Test setting the clock from the host"""
        self.assertEqual(self.invoke("set-time").exit_code, 0)
        self.mount.set_host_time.assert_called_once()

    def test_buzzer_set(self):
        """Test buzzer volume"""
        self.invoke("buzzer", "high")

        self.mount.set_buzzer.assert_called_once_with(BuzzerVolume.HIGH)

    def test_buzzer_show(self):
        """Test buzzer read"""
        self.mount.state = MountState(buzzer=BuzzerVolume.OFF)

        result = self.invoke("buzzer")

        self.assertIn("off", result.output)
        self.mount.set_buzzer.assert_not_called()


class TestCoordinateParsing(unittest.TestCase):
    """Test suite for CLI coordinate parsing"""

    def test_parse_ra(self):
        """Test RA input formats"""
        self.assertEqual(parse_ra("12:30:00"), 12.5)
        self.assertEqual(parse_ra("12.5"), 12.5)

    def test_parse_ra_invalid(self):
        """Test RA out of range"""
        with self.assertRaises(InvalidCoordinateError):
            parse_ra("24:00:00")
        with self.assertRaises(InvalidCoordinateError):
            parse_ra("east")

    def test_parse_dec(self):
        """Test Dec input formats"""
        self.assertEqual(parse_dec("-45:30:00"), -45.5)
        self.assertEqual(parse_dec("+10"), 10.0)

    def test_parse_dec_invalid(self):
        """Test Dec beyond the pole"""
        with self.assertRaises(InvalidCoordinateError):
            parse_dec("-91")


if __name__ == "__main__":
    unittest.main()
