"""
Unit tests for enums module.
"""

import unittest

from zwo_am_mount.api.core.enums import (
    Axis,
    BuzzerVolume,
    ErrorCode,
    MotionDirection,
    SlewRate,
    TrackRate,
)


class TestErrorCode(unittest.TestCase):
    """Test suite for ErrorCode"""

    def test_messages(self):
        """Test the mount's error texts"""
        self.assertEqual(ErrorCode.OUT_OF_RANGE.message, "Parameters out of range")
        self.assertEqual(ErrorCode.MOUNT_MOVING.message, "Mount is Moving")
        self.assertEqual(ErrorCode.TIME_LOCATION_NOT_SET.message, "Time and location is not set")
        self.assertEqual(ErrorCode.NONE.message, "")

    def test_every_code_has_a_message(self):
        """Test the message table is complete"""
        for code in ErrorCode:
            self.assertIsInstance(code.message, str)

    def test_from_value(self):
        """Test raw device codes"""
        self.assertEqual(ErrorCode.from_value(6), ErrorCode.BELOW_ALTITUDE_LIMIT)
        self.assertEqual(ErrorCode.from_value(9), ErrorCode.UNKNOWN)
        self.assertEqual(ErrorCode.from_value(-1), ErrorCode.UNKNOWN)


class TestMotionDirection(unittest.TestCase):
    """Test suite for MotionDirection"""

    def test_wire_letters(self):
        """Test enum values are the protocol letters"""
        self.assertEqual([direction.value for direction in MotionDirection], ["n", "s", "w", "e"])

    def test_axis(self):
        """Test the axis of each direction"""
        self.assertEqual(MotionDirection.NORTH.axis, Axis.DEC)
        self.assertEqual(MotionDirection.SOUTH.axis, Axis.DEC)
        self.assertEqual(MotionDirection.WEST.axis, Axis.RA)
        self.assertEqual(MotionDirection.EAST.axis, Axis.RA)


class TestRates(unittest.TestCase):
    """Test suite for rate enums"""

    def test_slew_rate_letters(self):
        """Test slew rate values"""
        self.assertEqual(SlewRate.FIND.value, "M")
        self.assertEqual(SlewRate.MAX.value, "S")

    def test_track_rate_letters(self):
        """Test track rate values"""
        self.assertEqual(TrackRate.SIDEREAL.value, "Q")
        self.assertEqual(TrackRate.LUNAR.value, "L")

    def test_buzzer_levels(self):
        """Test buzzer digits"""
        self.assertEqual([int(volume) for volume in BuzzerVolume], [0, 1, 2])


if __name__ == "__main__":
    unittest.main()
