"""
Unit tests for exceptions module.

Tests all custom exception classes used throughout the API.
"""

import unittest

from zwo_am_mount.api.core.enums import ErrorCode
from zwo_am_mount.api.core.exceptions import (
    CommandError,
    HandshakeError,
    InvalidCoordinateError,
    MountConnectionError,
    MountError,
    NotConnectedError,
)


class TestMountError(unittest.TestCase):
    """Test suite for MountError base exception"""

    def test_mount_error_is_exception(self):
        """Test that MountError is an Exception"""
        self.assertTrue(issubclass(MountError, Exception))

    def test_mount_error_with_no_message(self):
        """Test creating a MountError with no message"""
        self.assertEqual(str(MountError()), "")

    def test_subclasses(self):
        """Test every library exception can be caught as MountError"""
        for exception_class in (
            MountConnectionError,
            NotConnectedError,
            HandshakeError,
            InvalidCoordinateError,
            CommandError,
        ):
            with self.subTest(exception_class=exception_class.__name__):
                self.assertTrue(issubclass(exception_class, MountError))

    def test_catch_as_base(self):
        """Test catching a subclass through the base"""
        with self.assertRaises(MountError):
            raise MountConnectionError("Port /dev/ZWO_AM5 not found")


class TestCommandError(unittest.TestCase):
    """Test suite for CommandError"""

    def test_defaults(self):
        """Test a plain command error"""
        error = CommandError("Slew failed")

        self.assertEqual(str(error), "Slew failed")
        self.assertIsNone(error.command)
        self.assertIsNone(error.response)
        self.assertEqual(error.code, ErrorCode.NONE)

    def test_with_code(self):
        """Test the mount's error message is appended"""
        error = CommandError("Slew failed", command=":MS#", response="e5", code=ErrorCode.BELOW_HORIZON)

        self.assertEqual(str(error), "Slew failed: Target is below horizon")
        self.assertEqual(error.command, ":MS#")
        self.assertEqual(error.response, "e5")

    def test_unknown_code(self):
        """Test unknown error text"""
        error = CommandError("Sync failed", code=ErrorCode.UNKNOWN)

        self.assertEqual(str(error), "Sync failed: Unknown error")


if __name__ == "__main__":
    unittest.main()
