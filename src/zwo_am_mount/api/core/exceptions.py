"""
Custom exception classes for ZWO AM mount control.

This module defines specific exceptions for different types of errors
that can occur during mount operations.
"""

from __future__ import annotations

from zwo_am_mount.api.core.enums import ErrorCode


__all__ = [
    "CommandError",
    "HandshakeError",
    "InvalidCoordinateError",
    "MountConnectionError",
    "MountError",
    "NotConnectedError",
]


class MountError(Exception):
    """
    Base exception for all ZWO AM mount errors.

    All custom exceptions in this library inherit from this base class,
    making it easy to catch all mount-related errors.
    """

    pass


class MountConnectionError(MountError):
    """
    Raised when the link to the mount fails.

    This can occur when:
    - Serial port cannot be opened or is already in use
    - TCP connection is refused or dropped by the peer
    - A read or write on an open link fails
    """

    pass


class NotConnectedError(MountError):
    """
    Raised when attempting to send commands while not connected.

    This occurs when trying to talk to the mount before calling
    connect() or after disconnect().
    """

    pass


class HandshakeError(MountError):
    """
    Raised when the device on the link does not identify as a ZWO AM mount.

    The link itself works, but the product query did not return an
    ``AM<digit>`` model string.
    """

    pass


class InvalidCoordinateError(MountError):
    """
    Raised when coordinates are out of valid range.

    This occurs when attempting to use coordinates that are:
    - RA outside 0-24 hours range
    - Dec outside -90 to +90 degrees range
    - Latitude outside -90 to +90 degrees range
    """

    pass


class CommandError(MountError):
    """
    Raised when a mount command fails or returns an unexpected response.

    Attributes:
        command: Wire command that failed
        response: Raw reply text, if any
        code: Error code reported by the mount (NONE when it gave no code)
    """

    def __init__(
        self,
        message: str,
        command: str | None = None,
        response: str | None = None,
        code: ErrorCode = ErrorCode.NONE,
    ) -> None:
        super().__init__(message)
        self.command = command
        self.response = response
        self.code = code

    def __str__(self) -> str:
        base = super().__str__()
        if self.code is not ErrorCode.NONE:
            return f"{base}: {self.code.message}"
        return base
