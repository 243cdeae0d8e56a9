"""
Byte-stream links to the mount.

A link is either a serial device (9600 8N1) or a TCP stream to the mount's
WiFi bridge. Both expose the same small surface used by the channel:
single-byte reads bounded by a timeout, whole-buffer writes, and close.

Targets are given as a single string:
- "/dev/ZWO_AM5", "COM3": serial device
- "asi://192.168.4.1", "tcp://192.168.4.1:4030", "192.168.4.1:4030": TCP
"""

from __future__ import annotations

import contextlib
import logging
import re
import socket
from abc import ABC, abstractmethod
from urllib.parse import urlsplit

import serial

from zwo_am_mount.api.core.constants import (
    DEFAULT_BAUDRATE,
    DEFAULT_TCP_PORT,
    LINK_DRAIN_FIRST_TIMEOUT,
    LINK_DRAIN_NEXT_TIMEOUT,
)
from zwo_am_mount.api.core.exceptions import MountConnectionError


__all__ = ["Link", "SerialLink", "TcpLink", "open_link", "parse_network_target"]


logger = logging.getLogger(__name__)


_NETWORK_SCHEMES = ("asi", "tcp")
_HOST_PORT = re.compile(r"^(?P<host>[A-Za-z0-9.\-]+):(?P<port>\d{1,5})$")


class Link(ABC):
    """An open byte stream to the mount."""

    @abstractmethod
    def read(self, timeout: float) -> bytes:
        """
        Read a single byte.

        Args:
            timeout: Seconds to wait for the byte

        Returns:
            One byte, or b"" if nothing arrived in time

        Raises:
            MountConnectionError: On I/O error or when the peer closed the stream
        """

    @abstractmethod
    def write(self, data: bytes) -> None:
        """
        Write the whole buffer.

        Raises:
            MountConnectionError: On I/O error
        """

    @abstractmethod
    def close(self) -> None:
        """Close the link; errors are logged, not raised."""

    def drain(
        self,
        first_timeout: float = LINK_DRAIN_FIRST_TIMEOUT,
        next_timeout: float = LINK_DRAIN_NEXT_TIMEOUT,
    ) -> int:
        """
        Discard pending input until the link has been quiet for a timeout.

        Args:
            first_timeout: Seconds to wait for the first byte
            next_timeout: Seconds to wait for each following byte

        Returns:
            Number of bytes discarded
        """
        discarded = 0
        timeout = first_timeout
        while self.read(timeout):
            discarded += 1
            timeout = next_timeout
        return discarded


class SerialLink(Link):
    """Serial device link (8 data bits, no parity, 1 stop bit)."""

    def __init__(self, port: str, baudrate: int = DEFAULT_BAUDRATE) -> None:
        self.port = port
        self.baudrate = baudrate
        try:
            logger.debug(f"Opening serial connection to {port} at {baudrate} baud")
            self.serial_conn = serial.Serial(
                port=port,
                baudrate=baudrate,
                timeout=LINK_DRAIN_FIRST_TIMEOUT,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
            )
        except serial.SerialException as e:
            logger.error(f"Failed to open serial port {port}: {e}")
            raise MountConnectionError(f"Failed to open port {port}: {e}") from e
        logger.info(f"Serial connection opened on {port}")

    def read(self, timeout: float) -> bytes:
        try:
            self.serial_conn.timeout = timeout
            return bytes(self.serial_conn.read(1))
        except serial.SerialException as e:
            logger.error(f"Error reading from {self.port}: {e}")
            raise MountConnectionError(f"Failed to read from {self.port}: {e}") from e

    def write(self, data: bytes) -> None:
        try:
            self.serial_conn.write(data)
            self.serial_conn.flush()
        except serial.SerialException as e:
            logger.error(f"Error writing to {self.port}: {e}")
            raise MountConnectionError(f"Failed to write to {self.port}: {e}") from e

    def close(self) -> None:
        if self.serial_conn.is_open:
            try:
                self.serial_conn.close()
                logger.info(f"Serial connection closed on {self.port}")
            except serial.SerialException as e:
                logger.warning(f"Error closing serial port {self.port}: {e}")

    def __repr__(self) -> str:
        return f"SerialLink({self.port!r}, baudrate={self.baudrate})"


class TcpLink(Link):
    """TCP stream link to the mount's network bridge."""

    def __init__(self, host: str, port: int = DEFAULT_TCP_PORT, connect_timeout: float = 5.0) -> None:
        self.host = host
        self.tcp_port = port
        try:
            logger.debug(f"Opening TCP/IP connection to {host}:{port}")
            self.tcp_socket = socket.create_connection((host, port), timeout=connect_timeout)
        except OSError as e:
            logger.error(f"Failed to open TCP/IP connection to {host}:{port}: {e}")
            raise MountConnectionError(f"Failed to connect to {host}:{port}: {e}") from e
        logger.info(f"TCP/IP connection opened to {host}:{port}")

    def read(self, timeout: float) -> bytes:
        try:
            self.tcp_socket.settimeout(timeout)
            byte = self.tcp_socket.recv(1)
        except TimeoutError:
            return b""
        except OSError as e:
            logger.error(f"Error receiving from {self.host}:{self.tcp_port}: {e}")
            raise MountConnectionError(f"Failed to receive from {self.host}:{self.tcp_port}: {e}") from e
        if not byte:
            raise MountConnectionError("Connection closed by remote host")
        return byte

    def write(self, data: bytes) -> None:
        try:
            self.tcp_socket.sendall(data)
        except OSError as e:
            logger.error(f"Error sending to {self.host}:{self.tcp_port}: {e}")
            raise MountConnectionError(f"Failed to send to {self.host}:{self.tcp_port}: {e}") from e

    def close(self) -> None:
        with contextlib.suppress(OSError):
            self.tcp_socket.shutdown(socket.SHUT_RDWR)
        try:
            self.tcp_socket.close()
            logger.info(f"TCP/IP connection closed to {self.host}:{self.tcp_port}")
        except OSError as e:
            logger.warning(f"Error closing TCP/IP socket: {e}")

    def __repr__(self) -> str:
        return f"TcpLink({self.host!r}, {self.tcp_port})"


def parse_network_target(target: str, default_port: int = DEFAULT_TCP_PORT) -> tuple[str, int] | None:
    """
    Recognize the network notation of a link target.

    Args:
        target: Link target string
        default_port: Port used when the target names none

    Returns:
        Tuple of (host, port), or None if the target is a serial device

    Example:
        >>> parse_network_target("asi://192.168.4.1")
        ('192.168.4.1', 4030)
        >>> parse_network_target("/dev/ttyACM0") is None
        True
    """
    if "://" in target:
        parts = urlsplit(target)
        if parts.scheme.lower() not in _NETWORK_SCHEMES or not parts.hostname:
            return None
        return parts.hostname, parts.port or default_port
    match = _HOST_PORT.match(target)
    if match:
        return match.group("host"), int(match.group("port"))
    return None


def open_link(
    target: str,
    baudrate: int = DEFAULT_BAUDRATE,
    tcp_port: int = DEFAULT_TCP_PORT,
    drain: bool = True,
) -> Link:
    """
    Open a link to the mount and discard whatever it had queued.

    Args:
        target: Serial device path or network notation
        baudrate: Serial speed (ignored for TCP)
        tcp_port: Default TCP port when the target names none
        drain: Discard stale input after opening

    Returns:
        Open Link

    Raises:
        MountConnectionError: If the link cannot be opened
    """
    network = parse_network_target(target, tcp_port)
    link: Link = TcpLink(*network) if network else SerialLink(target, baudrate)
    if drain:
        try:
            discarded = link.drain()
        except MountConnectionError:
            link.close()
            raise
        if discarded:
            logger.debug(f"Discarded {discarded} stale bytes from {link!r}")
    return link
