"""
ZWO AM Command Channel

This module serializes command/response exchanges with the mount over an
open link. The wire protocol is the ASI flavour of LX200:

- Serial: Baud Rate 9600, 8 data bits, no parity, 1 stop bit
- TCP/IP: Default port 4030
- Commands: ASCII, ':'-prefixed and '#'-terminated
- Replies: ASCII terminated by '#', or a bare status byte, or nothing

Only one exchange is ever in flight: the drain, write and read of a command
run under one lock, so the status poller and caller threads never interleave
on the wire.
"""

from __future__ import annotations

import logging
import threading
import time

import deal

from zwo_am_mount.api.core.constants import (
    CHANNEL_DRAIN_TIMEOUT,
    FIRST_READ_TIMEOUT,
    MAX_REPLY_LENGTH,
    NEXT_READ_TIMEOUT,
    TERMINATOR,
)
from zwo_am_mount.api.core.exceptions import NotConnectedError
from zwo_am_mount.api.telescope.link import Link


__all__ = ["MountChannel"]


logger = logging.getLogger(__name__)


class MountChannel:
    """
    Single-writer/single-reader command channel over a Link.

    The channel owns the link while it is attached and never reconnects on
    its own: transport errors propagate to the caller as
    MountConnectionError.
    """

    # Protocol constants
    TERMINATOR = TERMINATOR
    DIVIDER = ord(":")

    def __init__(
        self,
        link: Link | None = None,
        first_read_timeout: float = FIRST_READ_TIMEOUT,
        read_timeout: float = NEXT_READ_TIMEOUT,
    ) -> None:
        """
        Initialize the channel.

        Args:
            link: Open link, or None to attach one later
            first_read_timeout: Seconds to wait for the first reply byte
            read_timeout: Seconds to wait for each following reply byte
        """
        self.link = link
        self.first_read_timeout = first_read_timeout
        self.read_timeout = read_timeout
        self._lock = threading.Lock()

    def attach(self, link: Link) -> None:
        """Start using an open link."""
        with self._lock:
            self.link = link

    def detach(self) -> Link | None:
        """Stop using the link and hand it back to the caller for closing."""
        with self._lock:
            link, self.link = self.link, None
            return link

    def is_open(self) -> bool:
        """Check if a link is attached."""
        return self.link is not None

    @deal.pre(lambda self, command, *args, **kwargs: command.startswith(":"), message="Command must start with ':'")  # type: ignore[misc,arg-type]
    def exchange(
        self,
        command: str,
        expect_reply: bool = True,
        max_reply_len: int = MAX_REPLY_LENGTH,
        post_write_delay: float = 0.0,
    ) -> str:
        """
        Send a command and collect its reply.

        Pending input is discarded first, so late bytes from a previous
        exchange never leak into this reply. Reading stops at the '#'
        terminator (not included), on a read timeout, or once
        ``max_reply_len`` bytes are buffered. Bytes with the high bit set
        (the mount's degree sign) are returned as ':'.

        Args:
            command: Full wire command including ':' and '#'
            expect_reply: Read a reply after writing
            max_reply_len: Reply buffer capacity
            post_write_delay: Seconds to sleep after writing, before reading

        Returns:
            Reply text, "" when no reply is expected or nothing arrived

        Raises:
            NotConnectedError: If no link is attached
            MountConnectionError: On read or write failure
        """
        with self._lock:
            if self.link is None:
                raise NotConnectedError(f"Cannot send {command!r}: mount not connected")
            link = self.link

            discarded = link.drain(CHANNEL_DRAIN_TIMEOUT, CHANNEL_DRAIN_TIMEOUT)
            if discarded:
                logger.debug(f"Flushed {discarded} stale bytes before {command!r}")

            link.write(command.encode("ascii"))
            if post_write_delay > 0:
                time.sleep(post_write_delay)

            if not expect_reply:
                logger.debug(f"Command {command!r}")
                return ""

            buffer = bytearray()
            timeout = self.first_read_timeout
            while len(buffer) < max_reply_len:
                byte = link.read(timeout)
                if not byte:
                    logger.debug(f"Reply to {command!r} timed out after {len(buffer)} bytes")
                    break
                timeout = self.read_timeout
                value = byte[0]
                if value == self.TERMINATOR[0]:
                    break
                buffer.append(self.DIVIDER if value & 0x80 else value)

        reply = buffer.decode("ascii")
        logger.debug(f"Command {command!r} -> {reply!r}")
        return reply
