"""Mount communication: link, channel, codec, command set, status poller and session."""

from zwo_am_mount.api.telescope.commands import MountCommands, MountState, select_slew_rate, select_track_rate
from zwo_am_mount.api.telescope.link import Link, SerialLink, TcpLink, open_link
from zwo_am_mount.api.telescope.poller import MountStatePoller
from zwo_am_mount.api.telescope.protocol import MountChannel
from zwo_am_mount.api.telescope.telescope import MountSession, ZwoGuider, ZwoMount


__all__ = [
    "Link",
    "MountChannel",
    "MountCommands",
    "MountSession",
    "MountState",
    "MountStatePoller",
    "SerialLink",
    "TcpLink",
    "ZwoGuider",
    "ZwoMount",
    "open_link",
    "select_slew_rate",
    "select_track_rate",
]
