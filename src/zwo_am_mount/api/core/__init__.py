"""Core subpackage for shared constants, enums, types, utilities, and exceptions."""

from zwo_am_mount.api.core.utils import (
    epoch_to_jnow,
    format_dec,
    format_position,
    format_ra,
    jnow_to_epoch,
)


__all__ = [
    "epoch_to_jnow",
    "format_dec",
    "format_position",
    "format_ra",
    "jnow_to_epoch",
]
