"""
Utility functions for ZWO AM mount coordinate handling.

The mount works in equinox-of-date (JNow) coordinates while callers usually
think in a fixed reference epoch such as J2000. This module uses Astropy for
the precession between the two and for display formatting.
"""

from __future__ import annotations

import logging
from datetime import datetime

from astropy import units as u
from astropy.coordinates import FK5, Angle, SkyCoord
from astropy.time import Time


logger = logging.getLogger(__name__)


__all__ = [
    "epoch_to_jnow",
    "format_dec",
    "format_position",
    "format_ra",
    "jnow_to_epoch",
    "normalize_longitude",
]


def _equinox(epoch: float, when: datetime | None = None) -> Time:
    """Equinox for a Julian epoch; epoch 0 means the equinox of date."""
    if epoch == 0:
        return Time(when) if when is not None else Time.now()
    return Time(epoch, format="jyear")


def _precess(ra_hours: float, dec_degrees: float, from_equinox: Time, to_equinox: Time) -> tuple[float, float]:
    coord = SkyCoord(ra=ra_hours * u.hourangle, dec=dec_degrees * u.deg, frame=FK5(equinox=from_equinox))
    moved = coord.transform_to(FK5(equinox=to_equinox))
    logger.debug(f"Precessed {ra_hours:.5f}h {dec_degrees:+.5f}° from {from_equinox.jyear:.3f} to {to_equinox.jyear:.3f}")
    return float(moved.ra.hour) % 24.0, float(moved.dec.degree)


def jnow_to_epoch(
    ra_hours: float, dec_degrees: float, epoch: float, when: datetime | None = None
) -> tuple[float, float]:
    """
    Convert mount (equinox of date) coordinates to a reference epoch.

    Args:
        ra_hours: RA in hours, equinox of date
        dec_degrees: Dec in degrees, equinox of date
        epoch: Target Julian epoch (e.g. 2000.0); 0 returns the input unchanged
        when: Date of the observation (default: now)

    Returns:
        Tuple of (ra_hours, dec_degrees) at the reference epoch
    """
    if epoch == 0:
        return ra_hours, dec_degrees
    return _precess(ra_hours, dec_degrees, _equinox(0, when), _equinox(epoch))


def epoch_to_jnow(
    ra_hours: float, dec_degrees: float, epoch: float, when: datetime | None = None
) -> tuple[float, float]:
    """
    Convert reference-epoch coordinates to the mount's equinox of date.

    Args:
        ra_hours: RA in hours at ``epoch``
        dec_degrees: Dec in degrees at ``epoch``
        epoch: Source Julian epoch (e.g. 2000.0); 0 returns the input unchanged
        when: Date of the observation (default: now)

    Returns:
        Tuple of (ra_hours, dec_degrees) for the equinox of date
    """
    if epoch == 0:
        return ra_hours, dec_degrees
    return _precess(ra_hours, dec_degrees, _equinox(epoch), _equinox(0, when))


def normalize_longitude(longitude: float) -> float:
    """Map a longitude in degrees east onto [0, 360)."""
    return longitude % 360.0


def format_ra(hours: float, precision: int = 2) -> str:
    """
    Format RA as a readable string.

    Args:
        hours: RA in decimal hours
        precision: Decimal places for seconds

    Returns:
        Formatted string (e.g., "12h 34m 56.78s")
    """
    angle = Angle(hours, unit=u.hour)
    hms = angle.hms
    return f"{int(hms.h):02d}h {int(hms.m):02d}m {hms.s:0{precision + 3}.{precision}f}s"


def format_dec(degrees: float, precision: int = 1) -> str:
    """
    Format Dec as a readable string.

    Args:
        degrees: Dec in decimal degrees
        precision: Decimal places for seconds

    Returns:
        Formatted string (e.g., "+45° 30' 15.0\"")
    """
    angle = Angle(degrees, unit=u.deg)
    dms = angle.signed_dms
    sign = "+" if dms.sign >= 0 else "-"
    return f"{sign}{int(dms.d):02d}° {int(dms.m):02d}' {dms.s:0{precision + 3}.{precision}f}\""


def format_position(ra_hours: float, dec_degrees: float) -> str:
    """Format an RA/Dec pair for display."""
    return f"RA: {format_ra(ra_hours)}, Dec: {format_dec(dec_degrees)}"
