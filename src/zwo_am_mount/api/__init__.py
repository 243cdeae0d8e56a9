"""
ZWO AM Mount API - Business Logic Layer

This package contains the mount control logic, separated from CLI
presentation concerns.

The API is organized into subpackages:
- core: Constants, enums, types, exceptions and coordinate utilities
- telescope: Link, channel, codec, command set, status poller and session
"""

# Activate deal contracts for runtime validation
import deal


deal.activate()

__all__ = [
    # Import directly from the subpackages:
    # from zwo_am_mount.api.core.types import ...
    # from zwo_am_mount.api.telescope import ...
]
