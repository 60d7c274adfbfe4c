"""
Error taxonomy for the tiling core.

Location failures leave the tracker waiting for a user-triggered retry,
a bad tile index is rejected without touching state, and a bad
configuration is refused at construction time.
"""
from __future__ import annotations


class ClaimGridError(Exception):
    """Base class for every error raised by claimgrid."""


class LocationError(ClaimGridError):
    """The location collaborator could not deliver a fix."""


class PermissionDenied(LocationError):
    """Location access was refused by the user or the platform."""


class LocationUnavailable(LocationError):
    """No fix could be obtained (permission granted but no position)."""


class IndexOutOfRange(ClaimGridError, IndexError):
    """A tile index outside ``[0, tile_count)`` was used for a claim."""

    def __init__(self, index: int, tile_count: int):
        self.index = index
        self.tile_count = tile_count
        super().__init__(
            f"tile index {index} out of range for a grid of {tile_count} tiles"
        )


class InvalidConfiguration(ClaimGridError, ValueError):
    """A configuration value cannot produce a well-formed grid."""
