"""
claimgrid — location-anchored tile grid with colour claims.

    session = GridSession(TileSpec())
    tracker = ObserverTracker(session, provider)
    tracker.start()
    session.claim_tile(7, "#FF0000")
"""
from __future__ import annotations

__version__ = "0.1.0"

from .config import TileSpec, TrackerConfig, load_config
from .errors import (
    ClaimGridError,
    IndexOutOfRange,
    InvalidConfiguration,
    LocationError,
    LocationUnavailable,
    PermissionDenied,
)
from .geo.grid_session import GridSession
from .geo.quantize import GeoPoint, base_tile, quantize, quantize_point
from .geo.tile_grid import Tile, build_tiles, corners_of, generate_grid, tiles_to_geojson
from .tracking.location import LocationProvider, ReplayLocationProvider, Subscription
from .tracking.observer import ObserverState, ObserverTracker, TrackerState

__all__ = [
    "ClaimGridError",
    "GeoPoint",
    "GridSession",
    "IndexOutOfRange",
    "InvalidConfiguration",
    "LocationError",
    "LocationProvider",
    "LocationUnavailable",
    "ObserverState",
    "ObserverTracker",
    "PermissionDenied",
    "ReplayLocationProvider",
    "Subscription",
    "Tile",
    "TileSpec",
    "TrackerConfig",
    "TrackerState",
    "base_tile",
    "build_tiles",
    "corners_of",
    "generate_grid",
    "load_config",
    "quantize",
    "quantize_point",
    "tiles_to_geojson",
]
