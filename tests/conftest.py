from __future__ import annotations

from typing import List

import pytest

from claimgrid.config import TileSpec, TrackerConfig
from claimgrid.geo.grid_session import GridSession
from claimgrid.geo.quantize import GeoPoint
from claimgrid.tracking.location import HeadingSample, PositionSample, ReplayLocationProvider
from claimgrid.tracking.observer import ObserverTracker

# ---------- Shared fixtures ----------

SF_FIX = GeoPoint(37.78825, -122.4324)


@pytest.fixture
def spec() -> TileSpec:
    """Default 5 x 5 grid of 0.0002 deg tiles, 4/3 decimal precision."""
    return TileSpec(tile_size=0.0002, grid_size=5, tile_decimals=4)


@pytest.fixture
def session(spec) -> GridSession:
    return GridSession(spec)


@pytest.fixture
def recorder():
    """Collects signal emissions: ``rec.connect(signal)`` then ``rec.calls``."""

    class _Recorder:
        def __init__(self):
            self.calls: List[tuple] = []

        def __call__(self, *args):
            self.calls.append(args)

        def connect(self, signal):
            signal.connect(self)
            return self

    return _Recorder()


@pytest.fixture
def track_provider():
    """Replay provider walking north from the San Francisco fix."""
    samples = [
        PositionSample(SF_FIX, 0.0),
        HeadingSample(10.0, 0.5),
        PositionSample(GeoPoint(37.78826, -122.43241), 1.0),
        HeadingSample(12.0, 1.5),
        PositionSample(GeoPoint(37.7893, -122.4324), 2.0),
        HeadingSample(14.0, 2.5),
    ]
    return ReplayLocationProvider(samples)


@pytest.fixture
def tracker(session, track_provider) -> ObserverTracker:
    return ObserverTracker(session, track_provider, TrackerConfig())
