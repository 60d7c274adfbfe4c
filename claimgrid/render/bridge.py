"""
Rendering collaborator contract and signal wiring.

The map view is not part of this package.  Anything that can draw tiles
and an observer marker implements :class:`TileRenderer`;
:class:`RenderBridge` connects it to the Qt signals of a
:class:`GridSession` and an :class:`ObserverTracker` so the renderer only
ever receives plain data (tile lists, observer snapshots, camera targets).

Usage
-----
    bridge = RenderBridge(session, tracker, MyMapRenderer())
    tracker.start()
    ...
    bridge.close()
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from ..geo.grid_session import GridSession
from ..geo.quantize import GeoPoint
from ..geo.tile_grid import Tile
from ..tracking.observer import ObserverState, ObserverTracker

log = logging.getLogger(__name__)


class TileRenderer(ABC):
    """Receives grid and observer updates for display."""

    @abstractmethod
    def render_tiles(self, tiles: List[Tile]) -> None:
        """Redraw the whole grid (called after every regeneration)."""

    @abstractmethod
    def render_observer(self, state: ObserverState) -> None:
        """Move / rotate the observer marker."""

    @abstractmethod
    def move_camera(self, center: Optional[GeoPoint], heading: Optional[float],
                    duration_ms: int) -> None:
        """Animate the camera; None leaves that component unchanged."""

    def render_claim(self, index: int, color: Optional[str]) -> None:
        """Recolour a single tile.  Default: nothing (wait for a full redraw)."""


class LogRenderer(TileRenderer):
    """Renderer that only logs what it would draw."""

    def __init__(self) -> None:
        self.grid_updates = 0
        self.observer_updates = 0
        self.last_tiles: List[Tile] = []
        self.last_observer: Optional[ObserverState] = None

    def render_tiles(self, tiles: List[Tile]) -> None:
        self.grid_updates += 1
        self.last_tiles = tiles
        if tiles:
            centre = tiles[len(tiles) // 2].center
            log.info("Render grid #%d: %d tiles around %s",
                     self.grid_updates, len(tiles), centre)

    def render_observer(self, state: ObserverState) -> None:
        self.observer_updates += 1
        self.last_observer = state
        log.debug("Observer at %s heading %.0f° follow=%s",
                  state.raw_position, state.heading, state.follow_mode)

    def move_camera(self, center: Optional[GeoPoint], heading: Optional[float],
                    duration_ms: int) -> None:
        log.debug("Camera → center=%s heading=%s (%d ms)", center, heading, duration_ms)

    def render_claim(self, index: int, color: Optional[str]) -> None:
        log.info("Tile %d → %s", index, color or "unclaimed")


class RenderBridge:
    """Connects session/tracker signals to a :class:`TileRenderer`."""

    def __init__(
        self,
        session: GridSession,
        tracker: ObserverTracker,
        renderer: TileRenderer,
    ):
        self._session = session
        self._tracker = tracker
        self._renderer = renderer
        self._connected = False
        self._connect()
        # a grid built before the bridge existed still needs drawing
        if session.has_grid:
            renderer.render_tiles(session.tiles)

    @property
    def renderer(self) -> TileRenderer:
        return self._renderer

    def _on_center(self, center: GeoPoint, duration_ms: int) -> None:
        self._renderer.move_camera(center, None, duration_ms)

    def _on_heading(self, heading: float, duration_ms: int) -> None:
        self._renderer.move_camera(None, heading, duration_ms)

    def _connect(self) -> None:
        self._session.grid_changed.connect(self._renderer.render_tiles)
        self._session.tile_claimed.connect(self._renderer.render_claim)
        self._tracker.observer_updated.connect(self._renderer.render_observer)
        self._tracker.camera_center_requested.connect(self._on_center)
        self._tracker.camera_heading_requested.connect(self._on_heading)
        self._connected = True

    def close(self) -> None:
        """Disconnect from the session and tracker."""
        if not self._connected:
            return
        self._session.grid_changed.disconnect(self._renderer.render_tiles)
        self._session.tile_claimed.disconnect(self._renderer.render_claim)
        self._tracker.observer_updated.disconnect(self._renderer.render_observer)
        self._tracker.camera_center_requested.disconnect(self._on_center)
        self._tracker.camera_heading_requested.disconnect(self._on_heading)
        self._connected = False
