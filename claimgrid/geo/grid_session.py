"""
Grid session state — the current grid and the claims made on it.

The session owns the only mutable copy of the grid.  It rebuilds the grid
when the observer's base tile changes and mediates tile claims coming back
from the rendering layer.

Data flow
─────────
  ObserverTracker ─regenerate_if_needed(base_tile)─▶ GridSession
       │                                               ├── same origin → no-op
       │                                               └── new origin  → build_tiles()
       │                                                                 emit grid_changed
  renderer tap ─claim_tile(index, color)──────────▶ GridSession
                                                       └── emit tile_claimed

Claims are not carried over when the grid is rebuilt: a fresh grid starts
with every tile unclaimed.  ``preserve_claims=True`` copies the colour of
tiles whose centre reappears in the new grid.

All mutations go through one re-entrant lock, so claims made from a UI
thread never interleave with a regeneration running on the sample thread.

Usage
-----
    session = GridSession(TileSpec())
    session.grid_changed.connect(renderer.render_tiles)
    session.regenerate_if_needed(GeoPoint(37.788, -122.432))
    session.claim_tile(7, "#FF0000")
"""
from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from PyQt5 import QtCore

from ..config import TileSpec
from ..errors import IndexOutOfRange
from .quantize import GeoPoint
from .tile_grid import Tile, build_tiles

log = logging.getLogger(__name__)


class GridSession(QtCore.QObject):
    """In-memory grid of tiles around the observer.

    Signals
    -------
    grid_changed(list)
        Emitted with the full ordered tile list after every regeneration.
    tile_claimed(int, object)
        Emitted with ``(index, color)`` when a tile's claim changes.
        ``color`` is None when a claim is cleared.
    color_selected(object)
        Emitted when the colour used for tap claims changes.
    """

    grid_changed = QtCore.pyqtSignal(object)          # list[Tile]
    tile_claimed = QtCore.pyqtSignal(int, object)     # index, color
    color_selected = QtCore.pyqtSignal(object)        # color

    def __init__(
        self,
        spec: Optional[TileSpec] = None,
        preserve_claims: bool = False,
        parent: Optional[QtCore.QObject] = None,
    ):
        super().__init__(parent)
        self._spec = spec or TileSpec()
        self._preserve_claims = preserve_claims
        self._origin: Optional[GeoPoint] = None
        self._tiles: List[Tile] = []
        self._selected_color: Optional[str] = None
        self._regenerations = 0
        self._lock = threading.RLock()

    # ── Read-only views ──────────────────────────────────────────────

    @property
    def spec(self) -> TileSpec:
        return self._spec

    @property
    def origin(self) -> Optional[GeoPoint]:
        return self._origin

    @property
    def has_grid(self) -> bool:
        return self._origin is not None

    @property
    def tiles(self) -> List[Tile]:
        with self._lock:
            return list(self._tiles)

    @property
    def regenerations(self) -> int:
        """Number of times the grid has been (re)built."""
        return self._regenerations

    @property
    def selected_color(self) -> Optional[str]:
        return self._selected_color

    def tile(self, index: int) -> Tile:
        with self._lock:
            self._check_index(index)
            return self._tiles[index]

    def claimed_tiles(self) -> Dict[int, str]:
        with self._lock:
            return {t.index: t.claimed_color for t in self._tiles if t.claimed}

    # ── Re-tiling ────────────────────────────────────────────────────

    def regenerate_if_needed(self, base_tile: GeoPoint) -> bool:
        """Rebuild the grid if *base_tile* differs from the current origin.

        Returns True when a new grid was built.
        """
        base = base_tile.quantized(self._spec.coarse_decimals)
        with self._lock:
            if self._origin is not None and base == self._origin:
                log.debug("Base tile %s unchanged — grid kept", base)
                return False

            tiles = build_tiles(base, self._spec)
            if self._preserve_claims and self._tiles:
                previous = {t.center: t.claimed_color for t in self._tiles if t.claimed}
                for t in tiles:
                    t.claimed_color = previous.get(t.center)

            old = self._origin
            self._origin = base
            self._tiles = tiles
            self._regenerations += 1
            log.info(
                "Grid regenerated: origin %s → %s (%d tiles)",
                old, base, len(tiles),
            )
            self.grid_changed.emit(list(tiles))
            return True

    # ── Claims ───────────────────────────────────────────────────────

    def claim_tile(self, index: int, color: str) -> bool:
        """Colour tile *index* with *color*.

        Raises
        ------
        IndexOutOfRange
            If *index* is outside ``[0, tile_count)`` (or no grid exists).
        ValueError
            If *color* is None.
        """
        if color is None:
            raise ValueError("claim colour must not be None")
        with self._lock:
            self._check_index(index)
            tile = self._tiles[index]
            if tile.claimed_color == color:
                return True
            tile.claimed_color = color
            log.info("Tile %d at %s claimed with %s", index, tile.center, color)
            self.tile_claimed.emit(index, color)
            return True

    def clear_claim(self, index: int) -> bool:
        """Remove the claim on tile *index*; False if it was unclaimed."""
        with self._lock:
            self._check_index(index)
            tile = self._tiles[index]
            if tile.claimed_color is None:
                return False
            tile.claimed_color = None
            log.info("Tile %d claim cleared", index)
            self.tile_claimed.emit(index, None)
            return True

    def select_color(self, color: Optional[str]) -> None:
        """Set the colour used by :meth:`claim_at` (None deselects)."""
        with self._lock:
            if color == self._selected_color:
                return
            self._selected_color = color
            self.color_selected.emit(color)

    def tile_at(self, point: GeoPoint) -> Optional[Tile]:
        """Tile containing *point*, or None if outside the grid."""
        for tile in self.tiles:
            if tile.contains(point):
                return tile
        return None

    def claim_at(self, point: GeoPoint) -> Optional[Tile]:
        """Claim the tile under a tap at *point* with the selected colour.

        Returns the claimed tile, or None if nothing was claimed.
        """
        with self._lock:
            color = self._selected_color
            if color is None:
                log.debug("Tap at %s ignored: no colour selected", point)
                return None
            tile = self.tile_at(point)
            if tile is None:
                log.debug("Tap at %s is outside the grid", point)
                return None
            self.claim_tile(tile.index, color)
            return tile

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._tiles):
            raise IndexOutOfRange(index, len(self._tiles))
