"""
Tile grid geometry around the observer.

The grid is a ``grid_size x grid_size`` lattice of tiles centred on a
quantized base-tile origin.  Tiles are indexed row-major with row 0 the
southernmost row and column 0 the westernmost column, so the centre tile
(the origin itself) has index ``grid_size**2 // 2``.

Adjacent tile centres are exactly one tile width apart (``2 * tile_size``
of longitude, ``2 * tile_size * latitude_delta`` of latitude), which makes
the tiles meet edge to edge without gaps or overlaps.

Usage
-----
    spec = TileSpec(tile_size=0.0002, grid_size=5)
    tiles = build_tiles(GeoPoint(37.788, -122.432), spec)
    for tile in tiles:
        print(tile.index, tile.center, tile.corners)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import pyproj
from shapely.geometry import Point, Polygon

from ..config import TileSpec
from .quantize import GeoPoint

_GEOD = pyproj.Geod(ellps="WGS84")

# (lon, lat) unit offsets: SW, SE, NE, NW (counter-clockwise)
_CORNER_OFFSETS: Tuple[Tuple[int, int], ...] = ((-1, -1), (1, -1), (1, 1), (-1, 1))


@dataclass
class Tile:
    """One tile of the grid around the observer."""

    index: int                            # row-major, 0 = SW corner tile
    row: int                              # 0 = southernmost
    col: int                              # 0 = westernmost
    center: GeoPoint
    corners: List[GeoPoint] = field(default_factory=list)
    claimed_color: Optional[str] = None

    @classmethod
    def from_center(cls, index: int, row: int, col: int, center: GeoPoint,
                    spec: TileSpec) -> "Tile":
        return cls(
            index=index, row=row, col=col, center=center,
            corners=corners_of(center, spec),
        )

    @property
    def claimed(self) -> bool:
        return self.claimed_color is not None

    @property
    def polygon(self) -> Polygon:
        """Tile outline as a shapely Polygon in (lon, lat)."""
        return Polygon([c.as_lonlat() for c in self.corners])

    def contains(self, point: GeoPoint) -> bool:
        """True if *point* lies inside or on the edge of this tile."""
        return self.polygon.intersects(Point(point.as_lonlat()))


def corners_of(center: GeoPoint, spec: TileSpec) -> List[GeoPoint]:
    """Four corners of the tile centred at *center*.

    Counter-clockwise starting bottom-left; each corner is quantized at
    tile precision.
    """
    lat_step = spec.tile_size * spec.latitude_delta
    lon_step = spec.tile_size
    return [
        center.offset(dy * lat_step, dx * lon_step).quantized(spec.tile_decimals)
        for dx, dy in _CORNER_OFFSETS
    ]


def generate_grid(origin: GeoPoint, spec: TileSpec) -> List[GeoPoint]:
    """Tile centres of the grid around *origin*, row-major south → north."""
    half = spec.half_extent
    lat_step = 2 * spec.tile_size * spec.latitude_delta
    lon_step = 2 * spec.tile_size
    centers: List[GeoPoint] = []
    for i in range(-half, half + 1):
        for j in range(-half, half + 1):
            centers.append(
                origin.offset(i * lat_step, j * lon_step).quantized(spec.tile_decimals)
            )
    return centers


def build_tiles(origin: GeoPoint, spec: TileSpec) -> List[Tile]:
    """Unclaimed tiles (centres + corners) for the grid around *origin*."""
    n = spec.grid_size
    return [
        Tile.from_center(k, k // n, k % n, center, spec)
        for k, center in enumerate(generate_grid(origin, spec))
    ]


def tile_size_m(center: GeoPoint, spec: TileSpec) -> Tuple[float, float]:
    """Geodesic (width, height) of a tile at *center* in metres."""
    half_lon = spec.tile_size
    half_lat = spec.tile_size * spec.latitude_delta
    _, _, width = _GEOD.inv(
        center.longitude - half_lon, center.latitude,
        center.longitude + half_lon, center.latitude,
    )
    _, _, height = _GEOD.inv(
        center.longitude, center.latitude - half_lat,
        center.longitude, center.latitude + half_lat,
    )
    return width, height


def tiles_to_geojson(tiles: List[Tile]) -> Dict:
    """Export tiles as a GeoJSON FeatureCollection for debugging."""
    features = []
    for t in tiles:
        ring = [c.as_lonlat() for c in t.corners]
        ring.append(ring[0])  # close ring
        features.append({
            "type": "Feature",
            "properties": {
                "index": t.index,
                "row": t.row,
                "col": t.col,
                "center_lat": t.center.latitude,
                "center_lon": t.center.longitude,
                "claimed_color": t.claimed_color,
            },
            "geometry": {
                "type": "Polygon",
                "coordinates": [[list(p) for p in ring]],
            },
        })

    return {
        "type": "FeatureCollection",
        "features": features,
    }
