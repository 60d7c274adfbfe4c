from __future__ import annotations

import pytest
from hypothesis import given, settings, strategies as st

from claimgrid.config import TileSpec
from claimgrid.geo.quantize import GeoPoint
from claimgrid.geo.tile_grid import (
    build_tiles,
    corners_of,
    generate_grid,
    tile_size_m,
    tiles_to_geojson,
)

ORIGIN = GeoPoint(37.788, -122.432)


def test_grid_has_grid_size_squared_tiles(spec):
    assert len(generate_grid(ORIGIN, spec)) == 25


def test_center_tile_is_origin(spec):
    centers = generate_grid(ORIGIN, spec)
    assert centers[12] == ORIGIN


def test_grid_is_row_major_south_to_north(spec):
    centers = generate_grid(ORIGIN, spec)
    assert centers[0] == GeoPoint(37.7872, -122.4328)
    assert centers[4] == GeoPoint(37.7872, -122.4312)
    assert centers[24] == GeoPoint(37.7888, -122.4312)


def test_adjacent_centers_are_one_tile_apart(spec):
    centers = generate_grid(ORIGIN, spec)
    n = spec.grid_size
    step = 2 * spec.tile_size
    for r in range(n):
        for c in range(n - 1):
            a, b = centers[r * n + c], centers[r * n + c + 1]
            assert b.longitude - a.longitude == pytest.approx(step, abs=1e-9)
            assert b.latitude == a.latitude
    for r in range(n - 1):
        for c in range(n):
            a, b = centers[r * n + c], centers[(r + 1) * n + c]
            assert b.latitude - a.latitude == pytest.approx(step * spec.latitude_delta, abs=1e-9)
            assert b.longitude == a.longitude


@settings(max_examples=50, deadline=None)
@given(
    lat=st.floats(min_value=-80.0, max_value=80.0),
    lon=st.floats(min_value=-179.0, max_value=179.0),
    grid_size=st.sampled_from([1, 3, 5, 7, 9]),
    aspect_ratio=st.sampled_from([0.25, 0.46, 0.5, 1.0, 2.0]),
)
def test_spacing_holds_for_any_origin(lat, lon, grid_size, aspect_ratio):
    spec = TileSpec(tile_size=0.0002, grid_size=grid_size, aspect_ratio=aspect_ratio)
    origin = GeoPoint(lat, lon).quantized(spec.coarse_decimals)
    centers = generate_grid(origin, spec)
    assert len(centers) == grid_size ** 2
    assert centers[grid_size ** 2 // 2] == origin
    lon_step = 2 * spec.tile_size
    lat_step = lon_step * spec.latitude_delta
    # each centre is rounded to tile_decimals on its own
    tol = 10 ** -spec.tile_decimals + 1e-9
    for k in range(len(centers) - 1):
        if (k + 1) % grid_size:
            delta = centers[k + 1].longitude - centers[k].longitude
            assert delta == pytest.approx(lon_step, abs=1e-9)
            assert centers[k + 1].latitude == centers[k].latitude
    for k in range(len(centers) - grid_size):
        delta = centers[k + grid_size].latitude - centers[k].latitude
        assert delta == pytest.approx(lat_step, abs=tol)
        assert centers[k + grid_size].longitude == centers[k].longitude


def test_latitude_axis_scaled_by_aspect_ratio():
    spec = TileSpec(tile_size=0.0002, grid_size=3, aspect_ratio=0.5)
    centers = generate_grid(ORIGIN, spec)
    assert centers[4] == ORIGIN
    assert centers[7].latitude - centers[4].latitude == pytest.approx(0.0002, abs=1e-9)
    assert centers[5].longitude - centers[4].longitude == pytest.approx(0.0004, abs=1e-9)


def test_corners_counter_clockwise_from_bottom_left(spec):
    corners = corners_of(ORIGIN, spec)
    assert corners == [
        GeoPoint(37.7878, -122.4322),  # SW
        GeoPoint(37.7878, -122.4318),  # SE
        GeoPoint(37.7882, -122.4318),  # NE
        GeoPoint(37.7882, -122.4322),  # NW
    ]


def test_adjacent_tiles_share_edges(spec):
    tiles = build_tiles(ORIGIN, spec)
    west, east = tiles[12], tiles[13]
    # SE/NE of the west tile are SW/NW of the east tile
    assert west.corners[1] == east.corners[0]
    assert west.corners[2] == east.corners[3]
    south, north = tiles[12], tiles[17]
    assert south.corners[3] == north.corners[0]
    assert south.corners[2] == north.corners[1]


def test_build_tiles_indexes_and_starts_unclaimed(spec):
    tiles = build_tiles(ORIGIN, spec)
    assert [t.index for t in tiles] == list(range(25))
    assert (tiles[7].row, tiles[7].col) == (1, 2)
    assert all(t.claimed_color is None for t in tiles)
    assert tiles[12].center == ORIGIN


def test_tile_contains(spec):
    tile = build_tiles(ORIGIN, spec)[12]
    assert tile.contains(GeoPoint(37.7881, -122.4319))
    assert not tile.contains(GeoPoint(37.7890, -122.4319))
    assert tile.polygon.area == pytest.approx(0.0004 * 0.0004, rel=1e-6)


def test_tile_size_m_roughly_square_at_default_aspect(spec):
    width, height = tile_size_m(ORIGIN, spec)
    # 0.0004 deg of latitude ≈ 44 m; longitude shrinks with cos(lat)
    assert height == pytest.approx(44.4, abs=0.5)
    assert width == pytest.approx(35.2, abs=0.5)


def test_tiles_to_geojson(spec):
    tiles = build_tiles(ORIGIN, spec)
    tiles[3].claimed_color = "#00FF00"
    fc = tiles_to_geojson(tiles)
    assert fc["type"] == "FeatureCollection"
    assert len(fc["features"]) == 25
    ring = fc["features"][3]["geometry"]["coordinates"][0]
    assert len(ring) == 5
    assert ring[0] == ring[-1]
    assert fc["features"][3]["properties"]["claimed_color"] == "#00FF00"
    assert fc["features"][0]["properties"]["claimed_color"] is None
