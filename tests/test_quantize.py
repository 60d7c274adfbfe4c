from __future__ import annotations

import math

import pytest
from hypothesis import given, strategies as st

from claimgrid.errors import InvalidConfiguration
from claimgrid.geo.quantize import GeoPoint, base_tile, quantize, quantize_point


def _finite_float():
    return st.floats(allow_nan=False, allow_infinity=False, width=64)


@given(x=_finite_float(), d=st.integers(min_value=0, max_value=12))
def test_quantize_is_idempotent(x, d):
    once = quantize(x, d)
    assert quantize(once, d) == once


@given(x=st.floats(min_value=-180.0, max_value=180.0), d=st.integers(min_value=0, max_value=8))
def test_quantize_stays_within_half_step(x, d):
    assert abs(quantize(x, d) - x) <= 0.5 * 10 ** -d + 1e-12


@pytest.mark.parametrize(
    "value, decimals, expected",
    [
        (2.5, 0, 3.0),
        (-2.5, 0, -3.0),
        (1.005, 2, 1.01),
        (-1.005, 2, -1.01),
        (37.78825, 4, 37.7883),
        (37.78825, 3, 37.788),
        (-122.4324, 3, -122.432),
        (-122.4325, 3, -122.433),
        (0.00004, 4, 0.0),
    ],
)
def test_quantize_rounds_half_away_from_zero(value, decimals, expected):
    assert quantize(value, decimals) == expected


def test_quantize_never_returns_negative_zero():
    assert math.copysign(1.0, quantize(-0.00001, 2)) == 1.0


def test_quantize_passes_non_finite_through():
    assert math.isinf(quantize(float("inf"), 3))
    assert math.isnan(quantize(float("nan"), 3))


def test_quantize_rejects_negative_decimals():
    with pytest.raises(InvalidConfiguration):
        quantize(1.0, -1)


def test_geopoint_equality_is_on_quantized_values():
    a = GeoPoint(37.78825, -122.4324).quantized(3)
    b = GeoPoint(37.7881, -122.43240001).quantized(3)
    assert a == b
    assert hash(a) == hash(b)
    assert GeoPoint(37.788, -122.432) != GeoPoint(37.789, -122.432)


def test_base_tile_is_coarser_than_tile_precision():
    fix = GeoPoint(37.78825, -122.4324)
    assert quantize_point(fix, 4) == GeoPoint(37.7883, -122.4324)
    assert base_tile(fix, 3) == GeoPoint(37.788, -122.432)


def test_as_lonlat_order():
    assert GeoPoint(1.0, 2.0).as_lonlat() == (2.0, 1.0)
