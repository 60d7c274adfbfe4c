"""
Coordinate quantization.

Every latitude/longitude that enters the tile model is snapped to a fixed
number of decimal places.  Two precisions are in play:

* tile precision (default 4 decimals) for tile centres and corners,
* base-tile precision (default 3 decimals) which decides when the
  observer has moved far enough for the whole grid to be rebuilt.

Rounding is half away from zero on the shortest decimal representation of
the float, so ``quantize(1.005, 2) == 1.01`` even though the binary value
of ``1.005`` sits just below the halfway point.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Tuple

from ..errors import InvalidConfiguration

_INTEGRAL_FLOAT = 2.0 ** 52


def quantize(value: float, decimals: int) -> float:
    """Round *value* half away from zero to *decimals* fractional digits."""
    if decimals < 0:
        raise InvalidConfiguration(f"decimals must be >= 0, got {decimals}")
    value = float(value)
    # floats at or above 2**52 carry no fractional part
    if not math.isfinite(value) or abs(value) >= _INTEGRAL_FLOAT:
        return value
    ctx = Context(prec=decimals + 20)
    step = Decimal(1).scaleb(-decimals)
    # ROUND_HALF_UP in decimal is half away from zero
    q = Decimal(repr(value)).quantize(step, rounding=ROUND_HALF_UP, context=ctx)
    return float(q) + 0.0  # -0.0 → 0.0


@dataclass(frozen=True)
class GeoPoint:
    """A latitude/longitude pair in degrees (WGS84)."""

    latitude: float
    longitude: float

    def quantized(self, decimals: int) -> "GeoPoint":
        return GeoPoint(
            quantize(self.latitude, decimals),
            quantize(self.longitude, decimals),
        )

    def offset(self, dlat: float, dlon: float) -> "GeoPoint":
        return GeoPoint(self.latitude + dlat, self.longitude + dlon)

    def as_lonlat(self) -> Tuple[float, float]:
        """(lon, lat) order, as used by shapely and GeoJSON."""
        return (self.longitude, self.latitude)

    def __str__(self) -> str:
        return f"({self.latitude}, {self.longitude})"


def quantize_point(point: GeoPoint, decimals: int) -> GeoPoint:
    return point.quantized(decimals)


def base_tile(point: GeoPoint, decimals: int) -> GeoPoint:
    """Coarse-quantized base tile of *point*.

    The observer is in a new base tile whenever this value changes.
    """
    return point.quantized(decimals)
