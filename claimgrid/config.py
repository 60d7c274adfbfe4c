"""
Configuration for the tile grid and the observer tracker.

Defaults: 0.0002 deg tiles, a 5 x 5 grid, 4-decimal tile corners and
3-decimal base tiles.
Everything can be overridden at construction time, from a JSON file, or
from ``CLAIMGRID_*`` environment variables.

Usage
-----
    spec, tracker_cfg = load_config(Path("claimgrid.json"))
    session = GridSession(spec)

JSON layout
-----------
    {
      "tiles":   {"tile_size": 0.0002, "grid_size": 5, "aspect_ratio": 0.46},
      "tracker": {"heading_threshold_deg": 3.0}
    }
"""
from __future__ import annotations

import json
import logging
import math
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .errors import InvalidConfiguration

log = logging.getLogger(__name__)

DEFAULT_TILE_SIZE = 0.0002
DEFAULT_GRID_SIZE = 5          # must be odd
DEFAULT_TILE_DECIMALS = 4

# env var → (section, field, parser)
_ENV_OVERRIDES = {
    "CLAIMGRID_TILE_SIZE": ("tiles", "tile_size", float),
    "CLAIMGRID_GRID_SIZE": ("tiles", "grid_size", int),
    "CLAIMGRID_TILE_DECIMALS": ("tiles", "tile_decimals", int),
    "CLAIMGRID_ASPECT_RATIO": ("tiles", "aspect_ratio", float),
    "CLAIMGRID_HEADING_THRESHOLD": ("tracker", "heading_threshold_deg", float),
}


def _is_int(value: Any) -> bool:
    # JSON true/false would otherwise pass as 1/0
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class TileSpec:
    """Geometry constants of the tile grid.

    ``tile_size`` is the angular half-width of a tile in degrees of
    longitude.  The latitude axis is scaled by ``latitude_delta`` (the
    longitude delta times the screen aspect ratio) so tiles look square
    on the rendering surface.
    """

    tile_size: float = DEFAULT_TILE_SIZE
    grid_size: int = DEFAULT_GRID_SIZE
    tile_decimals: int = DEFAULT_TILE_DECIMALS
    base_decimals: Optional[int] = None   # None → tile_decimals - 1
    longitude_delta: float = 1.0
    aspect_ratio: float = 1.0

    def __post_init__(self) -> None:
        self.validate()

    @property
    def latitude_delta(self) -> float:
        return self.longitude_delta * self.aspect_ratio

    @property
    def coarse_decimals(self) -> int:
        """Precision of base tiles (decides when the grid is rebuilt)."""
        if self.base_decimals is None:
            return max(self.tile_decimals - 1, 0)
        return self.base_decimals

    @property
    def tile_count(self) -> int:
        return self.grid_size * self.grid_size

    @property
    def half_extent(self) -> int:
        return self.grid_size // 2

    def validate(self) -> None:
        for name in ("grid_size", "tile_decimals", "base_decimals"):
            value = getattr(self, name)
            if name == "base_decimals" and value is None:
                continue
            if not _is_int(value):
                raise InvalidConfiguration(f"{name} must be an int, got {value!r}")
        if self.grid_size <= 0 or self.grid_size % 2 == 0:
            raise InvalidConfiguration(
                f"grid_size must be a positive odd number, got {self.grid_size}"
            )
        if not math.isfinite(self.tile_size) or self.tile_size <= 0:
            raise InvalidConfiguration(
                f"tile_size must be a positive finite number, got {self.tile_size}"
            )
        for name in ("longitude_delta", "aspect_ratio"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise InvalidConfiguration(f"{name} must be positive, got {value}")
        if self.tile_decimals < 0:
            raise InvalidConfiguration(
                f"tile_decimals must be >= 0, got {self.tile_decimals}"
            )
        if self.base_decimals is not None:
            if self.base_decimals < 0:
                raise InvalidConfiguration(
                    f"base_decimals must be >= 0, got {self.base_decimals}"
                )
            if self.base_decimals > self.tile_decimals:
                raise InvalidConfiguration(
                    "base_decimals cannot be finer than tile_decimals "
                    f"({self.base_decimals} > {self.tile_decimals})"
                )


@dataclass(frozen=True)
class TrackerConfig:
    """Observer tracker tuning."""

    heading_threshold_deg: float = 3.0
    camera_animation_ms: int = 500     # "find me" camera move
    camera_heading_ms: int = 100       # camera rotation in follow mode

    def __post_init__(self) -> None:
        if not math.isfinite(self.heading_threshold_deg) or self.heading_threshold_deg < 0:
            raise InvalidConfiguration(
                f"heading_threshold_deg must be >= 0, got {self.heading_threshold_deg}"
            )
        for name in ("camera_animation_ms", "camera_heading_ms"):
            value = getattr(self, name)
            if not _is_int(value) or value < 0:
                raise InvalidConfiguration(f"{name} must be an int >= 0, got {value!r}")


def _build(cls, values: Mapping[str, Any], section: str):
    known = {f.name for f in fields(cls)}
    unknown = set(values) - known
    if unknown:
        raise InvalidConfiguration(
            f"unknown key(s) in '{section}': {', '.join(sorted(unknown))}"
        )
    try:
        return cls(**values)
    except TypeError as exc:
        raise InvalidConfiguration(f"bad '{section}' section: {exc}") from exc


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Dict[str, Any]]:
    out: Dict[str, Dict[str, Any]] = {"tiles": {}, "tracker": {}}
    for var, (section, key, parse) in _ENV_OVERRIDES.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            continue
        try:
            out[section][key] = parse(raw)
        except ValueError as exc:
            raise InvalidConfiguration(f"{var}={raw!r} is not a valid {parse.__name__}") from exc
        log.debug("Config override from %s: %s.%s=%s", var, section, key, raw)
    return out


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Tuple[TileSpec, TrackerConfig]:
    """Load tile and tracker configuration.

    Parameters
    ----------
    path : Path, optional
        JSON file with optional ``tiles`` and ``tracker`` sections.
    environ : mapping, optional
        Environment used for ``CLAIMGRID_*`` overrides (default
        ``os.environ``).  Environment values win over the file.

    Raises
    ------
    InvalidConfiguration
        On unreadable JSON, unknown keys or values that fail validation.
    """
    data: Dict[str, Any] = {}
    if path is not None:
        try:
            with Path(path).open("r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise InvalidConfiguration(f"{path}: invalid JSON ({exc})") from exc
        if not isinstance(data, dict):
            raise InvalidConfiguration(f"{path}: top level must be an object")
        unknown = set(data) - {"tiles", "tracker"}
        if unknown:
            raise InvalidConfiguration(
                f"{path}: unknown section(s) {', '.join(sorted(unknown))}"
            )

    tiles = dict(data.get("tiles") or {})
    tracker = dict(data.get("tracker") or {})

    env = _env_overrides(os.environ if environ is None else environ)
    tiles.update(env["tiles"])
    tracker.update(env["tracker"])

    spec = _build(TileSpec, tiles, "tiles")
    tracker_cfg = _build(TrackerConfig, tracker, "tracker")
    log.info(
        "Config: tile_size=%g grid=%dx%d decimals=%d/%d lat_delta=%g",
        spec.tile_size, spec.grid_size, spec.grid_size,
        spec.tile_decimals, spec.coarse_decimals, spec.latitude_delta,
    )
    return spec, tracker_cfg


def with_overrides(spec: TileSpec, **changes: Any) -> TileSpec:
    """Return a copy of *spec* with *changes* applied (re-validated)."""
    return replace(spec, **changes)
