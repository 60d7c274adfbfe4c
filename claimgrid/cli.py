"""
Command-line front end.

Two commands:
  1) 'grid'   – build the grid around one fix and print/export it
  2) 'replay' – run the observer tracker over a recorded track CSV
"""
from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from .config import TileSpec, TrackerConfig, load_config, with_overrides
from .errors import ClaimGridError
from .geo.grid_session import GridSession
from .geo.quantize import GeoPoint, base_tile
from .geo.tile_grid import tile_size_m, tiles_to_geojson
from .logger import setup_logging
from .render.bridge import LogRenderer, RenderBridge
from .tracking.location import ReplayLocationProvider
from .tracking.observer import ObserverTracker

log = logging.getLogger(__name__)


def _write_geojson(session: GridSession, path: Path) -> None:
    with Path(path).open("w", encoding="utf-8") as f:
        json.dump(tiles_to_geojson(session.tiles), f, indent=2)
    log.info("Wrote %d tiles to %s", len(session.tiles), path)


def _parse_claim(text: str) -> tuple:
    index, sep, color = text.partition("=")
    if not sep or not color:
        raise argparse.ArgumentTypeError(f"expected INDEX=COLOR, got {text!r}")
    try:
        return int(index), color
    except ValueError:
        raise argparse.ArgumentTypeError(f"bad tile index in {text!r}")


def _summary(session: GridSession) -> str:
    width, height = tile_size_m(session.origin, session.spec)
    lines = [
        f"origin      {session.origin.latitude}, {session.origin.longitude}",
        f"tiles       {len(session.tiles)} ({session.spec.grid_size}x{session.spec.grid_size})",
        f"tile size   {width:.1f} m x {height:.1f} m",
        f"claimed     {len(session.claimed_tiles())}",
    ]
    return "\n".join(lines)


def run_grid(spec: TileSpec, lat: float, lon: float,
             claims: List[tuple], geojson: Optional[Path]) -> GridSession:
    session = GridSession(spec)
    session.regenerate_if_needed(base_tile(GeoPoint(lat, lon), spec.coarse_decimals))
    for index, color in claims:
        session.claim_tile(index, color)
    print(_summary(session))
    if geojson is not None:
        _write_geojson(session, geojson)
    return session


def run_replay(spec: TileSpec, tracker_cfg: TrackerConfig, track: Path,
               claims: List[tuple], geojson: Optional[Path]) -> ObserverTracker:
    provider = ReplayLocationProvider.from_csv(track)
    session = GridSession(spec)
    tracker = ObserverTracker(session, provider, tracker_cfg)
    renderer = LogRenderer()
    bridge = RenderBridge(session, tracker, renderer)
    try:
        tracker.start()
        for index, color in claims:
            session.claim_tile(index, color)
        delivered = provider.replay()
    finally:
        tracker.stop()
        bridge.close()

    obs = tracker.observer
    print(_summary(session))
    print(f"samples     {delivered}")
    print(f"grids built {session.regenerations}")
    print(f"observer    {obs.raw_position} heading {obs.heading:.0f}")
    if geojson is not None:
        _write_geojson(session, geojson)
    return tracker


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Location-anchored tile grid: build grids and replay tracks."
    )
    parser.add_argument("--config", type=Path, default=None,
                        help="JSON config with 'tiles' / 'tracker' sections.")
    parser.add_argument("--grid-size", type=int, default=None,
                        help="Override tiles per row/column (odd).")
    parser.add_argument("--tile-size", type=float, default=None,
                        help="Override tile half-width in degrees.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-file", type=Path, default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    p_grid = sub.add_parser("grid", help="Build the grid around a single fix.")
    p_grid.add_argument("--lat", type=float, required=True)
    p_grid.add_argument("--lon", type=float, required=True)

    p_replay = sub.add_parser("replay", help="Replay a recorded track CSV.")
    p_replay.add_argument("track", type=Path)

    for p in (p_grid, p_replay):
        p.add_argument("--claim", type=_parse_claim, action="append", default=[],
                       metavar="INDEX=COLOR", help="Claim a tile (repeatable).")
        p.add_argument("--geojson", type=Path, default=None,
                       help="Write the final grid as GeoJSON.")

    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        spec, tracker_cfg = load_config(args.config)
        overrides = {}
        if args.grid_size is not None:
            overrides["grid_size"] = args.grid_size
        if args.tile_size is not None:
            overrides["tile_size"] = args.tile_size
        if overrides:
            spec = with_overrides(spec, **overrides)

        if args.command == "grid":
            run_grid(spec, args.lat, args.lon, args.claim, args.geojson)
        else:
            run_replay(spec, tracker_cfg, args.track, args.claim, args.geojson)
    except (ClaimGridError, OSError, ValueError) as exc:
        log.error("%s", exc)
        return 1
    return 0
