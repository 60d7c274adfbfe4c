from __future__ import annotations

from claimgrid.geo.quantize import GeoPoint
from claimgrid.render.bridge import LogRenderer, RenderBridge, TileRenderer


class _RecordingRenderer(TileRenderer):
    def __init__(self):
        self.tiles = []
        self.observers = []
        self.camera = []
        self.claims = []

    def render_tiles(self, tiles):
        self.tiles.append(tiles)

    def render_observer(self, state):
        self.observers.append(state)

    def move_camera(self, center, heading, duration_ms):
        self.camera.append((center, heading, duration_ms))

    def render_claim(self, index, color):
        self.claims.append((index, color))


def test_bridge_forwards_grid_observer_and_camera(session, tracker):
    renderer = _RecordingRenderer()
    bridge = RenderBridge(session, tracker, renderer)
    tracker.start()
    assert len(renderer.tiles) == 1
    assert len(renderer.tiles[0]) == 25
    assert renderer.observers[-1].raw_position == GeoPoint(37.7883, -122.4324)
    assert renderer.camera == [(GeoPoint(37.7883, -122.4324), None, 500)]

    session.claim_tile(7, "#FF0000")
    assert renderer.claims == [(7, "#FF0000")]

    tracker.set_follow_mode(True)
    tracker.on_heading(90.0)
    assert renderer.camera[-1] == (None, 90.0, 100)
    bridge.close()


def test_bridge_draws_existing_grid_and_disconnects(session, tracker):
    session.regenerate_if_needed(GeoPoint(37.788, -122.432))
    renderer = _RecordingRenderer()
    bridge = RenderBridge(session, tracker, renderer)
    assert len(renderer.tiles) == 1
    bridge.close()
    bridge.close()
    session.regenerate_if_needed(GeoPoint(37.789, -122.432))
    assert len(renderer.tiles) == 1


def test_log_renderer_counts_updates(session, tracker, track_provider):
    renderer = LogRenderer()
    bridge = RenderBridge(session, tracker, renderer)
    tracker.start()
    track_provider.replay()
    bridge.close()
    assert renderer.grid_updates == 2
    assert renderer.last_tiles[12].center == GeoPoint(37.789, -122.432)
    assert renderer.last_observer.heading == 14.0
