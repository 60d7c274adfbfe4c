"""
Observer tracker — turns location/heading samples into grid updates.

State machine
─────────────
  UNINITIALIZED ──start()──▶ LOCATING ──first fix──▶ TRACKING
        ▲                       │  ▲                    │
        └──────stop()───────────┘  └─ find_me() retry  │
        └──────────────────────stop()───────────────────┘

While TRACKING every position sample is quantized, stored as the
observer's raw position and its base tile handed to
``GridSession.regenerate_if_needed``.  Heading samples only update the
stored heading when they move it by more than the hysteresis threshold,
which keeps the marker from jittering on a noisy compass.

A failed first fix (permission refused, no position) leaves the tracker
in LOCATING.  Nothing is retried automatically; the host calls
:meth:`ObserverTracker.find_me` when the user asks for it.

Samples are processed one at a time under a single lock, so a provider
that calls back from several threads still sees strictly sequential
updates.
"""
from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, replace
from typing import Optional

from PyQt5 import QtCore

from ..config import TrackerConfig
from ..errors import LocationError, LocationUnavailable
from ..geo.grid_session import GridSession
from ..geo.quantize import GeoPoint, base_tile, quantize
from .location import LocationProvider, Subscription

log = logging.getLogger(__name__)


class TrackerState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOCATING = "locating"
    TRACKING = "tracking"


@dataclass(frozen=True)
class ObserverState:
    """Snapshot of the observer as seen by the renderer."""
    raw_position: Optional[GeoPoint] = None
    heading: float = 0.0               # degrees, [0, 360)
    follow_mode: bool = False
    timestamp: Optional[float] = None  # of the last applied sample


def normalize_heading(degrees: float) -> float:
    """Map *degrees* into ``[0, 360)``."""
    return degrees % 360.0


def heading_delta(a: float, b: float) -> float:
    """Smallest angle between two headings, in ``[0, 180]``."""
    d = abs(normalize_heading(a) - normalize_heading(b))
    return min(d, 360.0 - d)


class ObserverTracker(QtCore.QObject):
    """Observer position/heading tracker driving a :class:`GridSession`.

    Signals
    -------
    observer_updated(ObserverState)
        Emitted after every applied position/heading change and follow
        mode toggle.
    camera_center_requested(GeoPoint, int)
        Camera should centre on the point over ``duration_ms``.
    camera_heading_requested(float, int)
        Camera should rotate to the heading (follow mode only).
    state_changed(TrackerState)
    status_message(str)
        Human-readable progress / failure text for the host UI.
    """

    observer_updated = QtCore.pyqtSignal(object)          # ObserverState
    camera_center_requested = QtCore.pyqtSignal(object, int)
    camera_heading_requested = QtCore.pyqtSignal(float, int)
    state_changed = QtCore.pyqtSignal(object)             # TrackerState
    status_message = QtCore.pyqtSignal(str)

    def __init__(
        self,
        session: GridSession,
        provider: LocationProvider,
        config: Optional[TrackerConfig] = None,
        parent: Optional[QtCore.QObject] = None,
    ):
        super().__init__(parent)
        self._session = session
        self._provider = provider
        self._config = config or TrackerConfig()
        self._state = TrackerState.UNINITIALIZED
        self._observer = ObserverState()
        self._subscription: Optional[Subscription] = None
        self._lock = threading.RLock()

    # ── Read-only views ──────────────────────────────────────────────

    @property
    def state(self) -> TrackerState:
        return self._state

    @property
    def observer(self) -> ObserverState:
        return self._observer

    @property
    def session(self) -> GridSession:
        return self._session

    # ── Control ──────────────────────────────────────────────────────

    def start(self) -> GeoPoint:
        """Subscribe to the provider and acquire the first fix.

        Returns the quantized first position.

        Raises
        ------
        PermissionDenied, LocationUnavailable
            The tracker stays in LOCATING; retry with :meth:`find_me`.
        """
        with self._lock:
            if self._state is not TrackerState.UNINITIALIZED:
                raise RuntimeError(f"tracker already started ({self._state.value})")
            self._set_state(TrackerState.LOCATING)
            self._subscription = self._provider.subscribe(
                self.on_position, self.on_heading,
            )
            self.status_message.emit("Retrieving observer location...")
            fix = self._request_fix()
            self._first_fix(fix)
            self.camera_center_requested.emit(
                self._observer.raw_position, self._config.camera_animation_ms,
            )
            return self._observer.raw_position

    def find_me(self) -> GeoPoint:
        """User-triggered fix request: re-centre the camera on the observer.

        Turns follow mode off.  From LOCATING this is the retry path that
        completes the first-fix transition.
        """
        with self._lock:
            if self._state is TrackerState.UNINITIALIZED:
                raise RuntimeError("tracker not started")
            self.set_follow_mode(False)
            fix = self._request_fix()
            if self._state is TrackerState.LOCATING:
                self._first_fix(fix)
            else:
                self._apply_position(fix, None)
            self.camera_center_requested.emit(
                self._observer.raw_position, self._config.camera_animation_ms,
            )
            return self._observer.raw_position

    def stop(self) -> None:
        """Tear down the sample subscription."""
        with self._lock:
            if self._subscription is not None:
                self._subscription.cancel()
                self._subscription = None
            if self._state is not TrackerState.UNINITIALIZED:
                self._set_state(TrackerState.UNINITIALIZED)
                log.info("Observer tracker stopped")

    def set_follow_mode(self, enabled: bool) -> None:
        """Camera follow on/off.  Does not move the observer."""
        with self._lock:
            if self._observer.follow_mode == enabled:
                return
            self._observer = replace(self._observer, follow_mode=enabled)
            self.observer_updated.emit(self._observer)

    def toggle_follow(self) -> bool:
        with self._lock:
            self.set_follow_mode(not self._observer.follow_mode)
            return self._observer.follow_mode

    # ── Sample callbacks ─────────────────────────────────────────────

    def on_position(self, point: GeoPoint, timestamp: Optional[float] = None) -> None:
        with self._lock:
            if self._state is not TrackerState.TRACKING:
                log.debug("Position sample ignored while %s", self._state.value)
                return
            self._apply_position(point, timestamp)

    def on_heading(self, degrees: float, timestamp: Optional[float] = None) -> None:
        with self._lock:
            if self._state is TrackerState.UNINITIALIZED:
                return
            incoming = normalize_heading(degrees)
            if heading_delta(incoming, self._observer.heading) <= self._config.heading_threshold_deg:
                return
            heading = normalize_heading(quantize(incoming, 0))
            self._observer = replace(self._observer, heading=heading, timestamp=timestamp)
            self.observer_updated.emit(self._observer)
            if self._observer.follow_mode:
                self.camera_heading_requested.emit(heading, self._config.camera_heading_ms)

    # ── Internals ────────────────────────────────────────────────────

    def _request_fix(self) -> GeoPoint:
        try:
            fix = self._provider.request_fix()
            if fix is None:
                raise LocationUnavailable("location provider returned no fix")
        except LocationError as exc:
            log.warning("Location fix failed: %s", exc)
            self.status_message.emit(f"Location unavailable: {exc}")
            raise
        return fix

    def _first_fix(self, fix: GeoPoint) -> None:
        self.status_message.emit("Rendering tiles...")
        self._set_state(TrackerState.TRACKING)
        self._apply_position(fix, None)
        log.info("First fix %s — tracking", self._observer.raw_position)

    def _apply_position(self, point: GeoPoint, timestamp: Optional[float]) -> None:
        spec = self._session.spec
        position = point.quantized(spec.tile_decimals)
        # base tile from the raw fix, not the already-rounded position
        self._session.regenerate_if_needed(base_tile(point, spec.coarse_decimals))
        self._observer = replace(self._observer, raw_position=position, timestamp=timestamp)
        self.observer_updated.emit(self._observer)
        if self._observer.follow_mode:
            self.camera_center_requested.emit(position, 0)

    def _set_state(self, state: TrackerState) -> None:
        if state is self._state:
            return
        log.debug("Tracker %s → %s", self._state.value, state.value)
        self._state = state
        self.state_changed.emit(state)
