"""
Location collaborator contract.

The platform location service (GPS, compass, permission prompt) lives
outside this package.  It is seen through :class:`LocationProvider`:

* ``request_fix()`` returns one position or raises
  :class:`~claimgrid.errors.PermissionDenied` /
  :class:`~claimgrid.errors.LocationUnavailable`;
* ``subscribe(on_position, on_heading)`` registers callbacks for the
  position and heading streams and returns a :class:`Subscription` that
  tears the stream down when cancelled.

:class:`ReplayLocationProvider` plays back a recorded track, which is what
the CLI and the tests use in place of a device.

Track CSV format
────────────────
    timestamp,kind,a,b
    0.0,position,37.78825,-122.4324
    0.5,heading,12.0,
"""
from __future__ import annotations

import csv
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from ..errors import LocationUnavailable, PermissionDenied
from ..geo.quantize import GeoPoint

log = logging.getLogger(__name__)

PositionCallback = Callable[[GeoPoint, float], None]
HeadingCallback = Callable[[float, float], None]


@dataclass(frozen=True)
class PositionSample:
    point: GeoPoint
    timestamp: float


@dataclass(frozen=True)
class HeadingSample:
    degrees: float
    timestamp: float


Sample = Union[PositionSample, HeadingSample]


class Subscription:
    """Handle for an active sample subscription."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None):
        self._on_cancel = on_cancel
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        """Stop delivering samples.  Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        if self._on_cancel is not None:
            self._on_cancel()


class LocationProvider(ABC):
    """Abstract source of location fixes and sample streams."""

    @abstractmethod
    def request_fix(self) -> GeoPoint:
        """Ask for permission (if needed) and return the current position."""

    @abstractmethod
    def subscribe(
        self,
        on_position: PositionCallback,
        on_heading: HeadingCallback,
    ) -> Subscription:
        """Register stream callbacks; samples arrive at provider cadence."""


class ReplayLocationProvider(LocationProvider):
    """Replays a recorded list of position/heading samples.

    Parameters
    ----------
    samples : iterable of PositionSample | HeadingSample
        Samples in delivery order.
    permission_granted : bool
        When False, :meth:`request_fix` raises PermissionDenied.
    """

    def __init__(self, samples: Iterable[Sample], permission_granted: bool = True):
        self._samples: List[Sample] = list(samples)
        self.permission_granted = permission_granted
        self._subscribers: List[tuple] = []
        self._lock = threading.Lock()

    @classmethod
    def from_csv(cls, path: Path, **kwargs) -> "ReplayLocationProvider":
        """Load a track recorded as ``timestamp,kind,a,b`` rows."""
        samples: List[Sample] = []
        with Path(path).open("r", encoding="utf-8", newline="") as f:
            for lineno, row in enumerate(csv.reader(f), start=1):
                if not row or row[0].strip().startswith("#"):
                    continue
                if row[0].strip() == "timestamp":
                    continue  # header
                try:
                    ts = float(row[0])
                    kind = row[1].strip().lower()
                    if kind == "position":
                        samples.append(
                            PositionSample(GeoPoint(float(row[2]), float(row[3])), ts)
                        )
                    elif kind == "heading":
                        samples.append(HeadingSample(float(row[2]), ts))
                    else:
                        raise ValueError(f"unknown sample kind {kind!r}")
                except (IndexError, ValueError) as exc:
                    raise ValueError(f"{path}:{lineno}: bad track row {row!r} ({exc})") from exc
        log.info("Loaded %d samples from %s", len(samples), path)
        return cls(samples, **kwargs)

    @property
    def samples(self) -> List[Sample]:
        return list(self._samples)

    def request_fix(self) -> GeoPoint:
        if not self.permission_granted:
            raise PermissionDenied("location permission was denied")
        for s in self._samples:
            if isinstance(s, PositionSample):
                return s.point
        raise LocationUnavailable("track contains no position samples")

    def subscribe(
        self,
        on_position: PositionCallback,
        on_heading: HeadingCallback,
    ) -> Subscription:
        entry = (on_position, on_heading)
        with self._lock:
            self._subscribers.append(entry)

        def _remove() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return Subscription(_remove)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def replay(self) -> int:
        """Deliver every sample to the current subscribers, in order.

        Returns the number of samples delivered.
        """
        delivered = 0
        for s in self._samples:
            with self._lock:
                targets = list(self._subscribers)
            if not targets:
                break
            for on_position, on_heading in targets:
                if isinstance(s, PositionSample):
                    on_position(s.point, s.timestamp)
                else:
                    on_heading(s.degrees, s.timestamp)
            delivered += 1
        return delivered
