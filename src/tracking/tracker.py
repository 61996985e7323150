"""
Person identity tracking across video frames.

This module implements a greedy nearest-center tracker. Each frame runs
three phases:

1. Matching: every detection, in arrival order, claims the closest
   unclaimed identity whose last center lies within the match distance.
2. Creation: detections left unmatched become new identities ("in").
3. Retirement: identities unmatched for longer than the inactivity
   timeout are removed ("out").

Matching is local and order dependent: an earlier detection can take the
identity a later one would have fit better. Do not replace it with an
optimal (bipartite) assignment.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set

from models.detection import Detection
from models.identity import IdentityState, TrackedIdentity
from models.occupancy_event import OccupancyEvent, OccupancyKind

from .attributes import AttributeEstimator, RandomAttributeEstimator


class OccupancySink(Protocol):
    """Counting store that receives one call per identity creation/retirement."""

    def record_event(self, stream_id: str, kind: str, **details) -> None:
        ...


class IdentityTracker:
    """
    Tracks people across frames by center distance.

    This tracker is responsible for:
    - Matching detections to existing identities
    - Creating identities for unmatched detections
    - Retiring identities that stopped being matched
    - Reporting every creation/retirement to the occupancy sink

    One tracker belongs to exactly one stream; it is not thread-safe and is
    meant to be driven from that stream's host loop only.
    """

    def __init__(
        self,
        stream_id: str,
        sink: Optional[OccupancySink] = None,
        attribute_estimator: Optional[AttributeEstimator] = None,
        match_distance_px: float = 50.0,
        inactivity_timeout_s: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the identity tracker.

        Args:
            stream_id: Branch/stream this tracker reports events for.
            sink: Occupancy store receiving "in"/"out" events.
            attribute_estimator: Assigns demographics on creation.
            match_distance_px: Centers closer than this (strictly) may match.
            inactivity_timeout_s: Identities unmatched for longer than this
                                  are retired.
            clock: Monotonic clock used when update() gets no explicit time.
        """
        self.stream_id = stream_id
        self.sink = sink
        self.attribute_estimator = attribute_estimator or RandomAttributeEstimator()
        self.match_distance_px = match_distance_px
        self.inactivity_timeout_s = inactivity_timeout_s
        self._clock = clock

        self.identities: Dict[int, TrackedIdentity] = {}
        self.next_identity_id = 1
        self._closed = False

        logging.info(
            f"Identity tracker initialized: stream={stream_id}, "
            f"match_distance={match_distance_px}px, inactivity={inactivity_timeout_s}s"
        )

    @property
    def is_closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return len(self.identities)

    def update(self, detections: Iterable[Detection], now: Optional[float] = None) -> List[OccupancyEvent]:
        """
        Update tracker with one frame of filtered detections.

        Args:
            detections: Person detections for this frame (may be empty).
            now: Monotonic time of the frame in seconds (defaults to clock).

        Returns:
            Occupancy events emitted during this frame, in emission order.
        """
        if self._closed:
            return []
        if now is None:
            now = self._clock()

        claimed: Set[int] = set()
        unmatched = self._match_detections(list(detections or []), now, claimed)

        events = self._create_identities(unmatched, now)
        events.extend(self._retire_inactive(now))
        return events

    def _find_best_match(self, detection: Detection, claimed: Set[int]) -> Optional[int]:
        """Closest unclaimed identity within the match distance, lowest id on ties."""
        best_id: Optional[int] = None
        best_dist = 0.0
        for identity_id, identity in self.identities.items():
            if identity_id in claimed:
                continue
            cx, cy = identity.center
            dist = math.hypot(detection.center_x - cx, detection.center_y - cy)
            if dist < self.match_distance_px and (best_id is None or dist < best_dist):
                best_id = identity_id
                best_dist = dist
        return best_id

    def _match_detections(self, detections: List[Detection], now: float, claimed: Set[int]) -> List[Detection]:
        """Claim identities for detections; return the detections left unmatched."""
        unmatched: List[Detection] = []
        for detection in detections:
            identity_id = self._find_best_match(detection, claimed)
            if identity_id is None:
                unmatched.append(detection)
                continue
            identity = self.identities[identity_id]
            identity.box = detection
            identity.last_seen_at = now
            claimed.add(identity_id)
        return unmatched

    def _create_identities(self, detections: List[Detection], now: float) -> List[OccupancyEvent]:
        events: List[OccupancyEvent] = []
        for detection in detections:
            identity = TrackedIdentity(
                identity_id=self.next_identity_id,
                box=detection,
                attributes=self.attribute_estimator.estimate(detection),
                created_at=now,
                last_seen_at=now,
            )
            self.next_identity_id += 1
            self.identities[identity.identity_id] = identity
            logging.debug(
                f"[TRACK] stream={self.stream_id} new identity {identity.identity_id} "
                f"at ({detection.center_x:.0f}, {detection.center_y:.0f})"
            )
            events.append(self._emit(OccupancyKind.IN, identity, now))
        return events

    def _retire_inactive(self, now: float) -> List[OccupancyEvent]:
        to_remove = [
            identity_id
            for identity_id, identity in self.identities.items()
            if now - identity.last_seen_at > self.inactivity_timeout_s
        ]

        events: List[OccupancyEvent] = []
        for identity_id in to_remove:
            identity = self.identities.pop(identity_id)
            logging.debug(
                f"[TRACK] stream={self.stream_id} identity {identity_id} retired "
                f"after {identity.last_seen_at - identity.created_at:.1f}s"
            )
            events.append(self._emit(OccupancyKind.OUT, identity, now))
        return events

    def _emit(self, kind: OccupancyKind, identity: TrackedIdentity, now: float) -> OccupancyEvent:
        dwell = identity.last_seen_at - identity.created_at if kind == OccupancyKind.OUT else None
        event = OccupancyEvent(
            stream_id=self.stream_id,
            kind=kind,
            identity_id=identity.identity_id,
            timestamp=now,
            dwell_seconds=dwell,
            attributes=identity.attributes,
        )
        if self.sink is not None:
            try:
                self.sink.record_event(
                    self.stream_id,
                    kind.value,
                    dwell_seconds=dwell,
                    attributes=identity.attributes,
                )
            except Exception as e:
                logging.warning(f"Occupancy sink error for stream {self.stream_id}: {e}")
        return event

    def get_identities(self) -> List[TrackedIdentity]:
        """Get currently tracked identities in creation order."""
        return list(self.identities.values())

    def snapshot(self, now: Optional[float] = None) -> List[IdentityState]:
        """Immutable view of the tracked set, e.g. for the debug API."""
        if now is None:
            now = self._clock()
        return [IdentityState.from_identity(i, now) for i in self.identities.values()]

    def close(self) -> None:
        """Tear down: later update() calls are ignored."""
        self._closed = True
