"""
Per-stream detection state machine.

A stream alternates between two states:

    IDLE --submit detect(frame)--> DETECTING --result applied in tick()--> IDLE

Detection runs on a single-worker executor so the host loop never blocks on
the model. Finished results are picked up by the next tick() on the host
thread, which is the only place the tracker is mutated.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from inference.backend import InferenceBackend
from models.frame import FrameData
from models.identity import IdentityState
from models.occupancy_event import OccupancyEvent
from models.status import StreamStats
from tracking.filter import filter_detections
from tracking.tracker import IdentityTracker


SKIP_SAME_FRAME = "same_frame"
SKIP_BUSY = "busy"


class StreamState(str, Enum):
    IDLE = "idle"
    DETECTING = "detecting"


@dataclass
class StreamTick:
    """
    Outcome of one host-loop iteration.

    Attributes:
        stream_id: Stream the tick belongs to.
        detection_started: A new detection was submitted this tick.
        result_applied: A finished detection was applied to the tracker.
        skipped_reason: "same_frame" or "busy" when detection was skipped.
        events: Occupancy events emitted by the tracker this tick.
        identities: Tracked identities after the tick, for rendering.
        closed: The stream was already torn down; nothing happened.
    """
    stream_id: str
    detection_started: bool = False
    result_applied: bool = False
    skipped_reason: Optional[str] = None
    events: List[OccupancyEvent] = field(default_factory=list)
    identities: List[IdentityState] = field(default_factory=list)
    closed: bool = False


class StreamPipeline:
    """
    Drives one stream's detector and tracker from the host loop.

    Example:
        stream = StreamPipeline("branch_01", detector, tracker)
        for frame_data in source:
            stream.tick(frame_data)
        stream.close()
    """

    def __init__(
        self,
        stream_id: str,
        detector: InferenceBackend,
        tracker: IdentityTracker,
        executor: Optional[Executor] = None,
        score_threshold: float = 0.5,
        target_class: str = "person",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stream_id = stream_id
        self.detector = detector
        self.tracker = tracker
        self.score_threshold = score_threshold
        self.target_class = target_class
        self._clock = clock

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"detect-{stream_id}"
        )

        self.state = StreamState.IDLE
        self.stats = StreamStats()
        self._pending: Optional[Future] = None
        self._last_frame_key: Optional[float] = None
        self._last_identities: List[IdentityState] = []
        self._callbacks: List[Callable[[StreamTick], None]] = []
        self._closed = False

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def identities(self) -> List[IdentityState]:
        """Identity snapshot from the most recent tick. Safe to read from other threads."""
        return self._last_identities

    def add_callback(self, callback: Callable[[StreamTick], None]) -> None:
        """Register a function called with every StreamTick (the render step)."""
        self._callbacks.append(callback)

    def tick(self, frame_data: FrameData, now: Optional[float] = None) -> StreamTick:
        """
        Run one host-loop iteration for a captured frame.

        Args:
            frame_data: Latest frame from the stream's source.
            now: Monotonic time in seconds (defaults to clock).
        """
        if self._closed:
            return StreamTick(stream_id=self.stream_id, closed=True)
        if now is None:
            now = self._clock()

        self.stats.frames_seen += 1
        self.stats.last_frame_ts = frame_data.timestamp
        result = StreamTick(stream_id=self.stream_id)

        if self.state == StreamState.DETECTING and self._pending is not None and self._pending.done():
            result.events = self._apply_result(self._pending, now)
            result.result_applied = True

        frame_key = frame_data.frame_key
        if self._last_frame_key is not None and frame_key == self._last_frame_key:
            result.skipped_reason = SKIP_SAME_FRAME
            self.stats.skipped_same_frame += 1
        elif self.state == StreamState.DETECTING:
            result.skipped_reason = SKIP_BUSY
            self.stats.skipped_busy += 1
        else:
            self._last_frame_key = frame_key
            self._pending = self._executor.submit(self.detector.detect, frame_data.frame)
            self.state = StreamState.DETECTING
            self.stats.detections_started += 1
            result.detection_started = True

        self._last_identities = self.tracker.snapshot(now)
        result.identities = self._last_identities
        self._render(result)
        return result

    def _apply_result(self, future: Future, now: float) -> List[OccupancyEvent]:
        self._pending = None
        self.state = StreamState.IDLE
        try:
            raw = future.result()
        except Exception as e:
            # Treated as a frame with nothing in it
            self.stats.detector_errors += 1
            logging.warning(f"Detection failed on stream {self.stream_id}: {e}")
            raw = []

        detections = filter_detections(raw, self.score_threshold, self.target_class)
        self.stats.detections_applied += 1
        return self.tracker.update(detections, now)

    def _render(self, result: StreamTick) -> None:
        for callback in self._callbacks:
            try:
                callback(result)
            except Exception as e:
                logging.warning(f"Stream callback error on {self.stream_id}: {e}")

    def close(self) -> None:
        """
        Tear the stream down.

        An in-flight detection may still finish on the worker, but its result
        is never applied. Safe to call multiple times.
        """
        if self._closed:
            return
        self._closed = True
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
        self.state = StreamState.IDLE
        self.tracker.close()
        if self._owns_executor:
            self._executor.shutdown(wait=False)
        logging.info(f"Stream closed: {self.stream_id}")
