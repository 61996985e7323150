"""
Stream lifecycle management.

Builds one tracker + stream pipeline + host loop per branch camera and runs
each host loop on its own daemon thread.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from inference import InferenceBackend, ModelUnavailableError, create_detector_from_config
from models.config import BranchConfig, CameraConfig, Config, DetectionConfig
from models.identity import IdentityState
from models.status import StreamStatus, StreamStatusInfo
from observation import ObservationSource, SourceUnavailableError, create_source_from_config
from occupancy.store import OccupancyStore
from pipeline.engine import EngineConfig, StreamEngine
from pipeline.stream import StreamPipeline
from tracking.tracker import IdentityTracker


@dataclass
class StreamHandle:
    """Everything the manager holds for one running stream."""
    status: StreamStatusInfo
    engine: Optional[StreamEngine] = None
    thread: Optional[threading.Thread] = None

    @property
    def stream(self) -> Optional[StreamPipeline]:
        return self.engine.stream if self.engine is not None else None


class StreamManager:
    """
    Starts and stops the per-branch host loops.

    Streams share nothing but the occupancy store: each one loads its own
    detector and runs it on its own worker, so a hung detect() call only
    stalls that stream.
    """

    def __init__(
        self,
        config: Config,
        store: OccupancyStore,
        detector_factory: Callable[[DetectionConfig], InferenceBackend] = create_detector_from_config,
        source_factory: Callable[[CameraConfig, str], ObservationSource] = create_source_from_config,
        engine_config: Optional[EngineConfig] = None,
    ):
        self.config = config
        self.store = store
        self._detector_factory = detector_factory
        self._source_factory = source_factory
        self._engine_config = engine_config or EngineConfig()

        self._handles: Dict[str, StreamHandle] = {}
        self._lock = threading.Lock()

    def start(self) -> None:
        """Start a stream for every branch that has a camera configured."""
        for branch in self.config.branches:
            if branch.camera is None:
                continue
            self.start_stream(branch)

    def start_stream(self, branch: BranchConfig) -> StreamStatusInfo:
        """
        Start the host loop for one branch.

        Returns the stream's status. Initialization failures are reported
        through the status (and logged once) instead of raising.
        """
        with self._lock:
            existing = self._handles.get(branch.id)
            if existing is not None and not existing.status.is_terminal:
                return existing.status

            status = StreamStatusInfo(stream_id=branch.id)
            handle = StreamHandle(status=status)
            self._handles[branch.id] = handle

            try:
                detector = self._detector_factory(self.config.detection)
            except ModelUnavailableError as e:
                status.status = StreamStatus.ERROR
                status.error_message = str(e)
                logging.error(f"Detector unavailable for stream {branch.id}: {e}")
                return status

            try:
                source = self._source_factory(branch.camera_config(self.config.camera.to_dict()), branch.id)
            except SourceUnavailableError as e:
                status.status = StreamStatus.NO_CAMERA
                status.error_message = str(e)
                logging.error(f"Camera unavailable for stream {branch.id}: {e}")
                return status

            tracker = IdentityTracker(
                stream_id=branch.id,
                sink=self.store,
                match_distance_px=self.config.tracking.match_distance_px,
                inactivity_timeout_s=self.config.tracking.inactivity_timeout_s,
            )
            stream = StreamPipeline(
                stream_id=branch.id,
                detector=detector,
                tracker=tracker,
                score_threshold=self.config.detection.score_threshold,
                target_class=self.config.detection.target_class,
            )
            handle.engine = StreamEngine(source, stream, self._engine_config, status=status)
            handle.thread = threading.Thread(
                target=handle.engine.run, name=f"stream-{branch.id}", daemon=True
            )
            handle.thread.start()
            logging.info(f"Stream thread started: {branch.id}")
            return status

    def stop_stream(self, stream_id: str, timeout: float = 5.0) -> bool:
        """Stop one stream and wait for its thread. Returns False if unknown."""
        with self._lock:
            handle = self._handles.get(stream_id)
        if handle is None:
            return False
        if handle.engine is not None:
            handle.engine.stop()
        if handle.thread is not None:
            handle.thread.join(timeout=timeout)
            if handle.thread.is_alive():
                logging.warning(f"Stream thread {stream_id} did not stop within {timeout}s")
        return True

    def stop_all(self, timeout: float = 5.0) -> None:
        """Stop every stream and wait for the host loops to exit."""
        with self._lock:
            stream_ids = list(self._handles)
        for stream_id in stream_ids:
            self.stop_stream(stream_id, timeout=timeout)
        logging.info("All streams stopped")

    def get_status(self, stream_id: str) -> Optional[StreamStatusInfo]:
        with self._lock:
            handle = self._handles.get(stream_id)
        return handle.status if handle is not None else None

    def list_statuses(self) -> List[StreamStatusInfo]:
        with self._lock:
            return [h.status for h in self._handles.values()]

    def get_identities(self, stream_id: str) -> List[IdentityState]:
        """Tracked identities of a stream as of its last tick ([] if not running)."""
        with self._lock:
            handle = self._handles.get(stream_id)
        if handle is None or handle.stream is None:
            return []
        return list(handle.stream.identities)
