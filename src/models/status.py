"""
Stream status models for per-camera pipeline monitoring.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class StreamStatus(str, Enum):
    """Per-stream pipeline status levels."""
    LOADING = "loading"
    RUNNING = "running"
    ERROR = "error"
    NO_CAMERA = "no_camera"
    STOPPED = "stopped"


@dataclass
class StreamStats:
    """
    Runtime counters for one stream's host loop.

    Attributes:
        frames_seen: Ticks handled (including skipped ones).
        detections_started: Detection calls submitted to the detector.
        detections_applied: Detection results applied to the tracker.
        skipped_busy: Ticks that skipped detection because one was in flight.
        skipped_same_frame: Ticks that skipped detection on an unchanged frame.
        detector_errors: Detection calls that raised.
        last_frame_ts: Unix timestamp of the last frame handled.
    """
    frames_seen: int = 0
    detections_started: int = 0
    detections_applied: int = 0
    skipped_busy: int = 0
    skipped_same_frame: int = 0
    detector_errors: int = 0
    last_frame_ts: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "frames_seen": self.frames_seen,
            "detections_started": self.detections_started,
            "detections_applied": self.detections_applied,
            "skipped_busy": self.skipped_busy,
            "skipped_same_frame": self.skipped_same_frame,
            "detector_errors": self.detector_errors,
            "last_frame_ts": self.last_frame_ts,
        }


@dataclass
class StreamStatusInfo:
    """
    Status snapshot of one stream, as exposed to the host and API.

    Attributes:
        stream_id: Branch/stream identifier.
        status: Current status level.
        error_message: Human-readable reason for ERROR/NO_CAMERA.
    """
    stream_id: str
    status: StreamStatus = StreamStatus.LOADING
    error_message: str = ""

    @property
    def is_terminal(self) -> bool:
        """True once the stream can no longer start processing."""
        return self.status in (StreamStatus.ERROR, StreamStatus.NO_CAMERA, StreamStatus.STOPPED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stream_id": self.stream_id,
            "status": self.status.value,
            "error_message": self.error_message,
        }
