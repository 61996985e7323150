"""
Typed models for the occupancy monitor application.

Plain dataclasses shared by the tracker, the occupancy store, the stream
pipeline and the web API.
"""

from .frame import FrameData
from .detection import Detection, RawDetection, BoundingBox
from .identity import Demographics, TrackedIdentity, IdentityState
from .occupancy_event import OccupancyEvent, OccupancyKind
from .branch import Branch, BranchStats, HourlyStat
from .status import StreamStatus, StreamStats, StreamStatusInfo
from .config import (
    Config,
    BranchConfig,
    CameraConfig,
    DetectionConfig,
    TrackingConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "RawDetection",
    "BoundingBox",
    # Tracking
    "Demographics",
    "TrackedIdentity",
    "IdentityState",
    # Occupancy
    "OccupancyEvent",
    "OccupancyKind",
    "Branch",
    "BranchStats",
    "HourlyStat",
    # Status
    "StreamStatus",
    "StreamStats",
    "StreamStatusInfo",
    # Config
    "Config",
    "BranchConfig",
    "CameraConfig",
    "DetectionConfig",
    "TrackingConfig",
    "WebConfig",
]
