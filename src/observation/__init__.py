"""
Observation layer for pluggable video sources.

Each branch camera is an ObservationSource returning FrameData objects.
"""

from __future__ import annotations

from models.config import CameraConfig
from .base import ObservationSource, ObservationConfig, SourceUnavailableError
from .opencv_source import OpenCVSource, OpenCVSourceConfig


def create_source_from_config(camera: CameraConfig, stream_id: str) -> ObservationSource:
    """
    Create the observation source for one branch camera.

    Raises:
        SourceUnavailableError: If the camera backend is not supported.
    """
    if camera.backend != "opencv":
        raise SourceUnavailableError(f"Unsupported camera backend: {camera.backend}")
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera, stream_id=stream_id))


__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "SourceUnavailableError",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
