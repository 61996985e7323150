"""
ObservationSource interface for pluggable video sources.

A branch camera can be a USB webcam, an RTSP feed or a recorded video
file; the stream pipeline only sees FrameData coming out of read().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional

from models.frame import FrameData


class SourceUnavailableError(RuntimeError):
    """Raised by open() when the capture device cannot be used."""


@dataclass
class ObservationConfig:
    """
    Base configuration for observation sources.

    Attributes:
        stream_id: Branch/stream this source feeds (e.g. "branch_01").
        resolution: Target resolution as (width, height). None = source default.
        fps: Target frames per second. None = source default.
    """
    stream_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None


class ObservationSource(ABC):
    """
    Abstract base class for observation sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to acquire the capture device
        3. Call read() repeatedly to get frames
        4. Call close() to release the device

    Can also be used as a context manager:
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data)
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def stream_id(self) -> str:
        return self._config.stream_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames read since open."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the capture device.

        Raises:
            SourceUnavailableError: If the device cannot be opened.
        """
        pass

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """
        Read the next frame.

        Returns:
            FrameData, or None if no frame is available right now.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the capture device. Safe to call multiple times."""
        pass

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        """Yield frames until the source is exhausted. The source must be open."""
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        while True:
            frame_data = self.read()
            if frame_data is None:
                break
            yield frame_data
