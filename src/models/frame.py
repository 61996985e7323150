"""
FrameData model for captured video frames.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    Metadata and payload for a captured video frame.

    Attributes:
        frame: The raw frame data as a numpy array (BGR format).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when frame was captured.
        frame_index: Sequential frame number since open.
        stream_id: Identifier of the stream the frame belongs to.
        playback_ms: Playback position reported by the source, if any.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    stream_id: Optional[str] = None
    playback_ms: Optional[float] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        stream_id: Optional[str] = None,
        playback_ms: Optional[float] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            stream_id=stream_id,
            playback_ms=playback_ms,
        )

    @property
    def frame_key(self) -> float:
        """
        Value used to decide whether this frame was already processed.

        Playback position when the source reports one, capture time otherwise.
        """
        if self.playback_ms is not None:
            return self.playback_ms
        return self.timestamp

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
