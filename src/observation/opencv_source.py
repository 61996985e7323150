"""
OpenCV-based observation source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- RTSP/IP cameras (device_id as str URL)
- Video files (device_id as file path)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Union
from urllib.parse import urlparse, urlunparse

import cv2
import numpy as np

from models.config import CameraConfig
from models.frame import FrameData
from .base import ObservationConfig, ObservationSource, SourceUnavailableError


def describe_device(device_id: Union[int, str]) -> str:
    """Printable device id with any URL credentials masked."""
    if not isinstance(device_id, str) or "@" not in device_id:
        return str(device_id)
    parsed = urlparse(device_id)
    netloc = f"***@{parsed.hostname}"
    if parsed.port:
        netloc += f":{parsed.port}"
    return urlunparse((parsed.scheme, netloc, parsed.path, parsed.params, parsed.query, parsed.fragment))


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV-based observation sources.

    Attributes:
        device_id: Camera index (int), RTSP URL (str), or file path (str).
        max_retries: Attempts to open the device before giving up.
        swap_rb: Swap R/B channels.
        rotate: Rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Flip frame horizontally.
        flip_vertical: Flip frame vertically.
        realtime: Play video files at recorded speed instead of as fast as
            they decode.
    """
    device_id: Union[int, str] = 0
    max_retries: int = 3
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    realtime: bool = True

    @classmethod
    def from_camera_config(cls, camera: CameraConfig, stream_id: str) -> "OpenCVSourceConfig":
        """Adapter: Create OpenCVSourceConfig from a branch's camera settings."""
        return cls(
            stream_id=stream_id,
            resolution=tuple(camera.resolution) if camera.resolution else None,
            fps=camera.fps,
            device_id=camera.device_id,
            swap_rb=camera.swap_rb,
            rotate=camera.rotate,
            flip_horizontal=camera.flip_horizontal,
            flip_vertical=camera.flip_vertical,
            realtime=camera.realtime,
        )


class OpenCVSource(ObservationSource):
    """
    Wraps cv2.VideoCapture to provide frames as FrameData objects.

    For video files the playback position is reported in FrameData.playback_ms
    so the stream pipeline can tell repeated frames apart, and reads are held
    back to the file's timeline so inactivity and dwell are measured in
    recorded time.
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._playback_origin: Optional[float] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_rtsp(self) -> bool:
        return isinstance(self.device_id, str) and self.device_id.startswith(("rtsp://", "rtsps://"))

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and not self.is_rtsp and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return

        cfg = self._opencv_config
        for attempt in range(1, cfg.max_retries + 1):
            self._cap = cv2.VideoCapture(self.device_id)
            if self._cap.isOpened():
                break
            self._cap.release()
            self._cap = None
            if attempt < cfg.max_retries:
                wait_time = min(2 ** attempt, 10)
                logging.warning(
                    f"Failed to open device {describe_device(self.device_id)} "
                    f"(attempt {attempt}/{cfg.max_retries}), retrying in {wait_time}s"
                )
                time.sleep(wait_time)

        if self._cap is None:
            raise SourceUnavailableError(
                f"Failed to open device {describe_device(self.device_id)} after "
                f"{cfg.max_retries} attempts"
            )

        # Capture size/fps only apply to local cameras
        if isinstance(self.device_id, int) and cfg.resolution:
            w, h = cfg.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if cfg.fps:
                self._cap.set(cv2.CAP_PROP_FPS, cfg.fps)

        self._is_open = True
        self._frame_index = 0
        self._playback_origin = None
        logging.info(
            f"OpenCVSource opened: stream={self.stream_id}, "
            f"device={describe_device(self.device_id)}, resolution={cfg.resolution}"
        )

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                logging.info(f"End of video file reached: stream={self.stream_id}")
            return None

        frame = self._apply_transforms(frame)
        playback_ms = None
        if self.is_file:
            playback_ms = self._cap.get(cv2.CAP_PROP_POS_MSEC)
            if self._opencv_config.realtime:
                self._pace(playback_ms)
        self._frame_index += 1

        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            stream_id=self.stream_id,
            playback_ms=playback_ms,
        )

    def _pace(self, playback_ms: float) -> None:
        """Sleep until the wall clock catches up with the file position."""
        now = time.monotonic()
        if self._playback_origin is None:
            self._playback_origin = now - playback_ms / 1000.0
            return
        delay = self._playback_origin + playback_ms / 1000.0 - now
        if delay > 0:
            time.sleep(delay)

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        """Apply configured image transforms (rotate, flip, swap_rb)."""
        cfg = self._opencv_config

        if cfg.rotate == 90:
            frame = cv2.rotate(frame, cv2.ROTATE_90_CLOCKWISE)
        elif cfg.rotate == 180:
            frame = cv2.rotate(frame, cv2.ROTATE_180)
        elif cfg.rotate == 270:
            frame = cv2.rotate(frame, cv2.ROTATE_90_COUNTERCLOCKWISE)

        if cfg.flip_horizontal or cfg.flip_vertical:
            flip_code = -1 if (cfg.flip_horizontal and cfg.flip_vertical) else (1 if cfg.flip_horizontal else 0)
            frame = cv2.flip(frame, flip_code)

        if cfg.swap_rb:
            frame = frame[..., ::-1].copy()

        return frame

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"OpenCVSource closed: stream={self.stream_id}")
