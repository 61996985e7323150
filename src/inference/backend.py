"""
Inference backend interface.

Backends return raw, unfiltered detections in the original frame coordinate
system. Class/score filtering is the box filter's job.
"""

from __future__ import annotations

from typing import List, Protocol

import numpy as np

from models.detection import RawDetection


class ModelUnavailableError(RuntimeError):
    """Raised when a detector cannot be initialized."""


class InferenceBackend(Protocol):
    def detect(self, frame: np.ndarray) -> List[RawDetection]:
        ...
