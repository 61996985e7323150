"""
CPU inference backend.

Uses Ultralytics if installed. The model is loaded once per backend; each
stream owns its backend and calls it from one worker at a time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from models.detection import BoundingBox, RawDetection
from .backend import ModelUnavailableError


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    iou_threshold: float = 0.45
    # Detector-side floor; the box filter applies the real threshold.
    min_confidence: float = 0.1
    class_name_overrides: Optional[Dict[int, str]] = None


class UltralyticsCpuBackend:
    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ModelUnavailableError(
                "Ultralytics is not installed. Install with `pip install ultralytics`."
            ) from e

        try:
            self._model = YOLO(cfg.model)
        except Exception as e:
            raise ModelUnavailableError(f"Failed to load detector model {cfg.model}: {e}") from e

    def detect(self, frame: np.ndarray) -> List[RawDetection]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.min_confidence,
            iou=self.cfg.iou_threshold,
            verbose=False,
        )
        if not results:
            return []
        return raw_detections_from_result(results[0], self.cfg.class_name_overrides)


def raw_detections_from_result(result, class_name_overrides: Optional[Dict[int, str]] = None) -> List[RawDetection]:
    """Convert one Ultralytics result (xyxy boxes) into RawDetections."""
    names = getattr(result, "names", None) or {}
    boxes = getattr(result, "boxes", None)
    if boxes is None:
        return []

    xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
    conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
    cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

    out: List[RawDetection] = []
    for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
        class_id = int(k)
        class_label = (
            (class_name_overrides or {}).get(class_id)
            or names.get(class_id)
            or str(class_id)
        )
        out.append(
            RawDetection(
                class_label=class_label,
                score=float(c),
                box=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
            )
        )
    return out
