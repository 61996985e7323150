"""
Inference backends.

Detectors are black boxes behind `InferenceBackend.detect(frame)`.
"""

from __future__ import annotations

import logging

from models.config import DetectionConfig
from .backend import InferenceBackend, ModelUnavailableError


def create_detector_from_config(cfg: DetectionConfig) -> InferenceBackend:
    """
    Build the configured detector.

    Raises:
        ModelUnavailableError: Unknown backend or the model failed to load.
    """
    if cfg.backend == "yolo":
        from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend

        detector = UltralyticsCpuBackend(
            CpuYoloConfig(model=cfg.model, iou_threshold=float(cfg.iou_threshold))
        )
        logging.info(f"Detector ready: backend=yolo, model={cfg.model}")
        return detector
    raise ModelUnavailableError(f"Unknown detection backend: {cfg.backend}")


__all__ = ["InferenceBackend", "ModelUnavailableError", "create_detector_from_config"]
