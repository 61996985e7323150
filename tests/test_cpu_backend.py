"""
Tests for the Ultralytics CPU backend adapter.
"""

import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from inference import create_detector_from_config
from inference.backend import ModelUnavailableError
from inference.cpu_backend import CpuYoloConfig, UltralyticsCpuBackend, raw_detections_from_result
from models.config import DetectionConfig
from models.detection import BoundingBox
from tracking.filter import filter_detections


def fake_result(rows, names=None):
    """Ultralytics-like result: rows of (x1, y1, x2, y2, conf, cls)."""
    arr = np.array(rows, dtype=float).reshape(-1, 6)
    boxes = SimpleNamespace(xyxy=arr[:, :4], conf=arr[:, 4], cls=arr[:, 5])
    return SimpleNamespace(boxes=boxes, names=names or {0: "person", 2: "car"})


class TestResultConversion:
    """xyxy output to RawDetection."""

    def test_converts_boxes(self):
        result = fake_result([[10, 20, 50, 100, 0.9, 0], [0, 0, 5, 5, 0.7, 2]])

        raw = raw_detections_from_result(result)

        assert [r.class_label for r in raw] == ["person", "car"]
        assert raw[0].box == BoundingBox(10, 20, 40, 80)
        assert raw[0].score == pytest.approx(0.9)

    def test_overrides_and_unknown_ids(self):
        result = fake_result([[0, 0, 1, 1, 0.9, 5], [0, 0, 1, 1, 0.9, 2]])

        raw = raw_detections_from_result(result, class_name_overrides={2: "vehicle"})

        assert [r.class_label for r in raw] == ["5", "vehicle"]

    def test_no_boxes(self):
        assert raw_detections_from_result(SimpleNamespace(boxes=None, names={})) == []

    def test_feeds_box_filter(self):
        result = fake_result([[10, 20, 50, 100, 0.9, 0], [0, 0, 5, 5, 0.95, 2], [0, 0, 9, 9, 0.3, 0]])

        detections = filter_detections(raw_detections_from_result(result))

        assert len(detections) == 1
        assert detections[0].center == (30, 60)


class TestBackend:
    """Model loading and predict wiring with a stubbed ultralytics module."""

    def _ultralytics(self, model):
        module = MagicMock()
        module.YOLO.return_value = model
        return module

    def test_detect(self):
        model = MagicMock()
        model.predict.return_value = [fake_result([[0, 0, 10, 10, 0.8, 0]])]
        with patch.dict(sys.modules, {"ultralytics": self._ultralytics(model)}):
            backend = UltralyticsCpuBackend(CpuYoloConfig(model="yolov8n.pt", iou_threshold=0.5))

        raw = backend.detect(np.zeros((10, 10, 3), dtype=np.uint8))

        assert len(raw) == 1
        kwargs = model.predict.call_args.kwargs
        assert kwargs["iou"] == 0.5
        assert kwargs["verbose"] is False

    def test_empty_prediction(self):
        model = MagicMock()
        model.predict.return_value = []
        with patch.dict(sys.modules, {"ultralytics": self._ultralytics(model)}):
            backend = UltralyticsCpuBackend(CpuYoloConfig(model="yolov8n.pt"))

        assert backend.detect(np.zeros((4, 4, 3), dtype=np.uint8)) == []

    def test_load_failure(self):
        module = MagicMock()
        module.YOLO.side_effect = FileNotFoundError("missing.pt")
        with patch.dict(sys.modules, {"ultralytics": module}):
            with pytest.raises(ModelUnavailableError, match="missing.pt"):
                UltralyticsCpuBackend(CpuYoloConfig(model="missing.pt"))


class TestDetectorFactory:
    def test_unknown_backend(self):
        with pytest.raises(ModelUnavailableError):
            create_detector_from_config(DetectionConfig(backend="hailo"))

    def test_yolo_backend(self):
        model = MagicMock()
        module = MagicMock()
        module.YOLO.return_value = model
        with patch.dict(sys.modules, {"ultralytics": module}):
            detector = create_detector_from_config(DetectionConfig(model="yolov8s.pt"))

        assert isinstance(detector, UltralyticsCpuBackend)
        module.YOLO.assert_called_once_with("yolov8s.pt")
