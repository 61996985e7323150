"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from datetime import datetime

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.branch import Branch  # noqa: E402
from models.detection import Detection  # noqa: E402
from models.identity import Demographics  # noqa: E402
from occupancy.store import OccupancyStore  # noqa: E402
from tracking.attributes import AttributeEstimator  # noqa: E402


class StubEstimator(AttributeEstimator):
    """Deterministic demographics: alternates female/male, age 30."""

    def __init__(self):
        self.calls = 0

    def estimate(self, detection):
        self.calls += 1
        gender = "female" if self.calls % 2 else "male"
        return Demographics(gender=gender, age=30)


class RecordingSink:
    """Occupancy sink that remembers every call."""

    def __init__(self):
        self.calls = []

    def record_event(self, stream_id, kind, **details):
        self.calls.append((stream_id, kind, details))

    @property
    def kinds(self):
        return [kind for _, kind, _ in self.calls]


def person_at(cx, cy, size=20.0, score=0.9):
    """Person detection centered on (cx, cy)."""
    return Detection.from_xywh(cx - size / 2, cy - size / 2, size, size, score=score)


@pytest.fixture
def stub_estimator():
    return StubEstimator()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def fixed_now():
    """Mutable wall clock for the occupancy store."""
    class Clock:
        def __init__(self):
            self.value = datetime(2024, 5, 6, 14, 30)

        def __call__(self):
            return self.value

    return Clock()


@pytest.fixture
def store(fixed_now):
    return OccupancyStore(
        [
            Branch(id="branch_01", name="Centro Histórico", location="Ciudad de México, MX"),
            Branch(id="branch_02", name="Westside Mall", location="Los Angeles, CA"),
            Branch(id="branch_03", name="Plaza del Norte", location="Madrid, ES", camera_status="offline"),
        ],
        now_fn=fixed_now,
    )


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
branches:
  - id: branch_01
    name: Centro
    camera:
      device_id: 0
  - id: branch_02
    name: Westside

camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

detection:
  backend: "yolo"
  model: "yolov8n.pt"
  score_threshold: 0.5

tracking:
  match_distance_px: 50
  inactivity_timeout_s: 2.0

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "branches": [
            {"id": "branch_01", "name": "Centro", "camera_status": "online", "camera": {"device_id": 0}},
            {"id": "branch_02", "name": "Westside", "camera_status": "offline"},
        ],
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detection": {
            "backend": "yolo",
            "model": "yolov8n.pt",
            "score_threshold": 0.5,
            "target_class": "person",
        },
        "tracking": {
            "match_distance_px": 50,
            "inactivity_timeout_s": 2.0,
        },
        "web": {"host": "127.0.0.1", "port": 5000},
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
