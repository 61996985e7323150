"""
Tracking module.

Box filtering, attribute estimation and the identity tracker that turns
per-frame person detections into occupancy events.
"""

from .filter import filter_detections, parse_raw_detection
from .attributes import AttributeEstimator, RandomAttributeEstimator
from .tracker import IdentityTracker, OccupancySink

__all__ = [
    "filter_detections",
    "parse_raw_detection",
    "AttributeEstimator",
    "RandomAttributeEstimator",
    "IdentityTracker",
    "OccupancySink",
]
