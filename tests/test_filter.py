"""
Tests for the box filter.
"""

import numpy as np

from models.detection import BoundingBox, RawDetection
from tracking.filter import filter_detections, parse_raw_detection


def raw(label="person", score=0.9, box=(10, 20, 30, 40)):
    return RawDetection(class_label=label, score=score, box=BoundingBox(*box) if box else None)


class TestFilterDetections:
    """Score/class filtering and center derivation."""

    def test_empty_input(self):
        assert filter_detections([]) == []
        assert filter_detections(None) == []

    def test_center_is_box_middle(self):
        (det,) = filter_detections([raw(box=(10, 20, 30, 40))])

        assert (det.center_x, det.center_y) == (25, 40)
        assert (det.x, det.y, det.width, det.height) == (10, 20, 30, 40)
        assert det.score == 0.9

    def test_threshold_is_strict(self):
        out = filter_detections([raw(score=0.5), raw(score=0.5001)])

        assert [d.score for d in out] == [0.5001]

    def test_other_classes_dropped(self):
        out = filter_detections([raw(label="car"), raw(label="Person"), raw(label=None), raw()])

        assert len(out) == 1

    def test_custom_threshold_and_class(self):
        out = filter_detections([raw(label="dog", score=0.3)], score_threshold=0.2, target_class="dog")

        assert len(out) == 1
        assert out[0].class_label == "dog"

    def test_order_preserved(self):
        out = filter_detections([raw(box=(0, 0, 2, 2)), raw(box=(100, 0, 2, 2))])

        assert [d.center_x for d in out] == [1, 101]


class TestMalformedEntries:
    """Malformed entries are dropped silently."""

    def test_missing_box(self):
        assert filter_detections([raw(box=None)]) == []

    def test_garbage_entries(self):
        entries = [
            None,
            42,
            "person",
            {"class": "person"},
            {"class": "person", "score": "high", "bbox": [0, 0, 1, 1]},
            {"class": "person", "score": 0.9, "bbox": [0, 0, 1]},
            {"class": "person", "score": 0.9, "bbox": [0, 0, "w", 1]},
            {"class": "person", "score": 0.9, "bbox": [0, 0, -5, 1]},
            {"class": "person", "score": float("nan"), "bbox": [0, 0, 1, 1]},
            {"class_label": "person", "score": 0.9, "box": {"x": 0, "y": 0}},
        ]

        assert filter_detections(entries) == []

    def test_good_entry_survives_bad_neighbours(self):
        entries = [None, {"class": "person", "score": 0.8, "bbox": [0, 0, 10, 10]}, {"bbox": None}]

        out = filter_detections(entries)

        assert len(out) == 1
        assert out[0].center == (5, 5)

    def test_array_output_dropped(self):
        rows = np.array([[0, 0, 10, 10, 0.9, 0], [5, 5, 20, 20, 0.8, 0]])

        assert filter_detections(rows) == []
        assert filter_detections(np.empty((0, 6))) == []

    def test_non_iterable_output(self):
        assert filter_detections(42) == []


class TestParseRawDetection:
    """Accepted input shapes."""

    def test_coco_ssd_style_dict(self):
        parsed = parse_raw_detection({"class": "person", "score": 0.7, "bbox": [1, 2, 3, 4]})

        assert parsed == RawDetection("person", 0.7, BoundingBox(1, 2, 3, 4))

    def test_mapping_box(self):
        parsed = parse_raw_detection(
            {"class_label": "person", "score": "0.6", "box": {"x": 1, "y": 2, "width": 3, "height": 4}}
        )

        assert parsed.score == 0.6
        assert parsed.box == BoundingBox(1, 2, 3, 4)

    def test_unparseable_box_becomes_none(self):
        parsed = parse_raw_detection({"class": "person", "score": 0.9, "bbox": "nope"})

        assert parsed is not None
        assert parsed.box is None

    def test_unknown_type(self):
        assert parse_raw_detection(object()) is None
