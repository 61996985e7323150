"""
Box filter: reduce raw detector output to person detections with centers.

Detectors hand back loosely shaped results (dataclasses from our own
backends, or COCO-SSD style dicts with a `bbox` list). The filter accepts
both and silently drops anything it cannot interpret.
"""

from __future__ import annotations

import math
from typing import Any, Iterable, List, Mapping, Optional

from models.detection import BoundingBox, Detection, RawDetection

DEFAULT_SCORE_THRESHOLD = 0.5
DEFAULT_TARGET_CLASS = "person"


def _as_float(value: Any) -> Optional[float]:
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _parse_box(box: Any) -> Optional[BoundingBox]:
    """Parse a BoundingBox, a {x, y, width, height} mapping or an [x, y, w, h] sequence."""
    if box is None:
        return None
    if isinstance(box, BoundingBox):
        values = [box.x, box.y, box.width, box.height]
    elif isinstance(box, Mapping):
        values = [box.get("x"), box.get("y"), box.get("width"), box.get("height")]
    elif isinstance(box, (list, tuple)) and len(box) == 4:
        values = list(box)
    else:
        return None

    parsed = [_as_float(v) for v in values]
    if any(v is None for v in parsed):
        return None
    x, y, w, h = parsed
    if w < 0 or h < 0:
        return None
    return BoundingBox(x=x, y=y, width=w, height=h)


def parse_raw_detection(entry: Any) -> Optional[RawDetection]:
    """
    Normalize one detector entry into a RawDetection.

    Returns None for entries that are not recognizable at all. Entries with a
    missing or broken box come back with `box=None`.
    """
    if isinstance(entry, RawDetection):
        return RawDetection(
            class_label=entry.class_label,
            score=entry.score,
            box=_parse_box(entry.box),
        )
    if isinstance(entry, Mapping):
        label = entry.get("class_label", entry.get("class"))
        score = _as_float(entry.get("score"))
        if score is None:
            return None
        box = entry.get("box", entry.get("bbox"))
        return RawDetection(class_label=label, score=score, box=_parse_box(box))
    return None


def filter_detections(
    raw_detections: Optional[Iterable[Any]],
    score_threshold: float = DEFAULT_SCORE_THRESHOLD,
    target_class: str = DEFAULT_TARGET_CLASS,
) -> List[Detection]:
    """
    Keep confident detections of the target class and derive their centers.

    Args:
        raw_detections: Detector output for one frame (may be empty or None).
        score_threshold: Scores must be strictly greater than this to pass.
        target_class: Class label to keep.

    Returns:
        Filtered detections in input order. Never raises on malformed input.
    """
    if raw_detections is None:
        return []
    try:
        entries = iter(raw_detections)
    except TypeError:
        return []

    out: List[Detection] = []
    for entry in entries:
        raw = parse_raw_detection(entry)
        if raw is None or raw.box is None:
            continue
        if raw.class_label != target_class:
            continue
        score = _as_float(raw.score)
        if score is None or score <= score_threshold:
            continue
        out.append(Detection.from_box(raw.box, score=score, class_label=target_class))
    return out
