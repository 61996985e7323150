"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    An axis-aligned bounding box in frame pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_xyxy(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple."""
        return (int(self.x), int(self.y), int(self.x2), int(self.y2))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from (x1, y1, x2, y2) corner format."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class RawDetection:
    """
    Unfiltered output of a detector for one object.

    `box` may be None when the detector returned an entry without
    coordinates; such entries are dropped by the box filter.
    """
    class_label: Optional[str]
    score: float
    box: Optional[BoundingBox] = None


@dataclass(frozen=True)
class Detection:
    """
    A detection that passed the box filter, annotated with its center.

    Attributes:
        box: Bounding box in pixel coordinates.
        center_x: Horizontal center of the box.
        center_y: Vertical center of the box.
        score: Detector confidence (0-1).
        class_label: Detector class name (e.g. "person").
    """
    box: BoundingBox
    center_x: float
    center_y: float
    score: float = 1.0
    class_label: str = "person"

    @property
    def x(self) -> float:
        return self.box.x

    @property
    def y(self) -> float:
        return self.box.y

    @property
    def width(self) -> float:
        return self.box.width

    @property
    def height(self) -> float:
        return self.box.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.center_x, self.center_y)

    @classmethod
    def from_box(cls, box: BoundingBox, score: float = 1.0, class_label: str = "person") -> "Detection":
        """Create a Detection from a box, deriving the center point."""
        cx, cy = box.center
        return cls(box=box, center_x=cx, center_y=cy, score=score, class_label=class_label)

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        width: float,
        height: float,
        score: float = 1.0,
        class_label: str = "person",
    ) -> "Detection":
        """Create Detection from x, y, width, height."""
        return cls.from_box(BoundingBox(x=x, y=y, width=width, height=height), score, class_label)

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "center_x": self.center_x,
            "center_y": self.center_y,
        }
