"""
Identity models for person tracking state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .detection import Detection

GENDER_MALE = "male"
GENDER_FEMALE = "female"


@dataclass(frozen=True)
class Demographics:
    """
    Demographic labels attached to an identity at creation time.

    These are illustrative values from an attribute estimator, not
    something the detector measures.
    """
    gender: str
    age: int


@dataclass
class TrackedIdentity:
    """
    One continuously-present person across video frames.

    Attributes:
        identity_id: Unique, strictly increasing identifier (never reused).
        box: Most recent detection matched to this identity.
        attributes: Demographics assigned once at creation.
        created_at: Monotonic clock reading (seconds) at creation.
        last_seen_at: Monotonic clock reading of the last matched frame.
    """
    identity_id: int
    box: Detection
    attributes: Demographics
    created_at: float
    last_seen_at: float

    @property
    def center(self) -> Tuple[float, float]:
        return self.box.center

    def dwell_seconds(self, now: float) -> float:
        """Seconds since this identity was created."""
        return max(0.0, now - self.created_at)

    def idle_seconds(self, now: float) -> float:
        """Seconds since this identity was last matched."""
        return now - self.last_seen_at


@dataclass(frozen=True)
class IdentityState:
    """
    Immutable snapshot of a tracked identity (for serialization/API).
    """
    identity_id: int
    box: Tuple[float, float, float, float]
    center: Tuple[float, float]
    gender: str
    age: int
    created_at: float
    last_seen_at: float
    dwell_seconds: float

    @classmethod
    def from_identity(cls, identity: TrackedIdentity, now: float) -> "IdentityState":
        """Create immutable snapshot from a TrackedIdentity."""
        return cls(
            identity_id=identity.identity_id,
            box=identity.box.box.as_tuple(),
            center=identity.center,
            gender=identity.attributes.gender,
            age=identity.attributes.age,
            created_at=identity.created_at,
            last_seen_at=identity.last_seen_at,
            dwell_seconds=identity.dwell_seconds(now),
        )

    def to_dict(self) -> Dict[str, Any]:
        x, y, w, h = self.box
        return {
            "id": self.identity_id,
            "box": {
                "x": x,
                "y": y,
                "width": w,
                "height": h,
                "center_x": self.center[0],
                "center_y": self.center[1],
            },
            "gender": self.gender,
            "age": self.age,
            "created_at": self.created_at,
            "last_seen_at": self.last_seen_at,
            "dwell_seconds": round(self.dwell_seconds, 3),
        }
