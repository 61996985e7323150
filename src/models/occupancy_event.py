"""
OccupancyEvent model for identity creation/retirement notifications.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .identity import Demographics


class OccupancyKind(str, Enum):
    """Occupancy event kinds."""
    IN = "in"
    OUT = "out"


@dataclass(frozen=True)
class OccupancyEvent:
    """
    An occupancy event emitted when an identity is created or retired.

    Attributes:
        stream_id: Branch/stream that owns the tracker.
        kind: IN on creation, OUT on retirement.
        identity_id: ID of the identity that triggered the event.
        timestamp: Monotonic clock reading of the frame that emitted it.
        dwell_seconds: Time between creation and last match (OUT only).
        attributes: Demographics of the identity.
    """
    stream_id: str
    kind: OccupancyKind
    identity_id: int
    timestamp: float
    dwell_seconds: Optional[float] = None
    attributes: Optional[Demographics] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "stream_id": self.stream_id,
            "kind": self.kind.value,
            "identity_id": self.identity_id,
            "timestamp": self.timestamp,
            "dwell_seconds": self.dwell_seconds,
            "gender": self.attributes.gender if self.attributes else None,
            "age": self.attributes.age if self.attributes else None,
        }
