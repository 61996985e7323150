"""
Branch models for store locations and their occupancy statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

CAMERA_ONLINE = "online"
CAMERA_OFFLINE = "offline"

HOURS_PER_DAY = 24


@dataclass
class HourlyStat:
    """
    Aggregated occupancy events for one hour of the current day.

    Attributes:
        hour: Hour index 0-23 (local time).
        ins: Number of "in" events during the hour.
        outs: Number of "out" events during the hour.
        avg_dwell_seconds: Mean dwell of identities retired during the hour.
    """
    hour: int
    ins: int = 0
    outs: int = 0
    avg_dwell_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hour": self.hour,
            "ins": self.ins,
            "outs": self.outs,
            "avg_dwell_seconds": self.avg_dwell_seconds,
        }


@dataclass
class BranchStats:
    """Live counters for one branch."""
    current_people: int = 0
    total_in_today: int = 0
    total_out_today: int = 0
    avg_dwell_seconds: float = 0.0
    gender_ratio: Dict[str, float] = field(default_factory=lambda: {"male": 0.0, "female": 0.0})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_people": self.current_people,
            "total_in_today": self.total_in_today,
            "total_out_today": self.total_out_today,
            "avg_dwell_seconds": self.avg_dwell_seconds,
            "gender_ratio": dict(self.gender_ratio),
        }


@dataclass
class Branch:
    """
    A store location with one camera stream.

    The branch id doubles as the stream id used by the tracker.
    """
    id: str
    name: str
    location: str = ""
    camera_status: str = CAMERA_ONLINE
    stats: BranchStats = field(default_factory=BranchStats)

    @property
    def is_online(self) -> bool:
        return self.camera_status == CAMERA_ONLINE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "camera_status": self.camera_status,
            "stats": self.stats.to_dict(),
        }
