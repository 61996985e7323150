"""
In-memory occupancy store for branch counters.

Receives "in"/"out" events from the per-stream trackers and keeps:
- current occupancy per branch (floored at zero)
- running daily in/out totals, average dwell and gender ratio
- a fixed 24-entry hourly aggregate for the current day

Counters live only in memory and reset at local midnight (current
occupancy is carried over).
"""

from __future__ import annotations

import copy
import logging
import threading
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Union

from models.branch import (
    CAMERA_OFFLINE,
    CAMERA_ONLINE,
    HOURS_PER_DAY,
    Branch,
    BranchStats,
    HourlyStat,
)
from models.config import Config
from models.identity import Demographics
from models.occupancy_event import OccupancyKind


class _DailyTally:
    """Per-branch accumulators behind the published averages and ratios."""

    def __init__(self):
        self.dwell_sum = 0.0
        self.dwell_count = 0
        self.hourly_dwell_sum = [0.0] * HOURS_PER_DAY
        self.hourly_dwell_count = [0] * HOURS_PER_DAY
        self.genders: Dict[str, int] = {"male": 0, "female": 0}


class OccupancyStore:
    """
    Counting store shared by all streams and the web API.

    record_event() is called synchronously from tracker host loops while the
    web thread reads; a single lock guards all state and is held only for
    constant-time updates.
    """

    def __init__(
        self,
        branches: Iterable[Branch] = (),
        now_fn: Callable[[], datetime] = datetime.now,
    ):
        self._now_fn = now_fn
        self._lock = threading.Lock()
        self._branches: Dict[str, Branch] = {}
        self._hourly: Dict[str, List[HourlyStat]] = {}
        self._tallies: Dict[str, _DailyTally] = {}
        self._day: date = now_fn().date()

        for branch in branches:
            self.add_branch(branch)

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> "OccupancyStore":
        """Create a store with one zeroed branch per configured branch."""
        branches = [
            Branch(id=b.id, name=b.name, location=b.location, camera_status=b.camera_status)
            for b in config.branches
        ]
        return cls(branches, **kwargs)

    def add_branch(self, branch: Branch) -> None:
        with self._lock:
            self._branches[branch.id] = branch
            self._hourly[branch.id] = [HourlyStat(hour=h) for h in range(HOURS_PER_DAY)]
            self._tallies[branch.id] = _DailyTally()
        logging.info(f"Occupancy store tracking branch {branch.id} ({branch.name})")

    # -------------------------------------------------------------------------
    # Write Operations
    # -------------------------------------------------------------------------

    def record_event(
        self,
        stream_id: str,
        kind: Union[str, OccupancyKind],
        dwell_seconds: Optional[float] = None,
        attributes: Optional[Demographics] = None,
        timestamp: Optional[datetime] = None,
    ) -> None:
        """
        Apply one occupancy event to a branch's counters.

        Args:
            stream_id: Branch/stream id.
            kind: "in" or "out".
            dwell_seconds: Dwell of the retired identity ("out" only).
            attributes: Demographics of the identity ("in" feeds gender ratio).
            timestamp: Wall-clock time of the event (default: now).

        Raises:
            ValueError: If kind is not "in" or "out".
        """
        kind = OccupancyKind(kind)
        when = timestamp or self._now_fn()

        with self._lock:
            self._roll_day(when.date())

            branch = self._branches.get(stream_id)
            if branch is None:
                logging.warning(f"Occupancy event for unknown stream {stream_id} ignored")
                return

            stats = branch.stats
            if when.date() < self._day:
                # Occupancy still moves; the day's totals belong to a closed day
                if kind == OccupancyKind.IN:
                    stats.current_people += 1
                else:
                    stats.current_people = max(0, stats.current_people - 1)
                logging.warning(
                    f"Late occupancy {kind.value} for {stream_id} dated {when.date()} "
                    f"left out of {self._day} totals"
                )
                return

            hourly = self._hourly[stream_id][when.hour]
            tally = self._tallies[stream_id]

            if kind == OccupancyKind.IN:
                stats.current_people += 1
                stats.total_in_today += 1
                hourly.ins += 1
                if attributes is not None and attributes.gender in tally.genders:
                    tally.genders[attributes.gender] += 1
                    stats.gender_ratio = self._ratio(tally.genders)
            else:
                stats.current_people = max(0, stats.current_people - 1)
                stats.total_out_today += 1
                hourly.outs += 1
                if dwell_seconds is not None:
                    tally.dwell_sum += dwell_seconds
                    tally.dwell_count += 1
                    tally.hourly_dwell_sum[when.hour] += dwell_seconds
                    tally.hourly_dwell_count[when.hour] += 1
                    stats.avg_dwell_seconds = tally.dwell_sum / tally.dwell_count
                    hourly.avg_dwell_seconds = (
                        tally.hourly_dwell_sum[when.hour] / tally.hourly_dwell_count[when.hour]
                    )

        logging.debug(
            f"Occupancy {kind.value}: branch={stream_id}, current={stats.current_people}"
        )

    def set_camera_status(self, branch_id: str, camera_status: str) -> bool:
        """Set a branch camera online/offline. Returns False for unknown branches."""
        if camera_status not in (CAMERA_ONLINE, CAMERA_OFFLINE):
            raise ValueError(f"camera_status must be one of: {CAMERA_ONLINE}, {CAMERA_OFFLINE}")
        with self._lock:
            branch = self._branches.get(branch_id)
            if branch is None:
                return False
            branch.camera_status = camera_status
        logging.info(f"Branch {branch_id} camera set {camera_status}")
        return True

    def toggle_camera_status(self, branch_id: str) -> Optional[str]:
        """Flip a branch camera between online and offline; returns the new status."""
        with self._lock:
            branch = self._branches.get(branch_id)
            if branch is None:
                return None
            branch.camera_status = CAMERA_OFFLINE if branch.is_online else CAMERA_ONLINE
            new_status = branch.camera_status
        logging.info(f"Branch {branch_id} camera toggled {new_status}")
        return new_status

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    def list_branches(self) -> List[Branch]:
        """Copies of all branches in configuration order."""
        with self._lock:
            self._roll_day(self._now_fn().date())
            return [copy.deepcopy(b) for b in self._branches.values()]

    def get_branch(self, branch_id: str) -> Optional[Branch]:
        with self._lock:
            self._roll_day(self._now_fn().date())
            branch = self._branches.get(branch_id)
            return copy.deepcopy(branch) if branch is not None else None

    def get_hourly_stats(self, branch_id: str) -> List[HourlyStat]:
        """
        Hourly aggregate for the current day.

        Returns:
            24 entries (hour 0-23) for a known branch, empty list otherwise.
        """
        with self._lock:
            self._roll_day(self._now_fn().date())
            hourly = self._hourly.get(branch_id)
            if hourly is None:
                return []
            return [copy.copy(h) for h in hourly]

    def global_total_people(self) -> int:
        """Current occupancy summed over branches whose camera is online."""
        with self._lock:
            return sum(b.stats.current_people for b in self._branches.values() if b.is_online)

    def __contains__(self, branch_id: str) -> bool:
        return branch_id in self._branches

    # -------------------------------------------------------------------------
    # Internals (caller holds the lock)
    # -------------------------------------------------------------------------

    def _roll_day(self, today: date) -> None:
        # Late events never roll the day back
        if today <= self._day:
            return
        logging.info(f"Occupancy day rollover: {self._day} -> {today}")
        self._day = today
        for branch_id, branch in self._branches.items():
            current = branch.stats.current_people
            branch.stats = BranchStats(current_people=current)
            self._hourly[branch_id] = [HourlyStat(hour=h) for h in range(HOURS_PER_DAY)]
            self._tallies[branch_id] = _DailyTally()

    @staticmethod
    def _ratio(genders: Dict[str, int]) -> Dict[str, float]:
        total = sum(genders.values())
        if total == 0:
            return {"male": 0.0, "female": 0.0}
        return {g: n / total for g, n in genders.items()}
