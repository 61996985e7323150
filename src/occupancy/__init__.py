"""
Occupancy module.

The in-memory counting store fed by the identity trackers.
"""

from .store import OccupancyStore

__all__ = ["OccupancyStore"]
