"""
Pipeline module for the occupancy monitor.

The pipeline orchestrates one stream's processing flow:
- Frame acquisition from observation sources
- Detection on a background worker
- Box filtering and identity tracking on the host loop
"""

from .engine import StreamEngine, EngineConfig
from .stream import StreamPipeline, StreamState, StreamTick

__all__ = [
    "StreamEngine",
    "EngineConfig",
    "StreamPipeline",
    "StreamState",
    "StreamTick",
]
