"""
Host loop for one branch camera.

Reads frames from an ObservationSource and feeds them to the stream's
StreamPipeline until stopped or the source gives out.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from models.frame import FrameData
from models.occupancy_event import OccupancyKind
from models.status import StreamStatus, StreamStatusInfo
from observation import ObservationSource, SourceUnavailableError
from pipeline.stream import StreamPipeline, StreamTick


@dataclass
class EngineConfig:
    """
    Configuration for the stream engine.

    Attributes:
        max_consecutive_failures: Max frame read failures before stopping.
        stats_log_interval: Seconds between status log messages.
        retry_delay: Seconds to wait after a failed read.
    """
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    retry_delay: float = 0.5


@dataclass
class EngineStats:
    """Runtime statistics for the host loop."""
    frame_count: int = 0
    people_in: int = 0
    people_out: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


class StreamEngine:
    """
    Polling loop for a single stream.

    Example:
        source = OpenCVSource(OpenCVSourceConfig(stream_id="branch_01", device_id=0))
        engine = StreamEngine(source, stream, EngineConfig())
        engine.run()
    """

    def __init__(
        self,
        source: ObservationSource,
        stream: StreamPipeline,
        config: Optional[EngineConfig] = None,
        status: Optional[StreamStatusInfo] = None,
    ):
        self.source = source
        self.stream = stream
        self.config = config or EngineConfig()
        self.status = status or StreamStatusInfo(stream_id=stream.stream_id)
        self.stats = EngineStats()
        self._running = False
        self._stop_requested = threading.Event()
        self._callbacks: List[Callable[[FrameData, StreamTick], None]] = []

    @property
    def stream_id(self) -> str:
        return self.stream.stream_id

    @property
    def is_running(self) -> bool:
        return self._running

    def add_callback(self, callback: Callable[[FrameData, StreamTick], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame_data, tick) as arguments.
        """
        self._callbacks.append(callback)

    def run(self) -> None:
        """
        Run the polling loop.

        Opens the source, ticks the stream for every frame until stopped or
        exhausted, then closes the stream and the source. An engine runs once;
        a stop requested before run() makes it return without opening the source.
        """
        if self._stop_requested.is_set():
            self._cleanup()
            return

        self._running = True
        self.stats = EngineStats()

        try:
            try:
                self.source.open()
            except SourceUnavailableError as e:
                self.status.status = StreamStatus.NO_CAMERA
                self.status.error_message = str(e)
                logging.error(f"Camera unavailable for stream {self.stream_id}: {e}")
                return

            self.status.status = StreamStatus.RUNNING
            self.status.error_message = ""
            logging.info(f"Stream started: {self.stream_id}")

            while not self._stop_requested.is_set():
                frame_data = self.source.read()

                if frame_data is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures on {self.stream_id} "
                            f"({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed on {self.stream_id} ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    self._stop_requested.wait(self.config.retry_delay)
                    continue

                self.stats.consecutive_failures = 0
                tick = self._process_frame(frame_data)

                for callback in self._callbacks:
                    try:
                        callback(frame_data, tick)
                    except Exception as e:
                        logging.warning(f"Callback error: {e}")

                self._handle_periodic_tasks()

        except Exception as e:
            self.status.status = StreamStatus.ERROR
            self.status.error_message = str(e)
            logging.exception(f"Stream {self.stream_id} failed: {e}")
        finally:
            self._cleanup()

    def stop(self) -> None:
        """Signal the loop to stop after the current frame. Safe before run()."""
        self._stop_requested.set()

    def _process_frame(self, frame_data: FrameData) -> StreamTick:
        self.stats.frame_count += 1
        tick = self.stream.tick(frame_data)
        for event in tick.events:
            if event.kind == OccupancyKind.IN:
                self.stats.people_in += 1
            else:
                self.stats.people_out += 1
            logging.info(
                f"Person {event.identity_id} {event.kind.value} on {self.stream_id}"
            )
        return tick

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Stream stats: stream={self.stream_id}, frames={self.stats.frame_count}, "
                f"in={self.stats.people_in}, out={self.stats.people_out}, "
                f"tracked={len(self.stream.identities)}, detector={self.stream.stats.to_dict()}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        self._running = False
        self.stream.close()

        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")

        if self.status.status in (StreamStatus.LOADING, StreamStatus.RUNNING):
            self.status.status = StreamStatus.STOPPED
        logging.info(f"Stream stopped: {self.stream_id}")
