"""
Tests for the StreamEngine host loop.
"""

import threading
from unittest.mock import MagicMock

import numpy as np

from models.frame import FrameData
from models.occupancy_event import OccupancyEvent, OccupancyKind
from models.status import StreamStatus
from observation.base import ObservationConfig, ObservationSource, SourceUnavailableError
from pipeline.engine import EngineConfig, StreamEngine
from pipeline.stream import StreamTick


class ScriptedSource(ObservationSource):
    """Returns a fixed number of frames, then read failures."""

    def __init__(self, frames=3, fail_open=False):
        super().__init__(ObservationConfig(stream_id="branch_01"))
        self.frames = frames
        self.fail_open = fail_open
        self.closed = False

    def open(self):
        if self.fail_open:
            raise SourceUnavailableError("no device 0")
        self._is_open = True

    def read(self):
        if self._frame_index >= self.frames:
            return None
        self._frame_index += 1
        return FrameData.from_numpy(
            np.zeros((4, 4, 3), dtype=np.uint8),
            timestamp=float(self._frame_index),
            frame_index=self._frame_index,
            stream_id=self.stream_id,
        )

    def close(self):
        self.closed = True
        self._is_open = False


def make_stream():
    stream = MagicMock()
    stream.stream_id = "branch_01"
    stream.identities = []
    stream.tick.side_effect = lambda frame_data: StreamTick(stream_id="branch_01")
    return stream


def fast_config(**kwargs):
    return EngineConfig(max_consecutive_failures=2, retry_delay=0.0, **kwargs)


class TestEngineLoop:
    """Frame loop behavior."""

    def test_ticks_every_frame_then_stops_on_failures(self):
        source = ScriptedSource(frames=3)
        stream = make_stream()
        engine = StreamEngine(source, stream, fast_config())

        engine.run()

        assert stream.tick.call_count == 3
        assert engine.stats.frame_count == 3
        assert source.closed
        stream.close.assert_called_once()
        assert engine.status.status == StreamStatus.STOPPED

    def test_status_running_during_loop(self):
        source = ScriptedSource(frames=1)
        stream = make_stream()
        engine = StreamEngine(source, stream, fast_config())
        seen = []
        engine.add_callback(lambda frame_data, tick: seen.append(engine.status.status))

        engine.run()

        assert seen == [StreamStatus.RUNNING]

    def test_stop_from_callback(self):
        source = ScriptedSource(frames=100)
        stream = make_stream()
        engine = StreamEngine(source, stream, fast_config())
        engine.add_callback(lambda frame_data, tick: engine.stop())

        engine.run()

        assert stream.tick.call_count == 1
        assert not engine.is_running

    def test_callback_error_does_not_stop_loop(self):
        source = ScriptedSource(frames=3)
        stream = make_stream()
        engine = StreamEngine(source, stream, fast_config())
        engine.add_callback(MagicMock(side_effect=RuntimeError("boom")))

        engine.run()

        assert stream.tick.call_count == 3

    def test_counts_events(self):
        source = ScriptedSource(frames=2)
        stream = make_stream()
        events = iter([
            [OccupancyEvent("branch_01", OccupancyKind.IN, 1, 0.0)],
            [OccupancyEvent("branch_01", OccupancyKind.OUT, 1, 3.0, dwell_seconds=3.0)],
        ])
        stream.tick.side_effect = lambda frame_data: StreamTick("branch_01", events=next(events))
        engine = StreamEngine(source, stream, fast_config())

        engine.run()

        assert (engine.stats.people_in, engine.stats.people_out) == (1, 1)


class TestEngineFailures:
    """Initialization and runtime failures end up in the stream status."""

    def test_camera_unavailable(self):
        source = ScriptedSource(fail_open=True)
        stream = make_stream()
        engine = StreamEngine(source, stream, fast_config())

        engine.run()

        assert engine.status.status == StreamStatus.NO_CAMERA
        assert "no device 0" in engine.status.error_message
        stream.tick.assert_not_called()
        stream.close.assert_called_once()

    def test_unexpected_error_sets_error_status(self):
        source = ScriptedSource(frames=3)
        stream = make_stream()
        stream.tick.side_effect = RuntimeError("tracker exploded")
        engine = StreamEngine(source, stream, fast_config())

        engine.run()

        assert engine.status.status == StreamStatus.ERROR
        assert engine.status.error_message == "tracker exploded"
        assert source.closed

    def test_source_close_error_is_logged(self, caplog):
        source = ScriptedSource(frames=0)
        source.close = MagicMock(side_effect=OSError("release failed"))
        engine = StreamEngine(source, make_stream(), fast_config())

        engine.run()

        assert "release failed" in caplog.text


class TestEngineStop:
    """stop() ends the loop no matter when it is called."""

    def test_stop_before_run(self):
        source = ScriptedSource(frames=1000)
        source.open = MagicMock(wraps=source.open)
        stream = make_stream()
        engine = StreamEngine(source, stream, fast_config())

        engine.stop()
        thread = threading.Thread(target=engine.run)
        thread.start()
        thread.join(timeout=1.0)

        assert not thread.is_alive()
        source.open.assert_not_called()
        stream.tick.assert_not_called()
        stream.close.assert_called_once()
        assert engine.status.status == StreamStatus.STOPPED

    def test_stop_from_other_thread(self):
        source = ScriptedSource(frames=10 ** 9)
        stream = make_stream()
        ticked = threading.Event()
        stream.tick.side_effect = lambda frame_data: ticked.set() or StreamTick("branch_01")
        engine = StreamEngine(source, stream, fast_config())
        thread = threading.Thread(target=engine.run)
        thread.start()

        assert ticked.wait(timeout=5)
        engine.stop()
        thread.join(timeout=5)

        assert not thread.is_alive()
        assert engine.status.status == StreamStatus.STOPPED

    def test_stop_interrupts_retry_wait(self):
        source = ScriptedSource(frames=0)
        engine = StreamEngine(
            source, make_stream(), EngineConfig(max_consecutive_failures=1000, retry_delay=30.0)
        )
        thread = threading.Thread(target=engine.run)
        thread.start()

        engine.stop()
        thread.join(timeout=5)

        assert not thread.is_alive()
