from .streams import StreamHandle, StreamManager

__all__ = ["StreamHandle", "StreamManager"]
