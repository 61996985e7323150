import threading
import time


class SharedState:
    """
    Singleton class to share state between the stream host loops
    and the FastAPI web server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.store = None
                    cls._instance.streams = None
                    cls._instance.config = None
                    cls._instance.config_lock = threading.Lock()
                    cls._instance.config_path = None
                    cls._instance.start_time = time.time()
        return cls._instance

    def set_store(self, store):
        self.store = store

    def set_streams(self, streams):
        self.streams = streams

    def set_config(self, config, config_path):
        with self.config_lock:
            self.config = config
            self.config_path = config_path

    def get_config_copy(self):
        with self.config_lock:
            if self.config is None:
                return None
            # shallow copy of dict tree is fine for read-mostly usage
            return dict(self.config)

    def uptime_seconds(self) -> float:
        return time.time() - self.start_time


# Global instance
state = SharedState()
