import threading
import time

from models.detection import DetectionSet


class SharedState:
    """
    Singleton class to share state between the monitor loop
    and the FastAPI web server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance._init_fields()
        return cls._instance

    def _init_fields(self):
        self.frame = None
        self.frame_lock = threading.Lock()
        self.detections = DetectionSet()
        self.history = None
        self.ready = False
        self.system_stats = {
            "start_time": time.time(),
            "last_frame_ts": None,
        }

    def reset(self):
        """Drop all state (used by tests and on restart)."""
        with self.frame_lock:
            self._init_fields()

    def set_frame(self, frame):
        """Update the latest composed frame."""
        with self.frame_lock:
            if frame is not None:
                self.frame = frame.copy()
                self.system_stats["last_frame_ts"] = time.time()

    def get_frame(self):
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def set_detections(self, detections):
        self.detections = DetectionSet(detections)

    def get_detections(self):
        return self.detections

    def set_history(self, history):
        self.history = history

    def get_history_entries(self):
        if self.history is None:
            return ()
        return self.history.entries()

    def set_ready(self, ready):
        self.ready = bool(ready)

    def update_system_stats(self, stats):
        self.system_stats.update(stats)

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        return dict(self.system_stats)


# Global instance
state = SharedState()
