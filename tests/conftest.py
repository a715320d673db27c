"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


class FakeHandle:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Collects cool-down timers so tests decide when they expire."""

    def __init__(self):
        self.handles = []

    def __call__(self, delay, callback):
        handle = FakeHandle(delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.handles if not h.cancelled]

    def fire_all(self):
        handles, self.handles = self.pending, []
        for h in handles:
            h.callback()


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30

detector:
  backend: "yolo"
  model: "yolov8n.pt"

sampler:
  period_ms: 200

alerts:
  sinks: ["log"]
  conditions:
    - name: "more-than-one-person"
      kind: "count_above"
      class_name: "person"
      threshold: 1
      cooldown_s: 5
      message: "More than 1 person detected!"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [1280, 720],
            "fps": 30,
        },
        "detector": {
            "backend": "yolo",
            "model": "yolov8n.pt",
            "conf_threshold": 0.25,
            "iou_threshold": 0.45,
        },
        "sampler": {"period_ms": 200},
        "alerts": {
            "sinks": ["log"],
            "conditions": [
                {
                    "name": "more-than-one-person",
                    "kind": "count_above",
                    "class_name": "person",
                    "threshold": 1,
                    "cooldown_s": 5,
                    "message": "More than 1 person detected!",
                },
                {
                    "name": "device-detected",
                    "kind": "present",
                    "class_name": "cell phone",
                    "cooldown_s": 5,
                    "message": "Cell phone detected!",
                },
            ],
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
