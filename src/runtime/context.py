from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np

from models.detection import DetectionSet
from models.frame import FrameData


@dataclass
class RuntimeContext:
    """Holds runtime state and service references; avoids global singletons."""

    config: Any
    detector: Any
    renderer: Any
    surface: Any
    alert_engine: Any
    history: Any
    web_state: Any = None

    # Observability
    system_stats: dict = field(default_factory=dict)

    # Last composed frame (camera + overlay) for display and web preview
    latest_frame: Optional[np.ndarray] = None
    latest_detections: DetectionSet = field(default_factory=DetectionSet)

    def update_frame(self, frame_data: FrameData, detections: DetectionSet) -> None:
        compose = getattr(self.surface, "compose", None)
        self.latest_frame = compose(frame_data.frame) if compose is not None else frame_data.frame
        self.latest_detections = detections
        self.system_stats["last_frame_ts"] = time.time()
        if self.web_state is None:
            return
        if hasattr(self.web_state, "set_frame"):
            self.web_state.set_frame(self.latest_frame)
        if hasattr(self.web_state, "set_detections"):
            self.web_state.set_detections(detections)
        if hasattr(self.web_state, "update_system_stats"):
            self.web_state.update_system_stats({"last_frame_ts": self.system_stats["last_frame_ts"]})
