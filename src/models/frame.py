"""
A sampled camera frame plus the metadata the monitor needs from it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


@dataclass
class FrameData:
    """
    One frame as read from an ObservationSource.

    `frame` is a BGR image (H x W x 3). `width`/`height` are the pixel
    dimensions the overlay surface is sized to.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        height, width = frame.shape[:2]
        return cls(
            frame=frame,
            width=int(width),
            height=int(height),
            timestamp=time.time() if timestamp is None else timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @property
    def is_valid(self) -> bool:
        """True when there are pixels to run detection on."""
        has_pixels = self.frame is not None and getattr(self.frame, "size", 0) > 0
        return has_pixels and self.width > 0 and self.height > 0
