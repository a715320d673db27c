"""
Detector capability interface.

Backends return pixel-space detections in the original frame coordinate
system, as (x, y, width, height) boxes.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from models.detection import DetectionSet


class DetectionFailure(Exception):
    """A single detection cycle could not produce a DetectionSet."""


class DetectorCapability(Protocol):
    def load(self) -> None:
        """Load model weights. Called once at startup; may be slow."""
        ...

    def detect(self, frame: np.ndarray) -> DetectionSet:
        ...
