"""
Async adapter around a blocking detector capability.

The capability runs in a worker thread so the event loop keeps ticking
while inference is in progress; a single call may outlast one sample
period.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import numpy as np

from models.detection import DetectionSet
from models.frame import FrameData
from .backend import DetectionFailure, DetectorCapability


class DetectorAdapter:
    """
    Wraps a DetectorCapability and exposes `await detect(frame)`.

    Any failure (malformed frame, capability error, model not loaded)
    surfaces as DetectionFailure.
    """

    def __init__(self, capability: DetectorCapability, min_score: float = 0.0):
        self._capability = capability
        self._min_score = min_score
        self._ready = False

    @property
    def ready(self) -> bool:
        """True once load() has completed."""
        return self._ready

    async def load(self) -> None:
        """Load the underlying model once."""
        if self._ready:
            return
        await asyncio.to_thread(self._capability.load)
        self._ready = True
        logging.info("Detector ready")

    async def detect(self, frame: Any) -> DetectionSet:
        if not self._ready:
            raise DetectionFailure("Detector not loaded")

        image = _validate_frame(frame)

        try:
            result = await asyncio.to_thread(self._capability.detect, image)
        except Exception as e:
            raise DetectionFailure(f"Detector raised: {e}") from e

        detections = DetectionSet(result or ())
        if self._min_score > 0:
            detections = DetectionSet(d for d in detections if d.score >= self._min_score)
        return detections


def _validate_frame(frame: Any) -> np.ndarray:
    """Return the pixel array for frame, or raise DetectionFailure."""
    if isinstance(frame, FrameData):
        if not frame.is_valid:
            raise DetectionFailure(f"Malformed frame: {frame.width}x{frame.height}")
        return frame.frame

    image: Optional[np.ndarray] = frame
    if image is None or getattr(image, "ndim", 0) < 2:
        raise DetectionFailure("Malformed frame: no image data")
    h, w = image.shape[:2]
    if w == 0 or h == 0:
        raise DetectionFailure(f"Malformed frame: {w}x{h}")
    return image
