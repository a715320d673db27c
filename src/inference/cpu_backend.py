"""
Ultralytics YOLO detector running on the CPU.

COCO-trained weights (yolov8n.pt and friends) already know the two
classes the default alerts watch for: "person" and "cell phone".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np

from models.detection import Detection, DetectionSet
from .backend import DetectorCapability


@dataclass(frozen=True)
class CpuYoloConfig:
    model: str
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    # Restrict output to these class names; None keeps every class
    class_names: Optional[Sequence[str]] = None


def _as_array(tensor: Any) -> np.ndarray:
    if hasattr(tensor, "cpu"):
        tensor = tensor.cpu().numpy()
    return np.asarray(tensor)


class UltralyticsCpuBackend(DetectorCapability):
    """Blocking detector; DetectorAdapter moves calls off the event loop."""

    def __init__(self, cfg: CpuYoloConfig):
        self.cfg = cfg
        self._model = None

    def load(self) -> None:
        if self._model is not None:
            return
        try:
            from ultralytics import YOLO  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install the detector extra: `pip install .[yolo]`."
            ) from e

        logging.info(f"Loading YOLO model: {self.cfg.model}")
        self._model = YOLO(self.cfg.model)

    def detect(self, frame: np.ndarray) -> DetectionSet:
        if self._model is None:
            raise RuntimeError("Model not loaded; call load() first")

        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            iou=self.cfg.iou_threshold,
            verbose=False,
        )
        if not results or getattr(results[0], "boxes", None) is None:
            return DetectionSet()

        result = results[0]
        names = result.names or {}
        wanted = set(self.cfg.class_names) if self.cfg.class_names is not None else None

        detections = []
        for (x1, y1, x2, y2), score, class_id in zip(
            _as_array(result.boxes.xyxy),
            _as_array(result.boxes.conf),
            _as_array(result.boxes.cls),
        ):
            class_name = names.get(int(class_id), str(int(class_id)))
            if wanted is not None and class_name not in wanted:
                continue
            detections.append(Detection.from_xyxy(class_name, float(score), x1, y1, x2, y2))

        return DetectionSet(detections)
