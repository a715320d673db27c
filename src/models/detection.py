"""
Detection models for object detection results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates of the sampled frame.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    @classmethod
    def from_tuple(cls, t: Tuple[float, float, float, float]) -> "BoundingBox":
        """Create from (x, y, width, height) tuple."""
        return cls(x=t[0], y=t[1], width=t[2], height=t[3])

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates (x1, y1, x2, y2)."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Detection:
    """
    A single detection from an object detector.

    Attributes:
        class_name: Human-readable class name (e.g. "person", "cell phone").
        score: Detection confidence score (0-1).
        bbox: Bounding box in pixel coordinates.
    """
    class_name: str
    score: float
    bbox: BoundingBox

    @property
    def label(self) -> str:
        """Display label, e.g. "person (90%)"."""
        return f"{self.class_name} ({round(self.score * 100)}%)"

    @classmethod
    def from_xywh(
        cls,
        class_name: str,
        score: float,
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> "Detection":
        return cls(
            class_name=class_name,
            score=score,
            bbox=BoundingBox(x=x, y=y, width=width, height=height),
        )

    @classmethod
    def from_xyxy(
        cls, class_name: str, score: float, x1: float, y1: float, x2: float, y2: float
    ) -> "Detection":
        """Adapter: Build from corner coordinates (YOLO output format)."""
        return cls(
            class_name=class_name,
            score=score,
            bbox=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
        )

    @classmethod
    def from_dict(cls, d: dict) -> "Detection":
        """
        Adapter: Build from a {"class", "score", "bbox": [x, y, w, h]} dict.

        Accepts "class_name" as an alias for "class".
        """
        class_name = d.get("class", d.get("class_name"))
        if class_name is None:
            raise ValueError("detection dict is missing 'class'")
        return cls(
            class_name=str(class_name),
            score=float(d.get("score", 1.0)),
            bbox=BoundingBox.from_tuple(tuple(float(v) for v in d["bbox"])),
        )

    def to_dict(self) -> dict:
        return {
            "class": self.class_name,
            "score": self.score,
            "bbox": list(self.bbox.as_tuple()),
        }


class DetectionSet(tuple):
    """
    Ordered, immutable output of one detector invocation.

    Order is the detector's output order; duplicates of a class are expected.
    """

    def __new__(cls, detections: Iterable[Detection] = ()):
        return super().__new__(cls, detections)

    def count_of(self, class_name: str) -> int:
        """Number of detections whose class equals class_name."""
        return sum(1 for d in self if d.class_name == class_name)

    def contains(self, class_name: str) -> bool:
        return any(d.class_name == class_name for d in self)

    def class_names(self) -> Tuple[str, ...]:
        return tuple(d.class_name for d in self)

    def __repr__(self) -> str:
        return f"DetectionSet({list(self)!r})"
