"""
Drawing surfaces the overlay renderer targets.

A surface exposes the minimal canvas contract: clear(), resize(),
stroke_rect() and fill_text(). Colors are passed by name; each surface
maps names to its own color space.
"""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import List, Optional, Protocol, Tuple

import cv2
import numpy as np

# Colors (BGR)
COLOR_BGR = {
    "blue": (255, 0, 0),
    "red": (0, 0, 255),
    "lime": (0, 255, 0),
    "white": (255, 255, 255),
}


class Surface(Protocol):
    def clear(self) -> None: ...

    def resize(self, width: int, height: int) -> None: ...

    def stroke_rect(
        self, x: float, y: float, width: float, height: float, color: str, line_width: int
    ) -> None: ...

    def fill_text(self, text: str, x: float, y: float, color: str, font: str) -> None: ...


@dataclass(frozen=True)
class DrawCommand:
    """One recorded drawing call."""
    op: str
    color: str
    x: float
    y: float
    width: float = 0.0
    height: float = 0.0
    text: Optional[str] = None
    line_width: Optional[int] = None
    font: Optional[str] = None

    def to_dict(self) -> dict:
        d = {"op": self.op, "color": self.color, "x": self.x, "y": self.y}
        if self.op == "stroke_rect":
            d.update(width=self.width, height=self.height, line_width=self.line_width)
        else:
            d.update(text=self.text, font=self.font)
        return d


class RecordingSurface:
    """
    Surface that records drawing commands instead of rasterizing them.

    clear() discards the previous frame's commands, so `commands` always
    holds exactly what the last render produced.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self.width = width
        self.height = height
        self.commands: List[DrawCommand] = []
        self.clear_count = 0

    def clear(self) -> None:
        self.commands = []
        self.clear_count += 1

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height

    def stroke_rect(self, x, y, width, height, color, line_width) -> None:
        self.commands.append(
            DrawCommand("stroke_rect", color, x, y, width=width, height=height, line_width=line_width)
        )

    def fill_text(self, text, x, y, color, font) -> None:
        self.commands.append(DrawCommand("fill_text", color, x, y, text=text, font=font))

    def rects(self) -> List[DrawCommand]:
        return [c for c in self.commands if c.op == "stroke_rect"]

    def texts(self) -> List[DrawCommand]:
        return [c for c in self.commands if c.op == "fill_text"]


def _font_scale(font: str) -> float:
    """Map a CSS-style font string ("18px Arial") to a Hershey font scale."""
    m = re.search(r"(\d+(?:\.\d+)?)px", font or "")
    px = float(m.group(1)) if m else 18.0
    # FONT_HERSHEY_SIMPLEX glyphs are ~22px tall at scale 1.0
    return px / 22.0


class OpenCVSurface:
    """
    Raster surface backed by a BGR canvas, drawn with cv2.

    The overlay lives on its own canvas with a mask so it can be composed
    over any camera frame of the same size.
    """

    def __init__(self, width: int = 0, height: int = 0):
        self._lock = threading.Lock()
        self._canvas = np.zeros((max(height, 0), max(width, 0), 3), dtype=np.uint8)
        self._mask = np.zeros((max(height, 0), max(width, 0)), dtype=np.uint8)

    @property
    def size(self) -> Tuple[int, int]:
        h, w = self._canvas.shape[:2]
        return (w, h)

    @property
    def canvas(self) -> np.ndarray:
        return self._canvas

    def resize(self, width: int, height: int) -> None:
        if self.size == (width, height):
            return
        with self._lock:
            self._canvas = np.zeros((height, width, 3), dtype=np.uint8)
            self._mask = np.zeros((height, width), dtype=np.uint8)

    def clear(self) -> None:
        with self._lock:
            self._canvas[:] = 0
            self._mask[:] = 0

    def stroke_rect(self, x, y, width, height, color, line_width) -> None:
        p1 = (int(x), int(y))
        p2 = (int(x + width), int(y + height))
        with self._lock:
            cv2.rectangle(self._canvas, p1, p2, COLOR_BGR.get(color, COLOR_BGR["lime"]), line_width)
            cv2.rectangle(self._mask, p1, p2, 255, line_width)

    def fill_text(self, text, x, y, color, font) -> None:
        org = (int(x), int(y))
        scale = _font_scale(font)
        with self._lock:
            cv2.putText(
                self._canvas, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale,
                COLOR_BGR.get(color, COLOR_BGR["lime"]), 2,
            )
            cv2.putText(self._mask, text, org, cv2.FONT_HERSHEY_SIMPLEX, scale, 255, 2)

    def compose(self, frame: np.ndarray) -> np.ndarray:
        """Return a copy of frame with the overlay drawn on top."""
        out = frame.copy()
        with self._lock:
            if out.shape[:2] != self._canvas.shape[:2]:
                return out
            drawn = self._mask > 0
            out[drawn] = self._canvas[drawn]
        return out
