"""
Overlay rendering: detections to labelled boxes.

Rendering is stateless. Every call clears the surface and redraws the
given detections, so nothing from a previous frame survives.
"""

from __future__ import annotations

from typing import Iterable

from models.detection import Detection
from .surface import Surface

PERSON_COLOR = "blue"
DEVICE_COLOR = "red"
DEFAULT_COLOR = "lime"

DEFAULT_LINE_WIDTH = 3
DEFAULT_FONT = "18px Arial"

# Labels closer than this to the top edge are pinned to it
LABEL_MIN_Y = 10
LABEL_OFFSET = 5


def color_for(class_name: str) -> str:
    if class_name == "person":
        return PERSON_COLOR
    if class_name == "cell phone":
        return DEVICE_COLOR
    return DEFAULT_COLOR


def label_position(x: float, y: float) -> tuple:
    """Anchor for a box's label: just above the box, or at y=10 near the top edge."""
    return (x, y - LABEL_OFFSET if y > LABEL_MIN_Y else LABEL_MIN_Y)


def render(
    detections: Iterable[Detection],
    surface: Surface,
    line_width: int = DEFAULT_LINE_WIDTH,
    font: str = DEFAULT_FONT,
) -> None:
    """Clear surface and draw one labelled box per detection, in order."""
    surface.clear()
    for det in detections:
        x, y, width, height = det.bbox.as_tuple()
        color = color_for(det.class_name)
        tx, ty = label_position(x, y)
        surface.fill_text(det.class_name, tx, ty, color, font)
        surface.stroke_rect(x, y, width, height, color, line_width)


class OverlayRenderer:
    """render() with the drawing style bound from config."""

    def __init__(self, line_width: int = DEFAULT_LINE_WIDTH, font: str = DEFAULT_FONT):
        self.line_width = line_width
        self.font = font

    def render(self, detections: Iterable[Detection], surface: Surface) -> None:
        render(detections, surface, line_width=self.line_width, font=self.font)
