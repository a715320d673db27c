"""
Overlay rendering of detections onto a drawing surface.
"""

from .renderer import OverlayRenderer, render, color_for, label_position
from .surface import Surface, DrawCommand, RecordingSurface, OpenCVSurface

__all__ = [
    "OverlayRenderer",
    "render",
    "color_for",
    "label_position",
    "Surface",
    "DrawCommand",
    "RecordingSurface",
    "OpenCVSurface",
]
