"""
Typed models for the detection monitor.

Use the adapter classmethods (from_dict, from_xyxy, ...) to convert from
raw dicts and tuples.
"""

from .frame import FrameData
from .detection import Detection, BoundingBox, DetectionSet
from .alert import AlertCondition, AlertState, HistoryEntry
from .config import (
    Config,
    CameraConfig,
    DetectorConfig,
    SamplerConfig,
    OverlayConfig,
    AlertConditionConfig,
    AlertsConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "Detection",
    "BoundingBox",
    "DetectionSet",
    # Alerts
    "AlertCondition",
    "AlertState",
    "HistoryEntry",
    # Config
    "Config",
    "CameraConfig",
    "DetectorConfig",
    "SamplerConfig",
    "OverlayConfig",
    "AlertConditionConfig",
    "AlertsConfig",
    "WebConfig",
]
