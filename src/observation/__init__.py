"""
Observation layer for pluggable video sources.

This layer abstracts where frames come from (camera, video file, remote
stream) away from the sampling loop. Each source implements the
ObservationSource interface and returns FrameData objects.
"""

from .base import ObservationSource, ObservationConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config

__all__ = [
    "ObservationSource",
    "ObservationConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
]
