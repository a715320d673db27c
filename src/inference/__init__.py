"""
Detector backends and the async adapter the sampling loop calls.
"""

from .backend import DetectionFailure, DetectorCapability
from .adapter import DetectorAdapter
from .cpu_backend import CpuYoloConfig, UltralyticsCpuBackend

__all__ = [
    "DetectionFailure",
    "DetectorCapability",
    "DetectorAdapter",
    "CpuYoloConfig",
    "UltralyticsCpuBackend",
]
