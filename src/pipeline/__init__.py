"""
Pipeline module for the detection monitor.

The pipeline orchestrates the full processing flow:
- Fixed-period sampling with an in-flight guard (FrameSampler)
- Detection, overlay rendering and alert evaluation per cycle (MonitorEngine)
"""

from .sampler import FrameSampler, SamplerStats
from .engine import MonitorEngine, PipelineConfig, PipelineStats, create_engine_from_config

__all__ = [
    "FrameSampler",
    "SamplerStats",
    "MonitorEngine",
    "PipelineConfig",
    "PipelineStats",
    "create_engine_from_config",
]
