"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    secrets_file: Optional[str] = None
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    fps: int = 30
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            secrets_file=d.get("secrets_file"),
            resolution=d.get("resolution", [1280, 720]),
            fps=d.get("fps", 30),
            swap_rb=d.get("swap_rb", False),
            rotate=d.get("rotate", 0),
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "secrets_file": self.secrets_file,
            "resolution": self.resolution,
            "fps": self.fps,
            "swap_rb": self.swap_rb,
            "rotate": self.rotate,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
        }


@dataclass
class DetectorConfig:
    """Object detector configuration (COCO-trained YOLO by default)."""
    backend: str = "yolo"
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    min_score: float = 0.0
    # Keep only these classes; None keeps everything the model reports
    class_names: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        class_names = d.get("class_names")
        return cls(
            backend=d.get("backend", "yolo"),
            model=d.get("model", "yolov8n.pt"),
            conf_threshold=d.get("conf_threshold", 0.25),
            iou_threshold=d.get("iou_threshold", 0.45),
            min_score=d.get("min_score", 0.0),
            class_names=list(class_names) if class_names is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "iou_threshold": self.iou_threshold,
            "min_score": self.min_score,
            "class_names": self.class_names,
        }


@dataclass
class SamplerConfig:
    """Sampling period for the detection loop."""
    period_ms: int = 200

    @property
    def period_s(self) -> float:
        return self.period_ms / 1000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SamplerConfig":
        return cls(period_ms=d.get("period_ms", 200))

    def to_dict(self) -> Dict[str, Any]:
        return {"period_ms": self.period_ms}


@dataclass
class OverlayConfig:
    """Overlay drawing style."""
    line_width: int = 3
    font: str = "18px Arial"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverlayConfig":
        return cls(
            line_width=d.get("line_width", 3),
            font=d.get("font", "18px Arial"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"line_width": self.line_width, "font": self.font}


@dataclass
class AlertConditionConfig:
    """
    One alert condition.

    kind "count_above" fires when more than `threshold` detections of
    `class_name` are present; kind "present" fires when at least one is.
    """
    name: str
    kind: str
    class_name: str
    message: str
    threshold: int = 0
    cooldown_s: float = 5.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AlertConditionConfig":
        return cls(
            name=d["name"],
            kind=d.get("kind", "present"),
            class_name=d["class_name"],
            message=d.get("message", f"{d['name']} triggered"),
            threshold=d.get("threshold", 0),
            cooldown_s=d.get("cooldown_s", 5.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "class_name": self.class_name,
            "message": self.message,
            "threshold": self.threshold,
            "cooldown_s": self.cooldown_s,
        }


def _default_condition_configs() -> List[AlertConditionConfig]:
    return [
        AlertConditionConfig(
            name="more-than-one-person",
            kind="count_above",
            class_name="person",
            threshold=1,
            message="⚠️ More than 1 person detected!",
        ),
        AlertConditionConfig(
            name="device-detected",
            kind="present",
            class_name="cell phone",
            message="📱 Cell phone detected!",
        ),
    ]


@dataclass
class AlertsConfig:
    """Alert conditions and notification sinks."""
    conditions: List[AlertConditionConfig] = field(default_factory=_default_condition_configs)
    sinks: List[str] = field(default_factory=lambda: ["log", "sound"])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AlertsConfig":
        cond_dicts = d.get("conditions")
        conditions = (
            [AlertConditionConfig.from_dict(c) for c in cond_dicts]
            if cond_dicts is not None
            else _default_condition_configs()
        )
        return cls(
            conditions=conditions,
            sinks=list(d.get("sinks", ["log", "sound"])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "conditions": [c.to_dict() for c in self.conditions],
            "sinks": list(self.sinks),
        }


@dataclass
class WebConfig:
    """Status API server."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    overlay: OverlayConfig = field(default_factory=OverlayConfig)
    alerts: AlertsConfig = field(default_factory=AlertsConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            detector=DetectorConfig.from_dict(d.get("detector", {}) or {}),
            sampler=SamplerConfig.from_dict(d.get("sampler", {}) or {}),
            overlay=OverlayConfig.from_dict(d.get("overlay", {}) or {}),
            alerts=AlertsConfig.from_dict(d.get("alerts", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "camera": self.camera.to_dict(),
            "detector": self.detector.to_dict(),
            "sampler": self.sampler.to_dict(),
            "overlay": self.overlay.to_dict(),
            "alerts": self.alerts.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
