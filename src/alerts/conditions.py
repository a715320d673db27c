"""
Alert condition predicates and the built-in condition set.
"""

from __future__ import annotations

from typing import Iterable, List

from models.alert import AlertCondition, Predicate
from models.config import AlertConditionConfig, AlertsConfig
from models.detection import DetectionSet

MORE_THAN_ONE_PERSON = "more-than-one-person"
DEVICE_DETECTED = "device-detected"


def more_than(class_name: str, n: int) -> Predicate:
    """True when more than n detections of class_name are present."""

    def predicate(detections: DetectionSet) -> bool:
        return detections.count_of(class_name) > n

    predicate.__name__ = f"more_than_{n}_{class_name.replace(' ', '_')}"
    return predicate


def class_present(class_name: str) -> Predicate:
    """True when at least one detection of class_name is present."""

    def predicate(detections: DetectionSet) -> bool:
        return detections.contains(class_name)

    predicate.__name__ = f"{class_name.replace(' ', '_')}_present"
    return predicate


def default_conditions(cooldown_s: float = 5.0) -> List[AlertCondition]:
    return [
        AlertCondition(
            name=MORE_THAN_ONE_PERSON,
            message="⚠️ More than 1 person detected!",
            predicate=more_than("person", 1),
            cooldown_s=cooldown_s,
        ),
        AlertCondition(
            name=DEVICE_DETECTED,
            message="📱 Cell phone detected!",
            predicate=class_present("cell phone"),
            cooldown_s=cooldown_s,
        ),
    ]


def condition_from_config(cfg: AlertConditionConfig) -> AlertCondition:
    if cfg.kind == "count_above":
        predicate = more_than(cfg.class_name, int(cfg.threshold))
    elif cfg.kind == "present":
        predicate = class_present(cfg.class_name)
    else:
        raise ValueError(f"Unknown alert condition kind: {cfg.kind}")
    return AlertCondition(
        name=cfg.name,
        message=cfg.message,
        predicate=predicate,
        cooldown_s=float(cfg.cooldown_s),
    )


def build_conditions(alerts_cfg: AlertsConfig) -> List[AlertCondition]:
    """Build the fixed condition set from config; names must be unique."""
    conditions = [condition_from_config(c) for c in alerts_cfg.conditions]
    _check_unique(c.name for c in conditions)
    return conditions


def _check_unique(names: Iterable[str]) -> None:
    seen = set()
    for name in names:
        if name in seen:
            raise ValueError(f"Duplicate alert condition name: {name}")
        seen.add(name)
