"""
Alert models: conditions, per-condition debounce state, and history entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from .detection import DetectionSet

Predicate = Callable[[DetectionSet], bool]


@dataclass(frozen=True)
class AlertCondition:
    """
    A named predicate over a DetectionSet plus its cool-down window.

    Attributes:
        name: Unique condition key (e.g. "more-than-one-person").
        message: Text recorded in history when the condition fires.
        predicate: Function evaluated against each cycle's detections.
        cooldown_s: Seconds during which repeat firings are suppressed.
    """
    name: str
    message: str
    predicate: Predicate
    cooldown_s: float = 5.0


@dataclass
class AlertState:
    """
    Debounce state for one condition.

    active=True means the condition fired at `since` and is still inside
    its cool-down window.
    """
    active: bool = False
    since: Optional[float] = None

    def copy(self) -> "AlertState":
        return AlertState(active=self.active, since=self.since)


@dataclass(frozen=True)
class HistoryEntry:
    """An alert message stamped with formatted local time."""
    timestamp: str
    message: str

    def __str__(self) -> str:
        return f"[{self.timestamp}] {self.message}"

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "message": self.message,
            "text": str(self),
        }
