"""
Debounced alerting: conditions, engine, history and notification sinks.
"""

from .engine import AlertEngine, default_scheduler
from .history import HistoryLog
from .conditions import (
    DEVICE_DETECTED,
    MORE_THAN_ONE_PERSON,
    build_conditions,
    class_present,
    default_conditions,
    more_than,
)
from .notify import (
    BellNotificationSink,
    CompositeNotificationSink,
    LogNotificationSink,
    NotificationSink,
    SoundNotificationSink,
    create_sink_from_config,
)

__all__ = [
    "AlertEngine",
    "default_scheduler",
    "HistoryLog",
    "DEVICE_DETECTED",
    "MORE_THAN_ONE_PERSON",
    "build_conditions",
    "class_present",
    "default_conditions",
    "more_than",
    "BellNotificationSink",
    "CompositeNotificationSink",
    "LogNotificationSink",
    "NotificationSink",
    "SoundNotificationSink",
    "create_sink_from_config",
]
