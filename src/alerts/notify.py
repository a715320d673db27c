"""
Notification sinks.

A sink turns an alert message into something a person notices: a log
line, a terminal bell or a beep on the speakers. Delivery is
fire-and-forget; callers must not depend on it succeeding.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path
from typing import IO, Iterable, List, Optional, Protocol

from playsound import playsound

DEFAULT_BEEP = Path(__file__).parent / "sounds" / "beep.wav"


class NotificationSink(Protocol):
    def notify(self, message: str) -> None: ...


class LogNotificationSink:
    """Visual cue: a WARNING log line."""

    def notify(self, message: str) -> None:
        logging.warning(message)


class BellNotificationSink:
    """Audible cue: terminal bell followed by the message."""

    def __init__(self, stream: Optional[IO[str]] = None):
        self._stream = stream

    def notify(self, message: str) -> None:
        stream = self._stream or sys.stderr
        stream.write(f"\a{message}\n")
        stream.flush()


class SoundNotificationSink:
    """
    Audible cue: plays a sound file through the speakers.

    Playback blocks until the clip ends, so it runs on a daemon thread and
    notify() returns immediately. Playback errors are logged, not raised.
    """

    def __init__(self, sound_path: Path = DEFAULT_BEEP):
        self.sound_path = Path(sound_path)

    def notify(self, message: str) -> None:
        threading.Thread(target=self._play, daemon=True).start()

    def _play(self) -> None:
        try:
            playsound(str(self.sound_path))
        except Exception as e:
            logging.warning(f"Could not play {self.sound_path.name}: {e}")


class CompositeNotificationSink:
    """Fan out to several sinks; one sink failing does not stop the rest."""

    def __init__(self, sinks: Iterable[NotificationSink]):
        self.sinks: List[NotificationSink] = list(sinks)

    def notify(self, message: str) -> None:
        for sink in self.sinks:
            try:
                sink.notify(message)
            except Exception as e:
                logging.warning(f"Notification sink {type(sink).__name__} failed: {e}")


SINK_TYPES = {
    "log": LogNotificationSink,
    "bell": BellNotificationSink,
    "sound": SoundNotificationSink,
}


def create_sink_from_config(names: Iterable[str]) -> CompositeNotificationSink:
    """Build a composite sink from names in alerts.sinks."""
    sinks = []
    for name in names:
        sink_cls = SINK_TYPES.get(name)
        if sink_cls is None:
            raise ValueError(f"Unknown notification sink: {name}")
        sinks.append(sink_cls())
    return CompositeNotificationSink(sinks)
