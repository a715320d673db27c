from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Tuple

from models.alert import HistoryEntry

TIME_FORMAT = "%H:%M:%S"


class HistoryLog:
    """
    Append-only, time-stamped alert history.

    Entries are never mutated or removed; entries() hands out an
    immutable snapshot.
    """

    def __init__(self, now: Optional[Callable[[], datetime]] = None):
        self._now = now or datetime.now
        self._lock = threading.Lock()
        self._entries: List[HistoryEntry] = []

    def append(self, message: str) -> HistoryEntry:
        entry = HistoryEntry(timestamp=self._now().strftime(TIME_FORMAT), message=message)
        with self._lock:
            self._entries.append(entry)
        logging.info(f"History: {entry}")
        return entry

    def entries(self) -> Tuple[HistoryEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.entries())
