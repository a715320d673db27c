"""
Alert engine: per-condition debounce state machine.

Each condition is either Idle or Suppressed. A true predicate while Idle
fires the alert (history entry + notification) and moves the condition
to Suppressed; a timer returns it to Idle exactly cooldown_s later,
whether or not the predicate is still true. A false predicate never
changes state, so the cool-down is anchored to the first true
observation.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from models.alert import AlertCondition, AlertState
from models.detection import DetectionSet
from .history import HistoryLog
from .notify import NotificationSink

Scheduler = Callable[[float, Callable[[], None]], Any]


def default_scheduler(delay: float, callback: Callable[[], None]) -> Any:
    """
    Run callback after delay seconds.

    Uses the running event loop when there is one, so expiry is
    serialized with the sampling loop; falls back to a daemon timer
    thread otherwise. The returned handle has cancel().
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer
    return loop.call_later(delay, callback)


class AlertEngine:
    """
    Evaluates a fixed set of AlertConditions against each DetectionSet.

    Example:
        engine = AlertEngine(default_conditions(), HistoryLog(), LogNotificationSink())
        engine.evaluate(detections)
    """

    def __init__(
        self,
        conditions: Iterable[AlertCondition],
        history: HistoryLog,
        sink: NotificationSink,
        clock: Callable[[], float] = time.monotonic,
        scheduler: Optional[Scheduler] = None,
    ):
        self._conditions: Dict[str, AlertCondition] = {}
        for cond in conditions:
            if cond.name in self._conditions:
                raise ValueError(f"Duplicate alert condition name: {cond.name}")
            self._conditions[cond.name] = cond

        self._history = history
        self._sink = sink
        self._clock = clock
        self._schedule = scheduler or default_scheduler

        self._lock = threading.RLock()
        self._states: Dict[str, AlertState] = {name: AlertState() for name in self._conditions}
        self._timers: Dict[str, Any] = {}
        # Bumped on each activation so a stale timer cannot clear a newer one
        self._generation: Dict[str, int] = {name: 0 for name in self._conditions}

    @property
    def conditions(self) -> List[AlertCondition]:
        return list(self._conditions.values())

    @property
    def history(self) -> HistoryLog:
        return self._history

    def state(self, name: str) -> AlertState:
        with self._lock:
            return self._states[name].copy()

    def states(self) -> Dict[str, AlertState]:
        with self._lock:
            return {name: s.copy() for name, s in self._states.items()}

    def evaluate(self, detections: DetectionSet) -> List[AlertCondition]:
        """Evaluate every condition; returns the conditions that fired this cycle."""
        fired: List[AlertCondition] = []
        for cond in self._conditions.values():
            try:
                matched = bool(cond.predicate(detections))
            except Exception:
                logging.exception(f"Alert predicate {cond.name} raised; treating as false")
                continue
            if matched and self._activate(cond):
                fired.append(cond)

        for cond in fired:
            self._fire(cond)
        return fired

    def _activate(self, cond: AlertCondition) -> bool:
        """Idle -> Suppressed transition; False if already suppressed."""
        with self._lock:
            state = self._states[cond.name]
            if state.active:
                return False
            state.active = True
            state.since = self._clock()
            self._generation[cond.name] += 1
            generation = self._generation[cond.name]
            self._timers[cond.name] = self._schedule(
                cond.cooldown_s, lambda: self._expire(cond.name, generation)
            )
            return True

    def _fire(self, cond: AlertCondition) -> None:
        self._history.append(cond.message)
        try:
            self._sink.notify(f"Alert: {cond.message}")
        except Exception:
            logging.exception(f"Notification for {cond.name} failed")

    def _expire(self, name: str, generation: int) -> None:
        with self._lock:
            if self._generation[name] != generation:
                return
            state = self._states[name]
            state.active = False
            state.since = None
            self._timers.pop(name, None)
        logging.debug(f"Alert {name} re-armed")

    def reset(self) -> None:
        """Cancel pending cool-down timers and return every condition to Idle."""
        with self._lock:
            for handle in self._timers.values():
                cancel = getattr(handle, "cancel", None)
                if cancel is not None:
                    cancel()
            self._timers.clear()
            for name in self._states:
                self._generation[name] += 1
                self._states[name] = AlertState()
