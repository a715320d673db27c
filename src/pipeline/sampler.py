"""
Fixed-period frame sampler with an in-flight guard.

Each tick either starts one detection cycle or is shed:
- the source is not ready -> skipped silently
- a cycle is still running -> dropped (never queued)

Shedding ticks keeps the loop on fresh frames instead of building a
backlog behind a slow detector.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional


@dataclass
class SamplerStats:
    """Tick and cycle counters."""
    ticks: int = 0
    skipped_not_ready: int = 0
    dropped: int = 0
    cycles_started: int = 0
    cycles_completed: int = 0
    cycles_failed: int = 0

    def to_dict(self) -> dict:
        return {
            "ticks": self.ticks,
            "skipped_not_ready": self.skipped_not_ready,
            "dropped": self.dropped,
            "cycles_started": self.cycles_started,
            "cycles_completed": self.cycles_completed,
            "cycles_failed": self.cycles_failed,
        }


class FrameSampler:
    """
    Drives `cycle` every period on the running asyncio loop.

    At most one cycle is in flight. The in-flight flag is set right
    before the cycle starts and cleared in a finally block, so a failing
    cycle never wedges the sampler.

    Example:
        sampler = FrameSampler(engine.run_cycle, engine.is_ready)
        sampler.start(0.2)
        ...
        sampler.stop()
    """

    def __init__(self, cycle: Callable[[], Awaitable[None]], is_ready: Callable[[], bool]):
        self._cycle = cycle
        self._is_ready = is_ready
        self._period_s: Optional[float] = None
        self._running = False
        self._in_flight = False
        self._task: Optional[asyncio.Task] = None
        self._current: Optional[asyncio.Task] = None
        self.stats = SamplerStats()

    @property
    def running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def period_s(self) -> Optional[float]:
        return self._period_s

    def start(self, period_s: float) -> None:
        """Begin ticking every period_s seconds. Must be called from the event loop."""
        if self._running:
            raise RuntimeError("Sampler already running")
        if period_s <= 0:
            raise ValueError(f"period must be positive, got {period_s}")

        loop = asyncio.get_running_loop()
        self._period_s = period_s
        self._running = True
        self._task = loop.create_task(self._tick_loop())
        logging.info(f"Sampler started: period={period_s * 1000:.0f}ms")

    def stop(self) -> None:
        """Stop ticking. Idempotent; an in-flight cycle is left to finish."""
        if not self._running and self._task is None:
            return
        self._running = False
        if self._task is not None:
            self._task.cancel()
            self._task = None
        logging.info("Sampler stopped")

    async def wait_idle(self) -> None:
        """Wait for the in-flight cycle, if any, to finish."""
        current = self._current
        if current is not None and not current.done():
            await asyncio.wait([current])

    def tick(self) -> bool:
        """
        Handle one tick. Returns True if a cycle was started.

        Must be called from the event loop thread.
        """
        self.stats.ticks += 1

        try:
            ready = bool(self._is_ready())
        except Exception as e:
            logging.debug(f"Readiness check raised: {e}")
            ready = False
        if not ready:
            self.stats.skipped_not_ready += 1
            return False

        if self._in_flight:
            self.stats.dropped += 1
            return False

        self._in_flight = True
        self.stats.cycles_started += 1
        self._current = asyncio.get_running_loop().create_task(self._run_cycle())
        return True

    async def _run_cycle(self) -> None:
        try:
            await self._cycle()
            self.stats.cycles_completed += 1
        except asyncio.CancelledError:
            raise
        except Exception:
            self.stats.cycles_failed += 1
            logging.exception("Detection cycle failed")
        finally:
            self._in_flight = False

    async def _tick_loop(self) -> None:
        loop = asyncio.get_running_loop()
        period = self._period_s
        next_tick = loop.time() + period
        while self._running:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            if not self._running:
                break
            self.tick()
            next_tick += period
            now = loop.time()
            if next_tick < now:
                # Fell behind (blocked loop); skip the missed ticks
                next_tick = now + period
