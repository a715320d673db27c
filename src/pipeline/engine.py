"""
Monitor engine: one sample -> detect -> render -> evaluate cycle.

The engine owns the per-cycle work; the FrameSampler decides when a
cycle runs and guarantees cycles never overlap, so the surface and the
alert state only ever see one DetectionSet at a time.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from alerts import AlertEngine, HistoryLog, build_conditions, create_sink_from_config
from inference import CpuYoloConfig, DetectionFailure, DetectorAdapter, UltralyticsCpuBackend
from models.config import Config
from models.detection import DetectionSet
from models.frame import FrameData
from observation import ObservationSource, create_source_from_config
from overlay import OpenCVSurface, OverlayRenderer
from runtime.context import RuntimeContext
from .sampler import FrameSampler

CycleCallback = Callable[[FrameData, DetectionSet], None]


@dataclass
class PipelineConfig:
    """
    Configuration for the monitor engine.

    Attributes:
        period_ms: Sampling period in milliseconds; fixed once started.
        stats_log_interval: Seconds between status log messages.
    """
    period_ms: int = 200
    stats_log_interval: float = 60.0

    @property
    def period_s(self) -> float:
        return self.period_ms / 1000.0


@dataclass
class PipelineStats:
    """Runtime statistics for the monitor."""
    cycle_count: int = 0
    source_misses: int = 0
    detection_failures: int = 0
    alerts_fired: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "cycle_count": self.cycle_count,
            "source_misses": self.source_misses,
            "detection_failures": self.detection_failures,
            "alerts_fired": self.alerts_fired,
            "uptime_seconds": int(time.time() - self.start_time),
        }


class MonitorEngine:
    """
    Runs detection cycles against an ObservationSource.

    Each cycle:
    - reads the current frame and sizes the surface to it
    - awaits the detector (the only suspension point)
    - renders the detections and evaluates alert conditions
    - publishes the composed frame and detections

    A DetectionFailure turns the cycle into a no-op: nothing is rendered
    and no alert is evaluated.

    Example:
        engine = MonitorEngine(source, ctx, PipelineConfig(period_ms=200))
        await engine.run(stop_event)
    """

    def __init__(self, source: ObservationSource, ctx: RuntimeContext, config: PipelineConfig):
        self.source = source
        self.ctx = ctx
        self.config = config
        self.stats = PipelineStats()
        self.sampler = FrameSampler(self.run_cycle, self.is_ready)
        self._callbacks: List[CycleCallback] = []

    def add_callback(self, callback: CycleCallback) -> None:
        """
        Add a callback to be called after each completed cycle.

        Args:
            callback: Function taking (frame_data, detections) as arguments.
        """
        self._callbacks.append(callback)

    def is_ready(self) -> bool:
        """Model loaded and the source has a usable frame."""
        return self.ctx.detector.ready and self.source.is_ready()

    async def run_cycle(self) -> None:
        frame_data = self.source.read()
        if frame_data is None:
            self.stats.source_misses += 1
            return

        self.ctx.surface.resize(frame_data.width, frame_data.height)

        try:
            detections = await self.ctx.detector.detect(frame_data)
        except DetectionFailure as e:
            self.stats.detection_failures += 1
            logging.warning(f"Detection failed for frame {frame_data.frame_index}: {e}")
            return

        self.stats.cycle_count += 1
        self.ctx.renderer.render(detections, self.ctx.surface)
        fired = self.ctx.alert_engine.evaluate(detections)
        self.stats.alerts_fired += len(fired)

        self.ctx.update_frame(frame_data, detections)
        self._publish_stats()

        for callback in self._callbacks:
            try:
                callback(frame_data, detections)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        self._handle_periodic_tasks()

    def start(self) -> None:
        self.sampler.start(self.config.period_s)

    def stop(self) -> None:
        self.sampler.stop()

    async def run(self, stop_event: asyncio.Event) -> None:
        """
        Open the source, load the detector, and sample until stop_event is set.
        """
        self.stats = PipelineStats()
        # open() may retry with backoff; keep the loop responsive
        await asyncio.to_thread(self.source.open)
        logging.info(f"Monitor started: source={self.source.source_id}")
        try:
            await self.ctx.detector.load()
            if hasattr(self.ctx.web_state, "set_ready"):
                self.ctx.web_state.set_ready(True)
            self.start()
            await stop_event.wait()
        finally:
            self.stop()
            await self.sampler.wait_idle()
            self._cleanup()

    def _publish_stats(self) -> None:
        web_state = self.ctx.web_state
        if web_state is not None and hasattr(web_state, "update_system_stats"):
            web_state.update_system_stats({
                "pipeline": self.stats.to_dict(),
                "sampler": self.sampler.stats.to_dict(),
            })

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            logging.info(
                f"Monitor stats: cycles={self.stats.cycle_count}, "
                f"alerts={self.stats.alerts_fired}, "
                f"detection_failures={self.stats.detection_failures}, "
                f"dropped_ticks={self.sampler.stats.dropped}"
            )
            self.stats.last_stats_log_time = now

    def _cleanup(self) -> None:
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
        self.ctx.alert_engine.reset()
        logging.info("Monitor stopped")


def create_engine_from_config(
    config: Config,
    web_state=None,
    source: Optional[ObservationSource] = None,
    detector: Optional[DetectorAdapter] = None,
) -> MonitorEngine:
    """
    Factory function wiring a MonitorEngine from the typed config.

    Args:
        config: Typed application config.
        web_state: Optional shared state the web API reads from.
        source: Override the configured observation source.
        detector: Override the configured detector adapter.
    """
    if source is None:
        source = create_source_from_config(config.camera.to_dict(), source_id="main-camera")

    if detector is None:
        det_cfg = config.detector
        if det_cfg.backend != "yolo":
            raise ValueError(f"Unsupported detector backend: {det_cfg.backend}")
        backend = UltralyticsCpuBackend(
            CpuYoloConfig(
                model=det_cfg.model,
                conf_threshold=float(det_cfg.conf_threshold),
                iou_threshold=float(det_cfg.iou_threshold),
                class_names=det_cfg.class_names,
            )
        )
        detector = DetectorAdapter(backend, min_score=float(det_cfg.min_score))

    history = HistoryLog()
    alert_engine = AlertEngine(
        build_conditions(config.alerts),
        history,
        create_sink_from_config(config.alerts.sinks),
    )

    if web_state is not None:
        web_state.set_history(history)

    ctx = RuntimeContext(
        config=config,
        detector=detector,
        renderer=OverlayRenderer(line_width=config.overlay.line_width, font=config.overlay.font),
        surface=OpenCVSurface(),
        alert_engine=alert_engine,
        history=history,
        web_state=web_state,
    )
    return MonitorEngine(source, ctx, PipelineConfig(period_ms=config.sampler.period_ms))
