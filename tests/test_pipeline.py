"""
Tests for the monitor engine (one detection cycle end to end).
"""

import asyncio
import threading
import time
from unittest.mock import MagicMock

import numpy as np
import pytest

from alerts.conditions import DEVICE_DETECTED, MORE_THAN_ONE_PERSON, default_conditions
from alerts.engine import AlertEngine
from alerts.history import HistoryLog
from inference.adapter import DetectorAdapter
from models.config import Config
from models.detection import Detection, DetectionSet
from models.frame import FrameData
from observation.base import ObservationConfig, ObservationSource
from overlay.renderer import OverlayRenderer
from overlay.surface import OpenCVSurface, RecordingSurface
from pipeline.engine import MonitorEngine, PipelineConfig, create_engine_from_config
from runtime.context import RuntimeContext

SCENARIO_A = DetectionSet([
    Detection.from_dict({"class": "person", "score": 0.9, "bbox": [10, 10, 50, 80]}),
    Detection.from_dict({"class": "person", "score": 0.8, "bbox": [100, 10, 50, 80]}),
])
SCENARIO_C = DetectionSet([
    Detection.from_dict({"class": "cell phone", "score": 0.95, "bbox": [0, 0, 40, 40]}),
])


class MockObservationSource(ObservationSource):
    """Source that always serves the same blank frame."""

    def __init__(self, config: ObservationConfig, width: int = 640, height: int = 480):
        super().__init__(config)
        self._shape = (height, width, 3)
        self.closed = False

    def open(self) -> None:
        self._is_open = True
        self._frame_index = 0
        self._last_size = (self._shape[1], self._shape[0])

    def read(self):
        if not self._is_open:
            return None
        self._frame_index += 1
        frame = np.zeros(self._shape, dtype=np.uint8)
        return self._mark_frame(FrameData.from_numpy(
            frame, timestamp=time.time(), frame_index=self._frame_index, source=self.source_id,
        ))

    def close(self) -> None:
        self._is_open = False
        self.closed = True


class ScriptedCapability:
    """Detector capability returning queued results (or raising queued errors)."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def load(self):
        pass

    def detect(self, frame):
        self.calls += 1
        result = self.results.pop(0) if self.results else DetectionSet()
        if isinstance(result, Exception):
            raise result
        return result


def _build(capability, scheduler, clock, surface=None, web_state=None):
    history = HistoryLog()
    sink = MagicMock()
    detector = DetectorAdapter(capability)
    ctx = RuntimeContext(
        config=Config(),
        detector=detector,
        renderer=OverlayRenderer(),
        surface=surface if surface is not None else RecordingSurface(),
        alert_engine=AlertEngine(default_conditions(5.0), history, sink, clock=clock, scheduler=scheduler),
        history=history,
        web_state=web_state,
    )
    source = MockObservationSource(ObservationConfig(source_id="test"))
    engine = MonitorEngine(source, ctx, PipelineConfig(period_ms=10))
    return engine, sink


def _prepare(engine):
    engine.source.open()
    asyncio.run(engine.ctx.detector.load())


class TestPipelineConfig:
    def test_default_values(self):
        config = PipelineConfig()
        assert config.period_ms == 200
        assert config.period_s == pytest.approx(0.2)
        assert config.stats_log_interval == 60.0


class TestRunCycle:
    def test_scenario_a_renders_and_alerts(self, scheduler, clock):
        engine, sink = _build(ScriptedCapability(SCENARIO_A), scheduler, clock)
        _prepare(engine)

        asyncio.run(engine.run_cycle())

        surface = engine.ctx.surface
        assert surface.width == 640 and surface.height == 480
        assert [c.color for c in surface.rects()] == ["blue", "blue"]
        entries = engine.ctx.history.entries()
        assert len(entries) == 1
        assert "More than 1 person" in entries[0].message
        sink.notify.assert_called_once()
        assert engine.stats.alerts_fired == 1
        assert list(engine.ctx.latest_detections) == list(SCENARIO_A)

    def test_scenario_b_no_realert_within_cooldown(self, scheduler, clock):
        engine, sink = _build(ScriptedCapability(SCENARIO_A, SCENARIO_A), scheduler, clock)
        _prepare(engine)

        asyncio.run(engine.run_cycle())
        clock.advance(2.0)
        asyncio.run(engine.run_cycle())

        assert len(engine.ctx.history) == 1
        assert sink.notify.call_count == 1

    def test_scenario_c_device_fires_independently(self, scheduler, clock):
        engine, sink = _build(ScriptedCapability(SCENARIO_A, SCENARIO_C), scheduler, clock)
        _prepare(engine)

        asyncio.run(engine.run_cycle())
        asyncio.run(engine.run_cycle())

        alert_engine = engine.ctx.alert_engine
        assert alert_engine.state(MORE_THAN_ONE_PERSON).active
        assert alert_engine.state(DEVICE_DETECTED).active
        assert len(engine.ctx.history) == 2
        assert [c.color for c in engine.ctx.surface.rects()] == ["red"]

    def test_scenario_d_empty_set(self, scheduler, clock):
        engine, sink = _build(ScriptedCapability(DetectionSet()), scheduler, clock)
        _prepare(engine)

        asyncio.run(engine.run_cycle())

        assert engine.ctx.surface.commands == []
        assert engine.ctx.surface.clear_count == 1
        assert len(engine.ctx.history) == 0
        sink.notify.assert_not_called()

    def test_scenario_e_detector_failure_is_noop(self, scheduler, clock):
        engine, sink = _build(ScriptedCapability(RuntimeError("boom"), SCENARIO_A), scheduler, clock)
        _prepare(engine)

        async def scenario():
            assert engine.sampler.tick() is True
            await engine.sampler.wait_idle()
            # Failed cycle: no render, no evaluation, guard released
            assert engine.ctx.surface.clear_count == 0
            assert len(engine.ctx.history) == 0
            assert engine.sampler.in_flight is False

            assert engine.sampler.tick() is True
            await engine.sampler.wait_idle()

        asyncio.run(scenario())

        assert engine.stats.detection_failures == 1
        assert engine.stats.cycle_count == 1
        assert len(engine.ctx.history) == 1
        assert engine.sampler.stats.cycles_completed == 2

    def test_not_ready_until_detector_loaded(self, scheduler, clock):
        engine, _ = _build(ScriptedCapability(), scheduler, clock)
        engine.source.open()

        assert engine.is_ready() is False
        asyncio.run(engine.ctx.detector.load())
        assert engine.is_ready() is True

    def test_source_miss_counts_and_skips(self, scheduler, clock):
        capability = ScriptedCapability(SCENARIO_A)
        engine, _ = _build(capability, scheduler, clock)
        asyncio.run(engine.ctx.detector.load())

        # Source never opened: read() returns None
        asyncio.run(engine.run_cycle())

        assert engine.stats.source_misses == 1
        assert capability.calls == 0

    def test_callbacks_called_and_isolated(self, scheduler, clock):
        engine, _ = _build(ScriptedCapability(SCENARIO_C), scheduler, clock)
        _prepare(engine)
        seen = []

        def broken(frame_data, detections):
            raise ValueError("bad callback")

        engine.add_callback(broken)
        engine.add_callback(lambda fd, dets: seen.append((fd.frame_index, len(dets))))

        asyncio.run(engine.run_cycle())

        assert seen == [(1, 1)]

    def test_updates_web_state(self, scheduler, clock):
        web_state = MagicMock()
        engine, _ = _build(ScriptedCapability(SCENARIO_A), scheduler, clock,
                           surface=OpenCVSurface(), web_state=web_state)
        _prepare(engine)

        asyncio.run(engine.run_cycle())

        web_state.set_detections.assert_called_once_with(SCENARIO_A)
        composed = web_state.set_frame.call_args[0][0]
        assert composed.shape == (480, 640, 3)
        # Overlay is composed onto the frame
        assert composed.any()


class TestRun:
    def test_run_until_stopped(self, scheduler, clock):
        web_state = MagicMock()
        engine, _ = _build(ScriptedCapability(), scheduler, clock, web_state=web_state)

        async def scenario():
            stop_event = asyncio.Event()

            def stop_after_three(frame_data, detections):
                if engine.stats.cycle_count >= 3:
                    stop_event.set()

            engine.add_callback(stop_after_three)
            await asyncio.wait_for(engine.run(stop_event), timeout=5)

        asyncio.run(scenario())

        assert engine.stats.cycle_count >= 3
        assert engine.sampler.running is False
        assert engine.source.closed is True
        web_state.set_ready.assert_called_once_with(True)

    def test_run_opens_source_off_the_loop(self, scheduler, clock):
        engine, _ = _build(ScriptedCapability(), scheduler, clock)
        open_threads = []
        real_open = engine.source.open

        def slow_open():
            open_threads.append(threading.current_thread())
            time.sleep(0.3)
            real_open()

        engine.source.open = slow_open

        async def scenario():
            stop_event = asyncio.Event()
            loop_ticks = 0

            async def heartbeat():
                nonlocal loop_ticks
                while not stop_event.is_set():
                    loop_ticks += 1
                    await asyncio.sleep(0.02)

            beat = asyncio.create_task(heartbeat())
            engine.add_callback(lambda fd, dets: stop_event.set())
            await asyncio.wait_for(engine.run(stop_event), timeout=5)
            await beat
            return loop_ticks

        loop_ticks = asyncio.run(scenario())

        assert open_threads[0] is not threading.main_thread()
        assert loop_ticks >= 5


class TestCreateEngineFromConfig:
    def test_creates_engine(self, valid_config):
        config = Config.from_dict(valid_config)
        source = MockObservationSource(ObservationConfig(source_id="injected"))
        detector = DetectorAdapter(ScriptedCapability())
        web_state = MagicMock()

        engine = create_engine_from_config(config, web_state=web_state, source=source, detector=detector)

        assert engine.source is source
        assert engine.ctx.detector is detector
        assert engine.config.period_ms == 200
        assert [c.name for c in engine.ctx.alert_engine.conditions] == [
            "more-than-one-person",
            "device-detected",
        ]
        web_state.set_history.assert_called_once_with(engine.ctx.history)

    def test_builds_opencv_source_by_default(self, valid_config):
        config = Config.from_dict(valid_config)

        engine = create_engine_from_config(config, detector=DetectorAdapter(ScriptedCapability()))

        assert engine.source.source_id == "main-camera"

    def test_rejects_unknown_detector_backend(self, valid_config):
        valid_config["detector"]["backend"] = "onnx"
        config = Config.from_dict(valid_config)

        with pytest.raises(ValueError, match="detector backend"):
            create_engine_from_config(config, source=MockObservationSource(ObservationConfig()))
