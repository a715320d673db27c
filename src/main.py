"""
Detection monitor entry point.

Samples the camera on a fixed period, runs object detection on each
sampled frame, draws the detections, and raises debounced alerts when
more than one person or a cell phone is in view.

Usage:
    python src/main.py --config config/config.yaml --display

Arguments:
    --config: Path to configuration file
    --display: Show the annotated feed in a window (press 'q' to quit)
    --no-web: Do not start the status API
"""

import argparse
import asyncio
import logging
import os
import signal
import sys
import threading
from typing import Any, Dict, Optional, Tuple

import cv2
import uvicorn
import yaml

from models.config import Config
from observation.rtsp_utils import inject_rtsp_credentials
from ops.logging import setup_logging
from pipeline.engine import MonitorEngine, create_engine_from_config
from web.app import create_app
from web.state import state as web_state

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
VALID_CONDITION_KINDS = ('count_above', 'present')
VALID_SINKS = ('log', 'bell', 'sound')


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)

    Raises:
        OSError, yaml.YAMLError: If a present config file cannot be read.
    """
    config_dir = os.path.dirname(config_path)
    base_path = os.path.join(config_dir, "default.yaml")
    local_overrides_path = os.path.join(config_dir, "config.yaml")

    merged: Dict[str, Any] = {}
    if os.path.exists(base_path):
        merged = _read_yaml(base_path)
    if os.path.exists(local_overrides_path):
        merged = _deep_merge(merged, _read_yaml(local_overrides_path))

    if (
        os.path.exists(config_path)
        and os.path.abspath(config_path) not in (os.path.abspath(base_path), os.path.abspath(local_overrides_path))
    ):
        merged = _deep_merge(merged, _read_yaml(config_path))

    return merged


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['camera', 'detector', 'alerts', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Camera
    camera = config.get('camera') or {}
    if 'device_id' not in camera:
        return False, "Missing camera.device_id"
    if isinstance(camera['device_id'], bool) or not isinstance(camera['device_id'], (int, str)):
        return False, "camera.device_id must be an integer (index) or string (URL)"
    if isinstance(camera['device_id'], int) and camera['device_id'] < 0:
        return False, "camera.device_id integer must be non-negative"
    if 'resolution' in camera:
        res = camera['resolution']
        if not isinstance(res, list) or len(res) != 2 or not all(isinstance(x, int) and x > 0 for x in res):
            return False, "camera.resolution must be a list of two positive integers [width, height]"
    if camera.get('backend', 'opencv') != 'opencv':
        return False, "camera.backend must be: opencv"

    # Detector
    detector = config.get('detector') or {}
    if detector.get('backend', 'yolo') != 'yolo':
        return False, "detector.backend must be: yolo"
    if not isinstance(detector.get('model'), str) or not detector.get('model'):
        return False, "detector.model is required"
    for key in ('conf_threshold', 'iou_threshold', 'min_score'):
        if key in detector:
            value = detector[key]
            if not isinstance(value, (int, float)) or not (0 <= value <= 1):
                return False, f"detector.{key} must be a number between 0 and 1"
    class_names = detector.get('class_names')
    if class_names is not None and (
        not isinstance(class_names, list) or not all(isinstance(n, str) and n for n in class_names)
    ):
        return False, "detector.class_names must be a list of class name strings"

    # Sampler
    sampler = config.get('sampler') or {}
    if 'period_ms' in sampler:
        period = sampler['period_ms']
        if not isinstance(period, int) or period <= 0:
            return False, "sampler.period_ms must be a positive integer"

    # Alerts
    alerts = config.get('alerts') or {}
    conditions = alerts.get('conditions', [])
    if not isinstance(conditions, list):
        return False, "alerts.conditions must be a list"
    names = set()
    for i, cond in enumerate(conditions):
        if not isinstance(cond, dict):
            return False, f"alerts.conditions[{i}] must be a mapping"
        for key in ('name', 'class_name'):
            if not isinstance(cond.get(key), str) or not cond.get(key):
                return False, f"alerts.conditions[{i}].{key} is required"
        if cond['name'] in names:
            return False, f"alerts.conditions[{i}].name is duplicated: {cond['name']}"
        names.add(cond['name'])
        if cond.get('kind', 'present') not in VALID_CONDITION_KINDS:
            return False, f"alerts.conditions[{i}].kind must be one of: {', '.join(VALID_CONDITION_KINDS)}"
        cooldown = cond.get('cooldown_s', 5.0)
        if not isinstance(cooldown, (int, float)) or cooldown <= 0:
            return False, f"alerts.conditions[{i}].cooldown_s must be a positive number"
        threshold = cond.get('threshold', 0)
        if not isinstance(threshold, int) or threshold < 0:
            return False, f"alerts.conditions[{i}].threshold must be a non-negative integer"
    for sink in alerts.get('sinks', []):
        if sink not in VALID_SINKS:
            return False, f"alerts.sinks entries must be one of: {', '.join(VALID_SINKS)}"

    # Log settings
    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def _attach_display(engine: MonitorEngine, stop_event: asyncio.Event) -> None:
    """Show composed frames in a cv2 window; 'q' requests shutdown."""

    def show(frame_data, detections):
        frame = engine.ctx.latest_frame
        if frame is None:
            return
        cv2.imshow("Detection Monitor", frame)
        if cv2.waitKey(1) & 0xFF == ord('q'):
            stop_event.set()

    engine.add_callback(show)


async def run_monitor(engine: MonitorEngine, display: bool = False) -> None:
    """Run the engine until SIGINT/SIGTERM (or 'q' in the display window)."""
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows: fall back to KeyboardInterrupt
            pass

    if display:
        _attach_display(engine, stop_event)

    try:
        await engine.run(stop_event)
    finally:
        if display:
            cv2.destroyAllWindows()


def _start_web(host: str, port: int) -> None:
    def run_web_app():
        uvicorn.run(create_app(), host=host, port=port, log_level="info")

    web_thread = threading.Thread(target=run_web_app, daemon=True)
    web_thread.start()
    logging.info(f"Web interface started on {host}:{port}")


def main():
    parser = argparse.ArgumentParser(description='Detection Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--display', action='store_true',
                        help='Show annotated video window')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the status API')
    args = parser.parse_args()

    try:
        raw_config = load_config(args.config)
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    inject_rtsp_credentials(raw_config.get("camera", {}))

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = Config.from_dict(raw_config)
    setup_logging(config.log_path, config.log_level)
    logging.info("Starting Detection Monitor")

    engine = create_engine_from_config(config, web_state=web_state)

    if config.web.enabled and not args.no_web:
        _start_web(config.web.host, config.web.port)

    try:
        asyncio.run(run_monitor(engine, display=args.display))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
    finally:
        logging.info("Detection Monitor stopped")


if __name__ == "__main__":
    main()
