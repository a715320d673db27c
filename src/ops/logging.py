"""
Root logger configuration for the monitor process.

Everything logs through the root logger (module code calls logging.info
and friends directly), so one basicConfig call covers the detector,
alert engine and web server.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Per-frame chatter from these would drown out alert lines at INFO
QUIET_LOGGERS = ("ultralytics", "uvicorn.access")


def setup_logging(log_path: str, log_level: str) -> None:
    path = Path(log_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.getLevelName(log_level.upper()),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(path, encoding="utf-8"),
            logging.StreamHandler(),
        ],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
