"""
Camera source backed by cv2.VideoCapture.

device_id selects what is opened:
- int: local camera index (webcam)
- "rtsp://..." / "rtsps://...": network camera
- any other str: video file path (handy for replaying a recorded session)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationSource, ObservationConfig
from .rtsp_utils import sanitize_url

RTSP_SCHEMES = ("rtsp://", "rtsps://")

_ROTATIONS = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Attributes:
        device_id: Camera index, RTSP URL or video file path.
        rtsp_transport: "tcp" or "udp" for network cameras.
        buffer_size: Driver-side frame buffer; 1 keeps the sampled frame current.
        max_retries: Open attempts (with backoff) made by open().
        reconnect_interval_s: Minimum gap between reconnect attempts after
            a live camera drops.
        swap_rb: Treat input as RGB and convert to BGR.
        rotate: Clockwise rotation in degrees (0, 90, 180, 270).
        flip_horizontal: Mirror the image (selfie view for desk webcams).
        flip_vertical: Flip upside down.
    """
    device_id: Union[int, str] = 0
    rtsp_transport: str = "tcp"
    buffer_size: int = 1
    max_retries: int = 3
    reconnect_interval_s: float = 2.0
    swap_rb: bool = False
    rotate: int = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        fields = {
            key: camera_cfg[key]
            for key in (
                "device_id", "rtsp_transport", "buffer_size", "max_retries", "reconnect_interval_s",
                "swap_rb", "flip_horizontal", "flip_vertical", "fps",
            )
            if camera_cfg.get(key) is not None
        }
        resolution = camera_cfg.get("resolution")
        return cls(
            source_id=source_id,
            resolution=tuple(resolution) if resolution else None,
            rotate=int(camera_cfg.get("rotate") or 0),
            **fields,
        )


class OpenCVSource(ObservationSource):
    """
    ObservationSource over cv2.VideoCapture.

    open() retries with backoff and may block; the engine runs it off the
    event loop. Once sampling, nothing here sleeps: a dropped live camera
    is released and is_ready() makes at most one reconnect attempt per
    reconnect_interval_s, reporting not-ready until frames flow again so
    the sampler skips those ticks. A finished video file stays not-ready.

    Example:
        with OpenCVSource(OpenCVSourceConfig(device_id=0)) as cam:
            frame_data = cam.read()
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._cv_config = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._read_failures = 0
        self._exhausted = False
        self._next_reconnect = 0.0

    @property
    def device_id(self) -> Union[int, str]:
        return self._cv_config.device_id

    @property
    def is_rtsp(self) -> bool:
        return isinstance(self.device_id, str) and self.device_id.startswith(RTSP_SCHEMES)

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and not self.is_rtsp and os.path.exists(self.device_id)

    @property
    def exhausted(self) -> bool:
        """True once a video file has played to the end."""
        return self._exhausted

    def open(self) -> None:
        if self._is_open:
            return
        self._cap = self._connect(attempts=max(1, self._cv_config.max_retries))
        if self._cap is None:
            raise RuntimeError(
                f"Could not open camera {sanitize_url(self.device_id)} "
                f"after {self._cv_config.max_retries} attempts"
            )
        self._is_open = True
        self._exhausted = False
        self._frame_index = 0
        self._last_size = None
        logging.info(f"Camera opened: {sanitize_url(self.device_id)} as {self.source_id}")

    def is_ready(self) -> bool:
        if not self._is_open or self._exhausted:
            return False
        if self._cap is None:
            self._maybe_reconnect()
        if self._cap is None or not self._cap.isOpened():
            return False
        if self._last_size is not None:
            return super().is_ready()
        # No frame sampled yet: ask the driver for the stream size
        width = int(self._cap.get(cv2.CAP_PROP_FRAME_WIDTH))
        height = int(self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
        return width > 0 and height > 0

    def _connect(self, attempts: int = 1) -> Optional[cv2.VideoCapture]:
        """Open the device; sleeps between attempts only when attempts > 1."""
        cfg = self._cv_config
        if self.is_rtsp:
            os.environ["OPENCV_FFMPEG_CAPTURE_OPTIONS"] = f"rtsp_transport;{cfg.rtsp_transport}"

        for attempt in range(1, attempts + 1):
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._configure(cap)
                self._read_failures = 0
                return cap
            cap.release()
            if attempt < attempts:
                delay = min(2 ** attempt, 10)
                logging.warning(
                    f"Camera {sanitize_url(self.device_id)} not available "
                    f"(attempt {attempt}/{attempts}), retrying in {delay}s"
                )
                time.sleep(delay)
        return None

    def _maybe_reconnect(self) -> None:
        now = time.monotonic()
        if now < self._next_reconnect:
            return
        self._next_reconnect = now + self._cv_config.reconnect_interval_s
        self._cap = self._connect(attempts=1)
        if self._cap is not None:
            logging.info(f"Camera {self.source_id} reconnected")

    def _configure(self, cap: cv2.VideoCapture) -> None:
        # Only local cameras honour capture properties
        if not isinstance(self.device_id, int):
            return
        cfg = self._cv_config
        if cfg.resolution:
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, cfg.resolution[0])
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, cfg.resolution[1])
        if cfg.fps:
            cap.set(cv2.CAP_PROP_FPS, cfg.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._exhausted or self._cap is None:
            return None

        ok, image = self._cap.read()
        if not ok or image is None:
            self._on_read_failure()
            return None

        self._read_failures = 0
        self._frame_index += 1
        return self._mark_frame(FrameData.from_numpy(
            self._apply_transforms(image),
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        ))

    def _on_read_failure(self) -> None:
        self._last_size = None
        self._read_failures += 1
        if self.is_file:
            self._exhausted = True
            logging.info(f"Video file finished: {self.device_id}")
            return

        logging.warning(f"Camera {self.source_id} read failed ({self._read_failures}), will reconnect")
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._next_reconnect = 0.0

    def _apply_transforms(self, image: np.ndarray) -> np.ndarray:
        cfg = self._cv_config
        if cfg.rotate in _ROTATIONS:
            image = cv2.rotate(image, _ROTATIONS[cfg.rotate])

        flip_code = {
            (True, True): -1,
            (True, False): 1,
            (False, True): 0,
        }.get((cfg.flip_horizontal, cfg.flip_vertical))
        if flip_code is not None:
            image = cv2.flip(image, flip_code)

        if cfg.swap_rb:
            image = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
        return image

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        self._last_size = None
        logging.info(f"Camera closed: {self.source_id}")


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "camera") -> ObservationSource:
    """Build the observation source named by camera.backend."""
    backend = camera_cfg.get("backend", "opencv")
    if backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {backend}")
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
