"""
The contract a video source offers the sampling loop.

The sampler never blocks on a camera: on every tick it asks is_ready()
and, only if that says yes, takes the current frame with read().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Settings shared by every source.

    resolution and fps are requests; None leaves the device default.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class ObservationSource(ABC):
    """
    Base class for frame providers.

    Subclasses implement open(), read() and close(), and report each
    frame they hand out through _mark_frame() so is_ready() knows the
    current stream dimensions.

        with SomeSource(config) as source:
            for frame_data in source:
                ...
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0
        self._last_size: Optional[Tuple[int, int]] = None

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Frames delivered since open()."""
        return self._frame_index

    def is_ready(self) -> bool:
        """Open, and the latest frame had non-zero width and height."""
        if not self._is_open or not self._last_size:
            return False
        return min(self._last_size) > 0

    def _mark_frame(self, frame_data: Optional[FrameData]) -> Optional[FrameData]:
        if frame_data is not None:
            self._last_size = frame_data.size
        return frame_data

    @abstractmethod
    def open(self) -> None:
        """Acquire the device. Raises RuntimeError if it cannot be opened."""

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Current frame, or None when nothing is available right now."""

    @abstractmethod
    def close(self) -> None:
        """Release the device. Calling it twice is harmless."""

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")
        frame_data = self.read()
        while frame_data is not None:
            yield frame_data
            frame_data = self.read()
