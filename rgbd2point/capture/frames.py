"""
Frame and frame-source types shared by the capture backends.

A frame source turns a recording into a finite, lazily produced sequence of
``Frame`` objects. The conversion pipeline only sees this interface, never the
playback library behind it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, NamedTuple, Optional

import numpy as np

from .coordinates import DepthToWorldConverter


class StreamKind(Enum):
    """Sensor channels carried by a recording."""
    DEPTH = "depth"
    COLOR = "color"


class PixelFormat(Enum):
    """Pixel layouts a frame can carry."""
    DEPTH_1_MM = "depth_1_mm"
    DEPTH_100_UM = "depth_100_um"
    RGB888 = "rgb888"
    BGR888 = "bgr888"
    RGBA8888 = "rgba8888"
    BGRA8888 = "bgra8888"
    UNKNOWN = "unknown"

    @classmethod
    def for_depth_scale(cls, depth_scale: float) -> "PixelFormat":
        """Depth format matching a metres-per-unit scale (0.1 mm or 1 mm)."""
        if abs(depth_scale - 0.0001) < 1e-9:
            return cls.DEPTH_100_UM
        return cls.DEPTH_1_MM

    @property
    def is_depth(self) -> bool:
        return self in (PixelFormat.DEPTH_1_MM, PixelFormat.DEPTH_100_UM)

    @property
    def is_color(self) -> bool:
        return self in (PixelFormat.RGB888, PixelFormat.BGR888,
                        PixelFormat.RGBA8888, PixelFormat.BGRA8888)


class Resolution(NamedTuple):
    """Image size in pixels."""
    width: int
    height: int

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


NO_RESOLUTION = Resolution(0, 0)


@dataclass
class Frame:
    """One image delivered by a stream."""
    stream: StreamKind
    pixel_format: PixelFormat
    data: np.ndarray
    frame_number: int = 0
    format_name: Optional[str] = None  # backend's own name, kept for diagnostics

    @property
    def resolution(self) -> Resolution:
        height, width = self.data.shape[:2]
        return Resolution(int(width), int(height))


class FrameSource(ABC):
    """
    A recorded RGB-D capture.

    Sources are opened once, iterated once with ``frames()``, and closed.
    ``frames()`` ends when the recording is exhausted; on a device this is a
    read timeout with no stream ready.
    """

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()
        return False

    @abstractmethod
    def open(self) -> None:
        """Open the capture and its depth and color streams."""

    @abstractmethod
    def close(self) -> None:
        """Release the capture."""

    @abstractmethod
    def frames(self) -> Iterator[Frame]:
        """Yield frames from both streams until the recording ends."""

    @property
    @abstractmethod
    def depth_resolution(self) -> Resolution:
        """Declared depth stream resolution, ``NO_RESOLUTION`` when unavailable."""

    @property
    @abstractmethod
    def color_resolution(self) -> Resolution:
        """Declared color stream resolution, ``NO_RESOLUTION`` when unavailable."""

    @property
    @abstractmethod
    def converter(self) -> Optional[DepthToWorldConverter]:
        """Depth-to-world transform of the depth stream."""

    @property
    def has_depth(self) -> bool:
        return self.depth_resolution.pixel_count > 0

    @property
    def has_color(self) -> bool:
        return self.color_resolution.pixel_count > 0
