"""
Recorded RGB-D capture playback.

This module turns a recording on disk into a finite sequence of depth and
color frames, plus the depth-to-world transform of its depth camera.
"""

from pathlib import Path
from typing import Optional

from ..errors import CaptureOpenError
from .coordinates import DepthToWorldConverter, PinholeConverter
from .frames import (
    Frame,
    FrameSource,
    NO_RESOLUTION,
    PixelFormat,
    Resolution,
    StreamKind,
)
from .image_sequence import ImageSequenceSource


def open_capture(path, settings: Optional[dict] = None) -> FrameSource:
    """
    Create the frame source matching a capture path (not yet opened).

    A directory is read as a PNG image sequence, a ``.bag`` file is replayed
    with the RealSense SDK.
    """
    capture_settings = (settings or {}).get('capture', {})
    path = Path(path)

    if path.is_dir():
        return ImageSequenceSource(
            path,
            intrinsics=capture_settings.get('default_intrinsics'),
            depth_scale=capture_settings.get('depth_scale_m', 0.001),
        )

    if path.suffix.lower() == ".bag":
        try:
            from .realsense_playback import RealSensePlaybackSource
        except ImportError as e:
            raise CaptureOpenError(f"RealSense recordings need pyrealsense2: {e}") from e
        return RealSensePlaybackSource(
            path, read_timeout_ms=capture_settings.get('read_timeout_ms', 100)
        )

    raise CaptureOpenError(f"Unsupported capture: {path} (expected a directory or a .bag file)")


__all__ = [
    "DepthToWorldConverter",
    "Frame",
    "FrameSource",
    "ImageSequenceSource",
    "NO_RESOLUTION",
    "PinholeConverter",
    "PixelFormat",
    "Resolution",
    "StreamKind",
    "open_capture",
]
