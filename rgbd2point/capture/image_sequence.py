#!/usr/bin/env python3
"""
Recorded capture stored as a directory of PNG frames.

Layout::

    capture_dir/
        depth/<frame_id>.png   16-bit depth, raw sensor units
        rgb/<frame_id>.png     8-bit color as written by OpenCV (BGR)
        meta.json              optional: intrinsics + depth_scale_m

Frames are replayed in sorted frame-id order, the depth image of a frame
before its color image.
"""

import json
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import cv2
import numpy as np

from ..errors import CaptureOpenError, DeviceOpenError
from .coordinates import PinholeConverter
from .frames import (
    Frame, FrameSource, NO_RESOLUTION, PixelFormat, Resolution, StreamKind
)

logger = logging.getLogger(__name__)

DEFAULT_INTRINSICS = {"fx": 525.0, "fy": 525.0, "ppx": 319.5, "ppy": 239.5}


def find_frame_files(stream_dir: Path) -> List[Path]:
    """Find all PNG frames of one stream, sorted by frame id."""
    if not stream_dir.is_dir():
        return []
    return sorted(stream_dir.glob("*.png"), key=lambda p: p.stem)


class ImageSequenceSource(FrameSource):
    """Replays a directory of depth and color PNG images."""

    def __init__(self, capture_dir, intrinsics: Optional[dict] = None, depth_scale: float = 0.001):
        """
        Args:
            capture_dir: Directory containing depth/, rgb/ and meta.json
            intrinsics: Fallback intrinsics (fx, fy, ppx, ppy) when meta.json is absent
            depth_scale: Fallback metres per depth unit when meta.json is absent
        """
        self.capture_dir = Path(capture_dir)
        self.depth_dir = self.capture_dir / "depth"
        self.rgb_dir = self.capture_dir / "rgb"
        self.meta_path = self.capture_dir / "meta.json"

        self._fallback_intrinsics = dict(intrinsics or DEFAULT_INTRINSICS)
        self._fallback_depth_scale = depth_scale

        self._depth_files: List[Path] = []
        self._color_files: List[Path] = []
        self._depth_resolution = NO_RESOLUTION
        self._color_resolution = NO_RESOLUTION
        self._depth_format = PixelFormat.DEPTH_1_MM
        self._converter: Optional[PinholeConverter] = None
        self._opened = False

    def open(self) -> None:
        if not self.capture_dir.is_dir():
            raise CaptureOpenError(f"Capture directory not found: {self.capture_dir}")

        intrinsics, depth_scale = self._load_metadata()
        try:
            self._converter = PinholeConverter.from_intrinsics(intrinsics, depth_scale)
        except (TypeError, ValueError) as e:
            raise DeviceOpenError(f"Invalid intrinsics for {self.capture_dir}: {e}") from e
        self._depth_format = PixelFormat.for_depth_scale(depth_scale)

        self._depth_files = find_frame_files(self.depth_dir)
        self._color_files = find_frame_files(self.rgb_dir)

        self._depth_resolution = self._probe_resolution(self._depth_files, StreamKind.DEPTH)
        self._color_resolution = self._probe_resolution(self._color_files, StreamKind.COLOR)

        if not self.has_depth and not self.has_color:
            raise DeviceOpenError(f"No readable depth or color frames in {self.capture_dir}")

        self._opened = True
        logger.info(
            f"Opened image capture {self.capture_dir}: "
            f"{len(self._depth_files)} depth frames ({self._depth_resolution}), "
            f"{len(self._color_files)} color frames ({self._color_resolution})"
        )

    def close(self) -> None:
        self._opened = False

    def frames(self) -> Iterator[Frame]:
        if not self._opened:
            raise DeviceOpenError("Capture is not open")

        entries: List[Tuple[str, int, StreamKind, Path]] = []
        if self.has_depth:
            entries.extend((p.stem, 0, StreamKind.DEPTH, p) for p in self._depth_files)
        if self.has_color:
            entries.extend((p.stem, 1, StreamKind.COLOR, p) for p in self._color_files)
        entries.sort(key=lambda e: (e[0], e[1]))

        frame_numbers = {StreamKind.DEPTH: 0, StreamKind.COLOR: 0}
        for _, _, stream, path in entries:
            frame = self._read_frame(path, stream, frame_numbers[stream])
            if frame is None:
                continue
            frame_numbers[stream] += 1
            yield frame

        logger.info("Finished reading recording.")

    @property
    def depth_resolution(self) -> Resolution:
        return self._depth_resolution

    @property
    def color_resolution(self) -> Resolution:
        return self._color_resolution

    @property
    def converter(self) -> Optional[PinholeConverter]:
        return self._converter

    def _load_metadata(self) -> Tuple[dict, float]:
        """Read intrinsics and depth scale from meta.json, or use the fallbacks."""
        if not self.meta_path.exists():
            logger.warning(f"No meta.json in {self.capture_dir}, using default intrinsics")
            return self._fallback_intrinsics, self._fallback_depth_scale

        try:
            with self.meta_path.open('r') as f:
                metadata = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DeviceOpenError(f"Failed to read {self.meta_path}: {e}") from e

        if not isinstance(metadata, dict):
            raise DeviceOpenError(f"{self.meta_path} must hold a JSON object")

        intrinsics = metadata.get("intrinsics", self._fallback_intrinsics)
        if not isinstance(intrinsics, dict):
            raise DeviceOpenError(f"Intrinsics in {self.meta_path} must be a JSON object")
        missing = [key for key in ("fx", "fy", "ppx", "ppy") if key not in intrinsics]
        if missing:
            raise DeviceOpenError(f"Intrinsics in {self.meta_path} lack {missing}")

        try:
            depth_scale = float(metadata.get("depth_scale_m", self._fallback_depth_scale))
        except (TypeError, ValueError) as e:
            raise DeviceOpenError(f"Invalid depth_scale_m in {self.meta_path}: {e}") from e
        return intrinsics, depth_scale

    def _probe_resolution(self, files: List[Path], stream: StreamKind) -> Resolution:
        """Declared stream resolution is the size of its first readable frame."""
        if not files:
            logger.warning(f"Couldn't create {stream.value} stream: no frames in {self.capture_dir}")
            return NO_RESOLUTION

        for path in files:
            image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
            if image is not None:
                height, width = image.shape[:2]
                return Resolution(width, height)

        logger.warning(f"Couldn't create {stream.value} stream: no readable frames")
        return NO_RESOLUTION

    def _read_frame(self, path: Path, stream: StreamKind, frame_number: int) -> Optional[Frame]:
        image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if image is None:
            logger.warning(f"Skipping unreadable {stream.value} frame: {path.name}")
            return None

        if stream is StreamKind.DEPTH:
            if image.ndim == 2 and image.dtype == np.uint16:
                pixel_format = self._depth_format
            else:
                pixel_format = PixelFormat.UNKNOWN
        elif image.ndim == 3 and image.dtype == np.uint8 and image.shape[2] == 3:
            pixel_format = PixelFormat.BGR888
        elif image.ndim == 3 and image.dtype == np.uint8 and image.shape[2] == 4:
            pixel_format = PixelFormat.BGRA8888
        else:
            pixel_format = PixelFormat.UNKNOWN

        return Frame(
            stream=stream,
            pixel_format=pixel_format,
            data=image,
            frame_number=frame_number,
            format_name=f"png/{image.dtype}x{1 if image.ndim == 2 else image.shape[2]}",
        )
