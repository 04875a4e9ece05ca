#!/usr/bin/env python3
"""
Recorded capture stored as an Intel RealSense ``.bag`` file.

Playback runs without repeat and without real-time pacing, so every recorded
frame is delivered exactly once. A read timeout with no frame ready is taken
as the end of the recording.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional

import numpy as np
import pyrealsense2 as rs

from ..errors import CaptureOpenError, DeviceOpenError
from .coordinates import DepthToWorldConverter
from .frames import (
    Frame, FrameSource, NO_RESOLUTION, PixelFormat, Resolution, StreamKind
)

logger = logging.getLogger(__name__)

_COLOR_FORMATS = {
    rs.format.rgb8: PixelFormat.RGB888,
    rs.format.bgr8: PixelFormat.BGR888,
    rs.format.rgba8: PixelFormat.RGBA8888,
    rs.format.bgra8: PixelFormat.BGRA8888,
}

_STREAM_KINDS = {
    rs.stream.depth: StreamKind.DEPTH,
    rs.stream.color: StreamKind.COLOR,
}


class RealSenseConverter(DepthToWorldConverter):
    """Deprojects depth pixels with the recorded depth stream intrinsics."""

    def __init__(self, intrinsics, depth_scale: float):
        """
        Args:
            intrinsics: ``rs.intrinsics`` of the depth stream
            depth_scale: Metres per raw depth unit
        """
        self.intrinsics = intrinsics
        self.depth_scale = float(depth_scale)

    def depth_to_world(self, xs, ys, depths):
        points = np.empty((len(xs), 3), dtype=np.float32)
        for i, (x, y, depth) in enumerate(zip(xs, ys, depths)):
            points[i] = rs.rs2_deproject_pixel_to_point(
                self.intrinsics, [float(x), float(y)], float(depth) * self.depth_scale
            )
        return points


class RealSensePlaybackSource(FrameSource):
    """Replays depth and color frames from a RealSense recording."""

    def __init__(self, bag_path, read_timeout_ms: int = 100):
        """
        Args:
            bag_path: Path to the .bag recording
            read_timeout_ms: Poll timeout that marks the end of the recording
        """
        self.bag_path = Path(bag_path)
        self.read_timeout_ms = int(read_timeout_ms)

        self._pipeline = None
        self._depth_resolution = NO_RESOLUTION
        self._color_resolution = NO_RESOLUTION
        self._depth_format = PixelFormat.DEPTH_1_MM
        self._converter: Optional[RealSenseConverter] = None

    def open(self) -> None:
        if not self.bag_path.is_file():
            raise CaptureOpenError(f"Recording not found: {self.bag_path}")

        pipeline = rs.pipeline()
        config = rs.config()
        try:
            config.enable_device_from_file(str(self.bag_path), repeat_playback=False)
        except RuntimeError as e:
            raise CaptureOpenError(f"Couldn't initialize playback of {self.bag_path}: {e}") from e

        try:
            profile = pipeline.start(config)
        except RuntimeError as e:
            raise DeviceOpenError(f"Couldn't open device\n{e}") from e

        self._pipeline = pipeline
        device = profile.get_device()
        device.as_playback().set_real_time(False)

        depth_profile = self._find_stream(profile, rs.stream.depth)
        color_profile = self._find_stream(profile, rs.stream.color)

        if depth_profile is not None:
            self._depth_resolution = Resolution(depth_profile.width(), depth_profile.height())
            depth_scale = device.first_depth_sensor().get_depth_scale()
            self._depth_format = PixelFormat.for_depth_scale(depth_scale)
            self._converter = RealSenseConverter(depth_profile.get_intrinsics(), depth_scale)
            logger.info(f"Depth stream: {self._depth_resolution}, scale {depth_scale} m/unit")
        else:
            logger.warning(f"Couldn't create depth stream: not recorded in {self.bag_path.name}")

        if color_profile is not None:
            self._color_resolution = Resolution(color_profile.width(), color_profile.height())
            logger.info(f"Color stream: {self._color_resolution}, format {color_profile.format()}")
        else:
            logger.warning(f"Couldn't create color stream: not recorded in {self.bag_path.name}")

    def close(self) -> None:
        if self._pipeline is None:
            return
        try:
            self._pipeline.stop()
        except RuntimeError as e:
            logger.debug(f"Pipeline stop: {e}")
        self._pipeline = None

    def frames(self) -> Iterator[Frame]:
        if self._pipeline is None:
            raise DeviceOpenError("Recording is not open")

        while True:
            success, frameset = self._pipeline.try_wait_for_frames(self.read_timeout_ms)
            if not success:
                logger.info("Finished reading recording.")
                return

            for rs_frame in frameset:
                frame = self._to_frame(rs_frame)
                if frame is not None:
                    yield frame

    @property
    def depth_resolution(self) -> Resolution:
        return self._depth_resolution

    @property
    def color_resolution(self) -> Resolution:
        return self._color_resolution

    @property
    def converter(self) -> Optional[RealSenseConverter]:
        return self._converter

    @staticmethod
    def _find_stream(profile, stream_type):
        for stream_profile in profile.get_streams():
            if stream_profile.stream_type() == stream_type:
                return stream_profile.as_video_stream_profile()
        return None

    def _to_frame(self, rs_frame) -> Optional[Frame]:
        stream_profile = rs_frame.get_profile()
        stream = _STREAM_KINDS.get(stream_profile.stream_type())
        if stream is None:
            logger.debug(f"Unexpected stream: {stream_profile.stream_type()}")
            return None

        rs_format = stream_profile.format()
        if stream is StreamKind.DEPTH:
            pixel_format = self._depth_format if rs_format == rs.format.z16 else PixelFormat.UNKNOWN
        else:
            pixel_format = _COLOR_FORMATS.get(rs_format, PixelFormat.UNKNOWN)

        # Copy out of the SDK-owned buffer before the frame is released
        data = np.array(rs_frame.get_data(), copy=True)
        return Frame(
            stream=stream,
            pixel_format=pixel_format,
            data=data,
            frame_number=rs_frame.get_frame_number(),
            format_name=str(rs_format),
        )
