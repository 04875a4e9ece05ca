#!/usr/bin/env python3
"""
Per-pixel accumulation of depth and color frames.

Depth samples are averaged per pixel with outlier rejection: a non-zero
sample is accepted when the pixel has no accepted sample yet, or when it lies
strictly within ``depth_threshold`` of the average of the samples accepted so
far. The band follows the cumulative average, so the first accepted sample
anchors it; a wrong first sample keeps later correct samples out.

Color is summed unconditionally per pixel and normalized by one global count
of color frames.
"""

import logging
from dataclasses import dataclass, field

import cv2
import numpy as np

from ..capture.frames import Frame, PixelFormat, Resolution, StreamKind
from ..errors import PipelineStateError, ResolutionMismatchError

logger = logging.getLogger(__name__)

DEFAULT_DEPTH_THRESHOLD = 300

_TO_RGB = {
    PixelFormat.BGR888: cv2.COLOR_BGR2RGB,
    PixelFormat.RGBA8888: cv2.COLOR_RGBA2RGB,
    PixelFormat.BGRA8888: cv2.COLOR_BGRA2RGB,
}


@dataclass
class AccumulationBuffer:
    """Running per-pixel sums for one conversion run."""
    depth_resolution: Resolution
    color_resolution: Resolution
    depth_sums: np.ndarray = field(init=False)
    depth_counts: np.ndarray = field(init=False)
    color_sums: np.ndarray = field(init=False)
    color_frames: int = 0
    depth_frames: int = 0
    rejected_samples: int = 0
    skipped_frames: int = 0

    def __post_init__(self):
        self.depth_resolution = Resolution(*self.depth_resolution)
        self.color_resolution = Resolution(*self.color_resolution)
        dw, dh = self.depth_resolution
        cw, ch = self.color_resolution
        self.depth_sums = np.zeros((dh, dw), dtype=np.int64)
        self.depth_counts = np.zeros((dh, dw), dtype=np.int64)
        self.color_sums = np.zeros((ch, cw, 3), dtype=np.int64)

    @property
    def valid_depth_pixels(self) -> int:
        """Number of depth pixels with at least one accepted sample."""
        return int(np.count_nonzero(self.depth_counts))

    def average_depth(self) -> np.ndarray:
        """Per-pixel average depth, 0 where nothing was accepted."""
        average = np.zeros(self.depth_sums.shape, dtype=np.float64)
        np.divide(self.depth_sums, self.depth_counts, out=average, where=self.depth_counts > 0)
        return average


class FrameAccumulator:
    """Ingests frames one at a time into an ``AccumulationBuffer``."""

    def __init__(self, depth_resolution, color_resolution,
                 depth_threshold: float = DEFAULT_DEPTH_THRESHOLD,
                 strict_resolution: bool = True):
        """
        Initialize the accumulator.

        Args:
            depth_resolution: (width, height) of the depth stream
            color_resolution: (width, height) of the color stream
            depth_threshold: Rejection band around the running average (raw depth units)
            strict_resolution: Raise on frames that do not match their stream
                resolution instead of skipping them
        """
        self.buffer = AccumulationBuffer(depth_resolution, color_resolution)
        self.depth_threshold = depth_threshold
        self.strict_resolution = strict_resolution
        self._closed = False

    def ingest(self, frame: Frame) -> None:
        """Add one frame to the buffer."""
        if self._closed:
            raise PipelineStateError("Accumulation already finished")

        if frame.pixel_format.is_depth and frame.stream is StreamKind.DEPTH:
            if self._check_resolution(frame, self.buffer.depth_resolution):
                self._ingest_depth(frame.data)
        elif frame.pixel_format.is_color and frame.stream is StreamKind.COLOR:
            if self._check_resolution(frame, self.buffer.color_resolution):
                self._ingest_color(frame)
        else:
            logger.warning(
                f"Unknown format: {frame.format_name or frame.pixel_format.value} "
                f"on {frame.stream.value} frame {frame.frame_number}, skipping"
            )
            self.buffer.skipped_frames += 1

    def finish(self) -> AccumulationBuffer:
        """End accumulation and hand the buffer over for projection."""
        self._closed = True
        logger.info(
            f"Accumulated {self.buffer.depth_frames} depth and {self.buffer.color_frames} color frames, "
            f"{self.buffer.rejected_samples} depth samples rejected, "
            f"{self.buffer.skipped_frames} frames skipped"
        )
        return self.buffer

    def _check_resolution(self, frame: Frame, expected: Resolution) -> bool:
        actual = frame.resolution
        if actual == expected:
            return True
        if self.strict_resolution:
            raise ResolutionMismatchError(frame.stream.value, expected, actual)
        logger.warning(
            f"{frame.stream.value} frame {frame.frame_number} is {actual}, "
            f"expected {expected}, skipping"
        )
        self.buffer.skipped_frames += 1
        return False

    def _ingest_depth(self, depth: np.ndarray) -> None:
        buf = self.buffer
        samples = depth.astype(np.int64)
        counts = buf.depth_counts

        running_average = np.zeros(samples.shape, dtype=np.float64)
        np.divide(buf.depth_sums, counts, out=running_average, where=counts > 0)

        has_reading = samples != 0
        within_band = np.abs(running_average - samples) < self.depth_threshold
        accepted = has_reading & ((counts == 0) | within_band)

        buf.depth_sums[accepted] += samples[accepted]
        counts[accepted] += 1
        buf.rejected_samples += int(np.count_nonzero(has_reading & ~accepted))
        buf.depth_frames += 1

    def _ingest_color(self, frame: Frame) -> None:
        pixels = frame.data
        conversion = _TO_RGB.get(frame.pixel_format)
        if conversion is not None:
            pixels = cv2.cvtColor(pixels, conversion)

        self.buffer.color_sums += pixels[:, :, :3]
        self.buffer.color_frames += 1
