#!/usr/bin/env python3
"""
Projection of accumulated depth into a colored point cloud.

Every depth pixel with at least one accepted sample becomes one point, in
row-major order. The position comes from the capture's depth-to-world
transform applied to the averaged depth; the color is the averaged color of
the mapped color pixel.
"""

import logging
from typing import Callable, Optional, Sequence

import numpy as np

from ..capture.coordinates import DepthToWorldConverter
from .accumulator import AccumulationBuffer
from .index_mapper import map_depth_to_color_grid
from .point_cloud import PointCloud, PointCloudAssembler

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_COLOR = (128, 128, 128)

ProgressCallback = Callable[[float, str], None]


def normalize_colors(color_sums: np.ndarray, color_frames: int) -> np.ndarray:
    """
    Average summed colors over the global color frame count.

    Channels are truncated towards zero and clamped to 255.
    """
    if color_frames <= 0:
        raise ValueError("No color frames to normalize by")
    averaged = np.asarray(color_sums, dtype=np.int64) // color_frames
    return np.clip(averaged, 0, 255).astype(np.uint8)


class PointProjector:
    """Turns an ``AccumulationBuffer`` into a ``PointCloud``."""

    def __init__(self, converter: Optional[DepthToWorldConverter],
                 fallback_color: Sequence[int] = DEFAULT_FALLBACK_COLOR):
        """
        Initialize the projector.

        Args:
            converter: Depth-to-world transform of the depth stream
            fallback_color: RGB written for every point when no color frame was seen
        """
        self.converter = converter
        self.fallback_color = np.clip(np.asarray(fallback_color, dtype=np.int64), 0, 255).astype(np.uint8)
        if self.fallback_color.shape != (3,):
            raise ValueError(f"Fallback color must have 3 channels, got {fallback_color}")
        self.progress_callback: Optional[ProgressCallback] = None

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        """Receive (percent, message) after each depth row."""
        self.progress_callback = callback

    def project(self, buffer: AccumulationBuffer) -> PointCloud:
        """Project every depth pixel with accepted samples, row by row."""
        dw, dh = buffer.depth_resolution
        assembler = PointCloudAssembler(dw * dh)

        if buffer.valid_depth_pixels == 0:
            logger.warning("No valid depth samples, point cloud is empty")
            return assembler.build()
        if self.converter is None:
            raise ValueError("Depth samples present but no depth-to-world transform available")

        use_color = buffer.color_frames > 0
        if use_color:
            color_columns, color_rows = map_depth_to_color_grid(
                buffer.depth_resolution, buffer.color_resolution
            )
        else:
            logger.warning(
                f"No color frames accumulated, using fallback color {self.fallback_color.tolist()}"
            )

        for y in range(dh):
            xs = np.flatnonzero(buffer.depth_counts[y])
            if xs.size:
                average_depth = buffer.depth_sums[y, xs] / buffer.depth_counts[y, xs]
                ys = np.full(xs.shape, y, dtype=np.int64)
                positions = self.converter.depth_to_world(xs, ys, average_depth)

                if use_color:
                    sums = buffer.color_sums[color_rows[y], color_columns[xs]]
                    colors = normalize_colors(sums, buffer.color_frames)
                else:
                    colors = np.tile(self.fallback_color, (xs.size, 1))

                assembler.append(positions, colors)

            percent = (y + 1) / dh * 100.0
            logger.debug(f"Projection {percent:.1f}%")
            if self.progress_callback:
                self.progress_callback(percent, f"Projected row {y + 1}/{dh}")

        cloud = assembler.build()
        logger.info(f"Projected {cloud.count} of {cloud.capacity} depth pixels")
        return cloud
