"""
Frame accumulation and point projection.

This module averages depth and color over all frames of a capture and turns
the averages into a colored point cloud.
"""

from .accumulator import (
    AccumulationBuffer,
    FrameAccumulator,
    DEFAULT_DEPTH_THRESHOLD
)
from .index_mapper import map_depth_to_color, map_depth_to_color_grid
from .point_cloud import PointCloud, PointCloudAssembler
from .projector import PointProjector, normalize_colors

__all__ = [
    "AccumulationBuffer",
    "FrameAccumulator",
    "DEFAULT_DEPTH_THRESHOLD",
    "map_depth_to_color",
    "map_depth_to_color_grid",
    "PointCloud",
    "PointCloudAssembler",
    "PointProjector",
    "normalize_colors"
]
