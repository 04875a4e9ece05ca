"""
Nearest-neighbour mapping from depth pixels to color pixels.

The coordinate is scaled by the color/depth resolution ratio along each axis,
truncated, and clamped to the last valid color index. With equal resolutions
the mapping is the identity.
"""

from typing import Tuple

import numpy as np


def _scale_index(index, depth_size: int, color_size: int):
    if depth_size <= 0 or color_size <= 0:
        raise ValueError(f"Resolutions must be positive, got depth {depth_size} / color {color_size}")
    # Integer floor of index * color / depth is the truncated scaled coordinate
    scaled = (index * color_size) // depth_size
    return np.minimum(scaled, color_size - 1)


def map_depth_to_color(x: int, y: int, depth_resolution, color_resolution) -> Tuple[int, int]:
    """
    Map one depth pixel to the color pixel that colors it.

    Args:
        x, y: Depth pixel column and row
        depth_resolution: (width, height) of the depth stream
        color_resolution: (width, height) of the color stream

    Returns:
        (column, row) in the color image
    """
    dw, dh = depth_resolution
    cw, ch = color_resolution
    return int(_scale_index(x, dw, cw)), int(_scale_index(y, dh, ch))


def map_depth_to_color_grid(depth_resolution, color_resolution) -> Tuple[np.ndarray, np.ndarray]:
    """Color column for every depth column, and color row for every depth row."""
    dw, dh = depth_resolution
    cw, ch = color_resolution
    columns = _scale_index(np.arange(dw, dtype=np.int64), dw, cw)
    rows = _scale_index(np.arange(dh, dtype=np.int64), dh, ch)
    return columns, rows
