"""
Depth-to-world coordinate transforms.

A converter maps depth pixel coordinates plus a depth value (in the raw
sensor unit) to 3D points in the camera frame, in metres.
"""

from abc import ABC, abstractmethod

import numpy as np


class DepthToWorldConverter(ABC):
    """Camera model of a depth stream."""

    @abstractmethod
    def depth_to_world(self, xs: np.ndarray, ys: np.ndarray, depths: np.ndarray) -> np.ndarray:
        """
        Project depth pixels into world coordinates.

        Args:
            xs: Pixel columns
            ys: Pixel rows
            depths: Depth values in raw sensor units

        Returns:
            (N, 3) float32 array of x, y, z
        """


class PinholeConverter(DepthToWorldConverter):
    """Undistorted pinhole camera model."""

    def __init__(self, fx: float, fy: float, cx: float, cy: float, depth_scale: float = 0.001):
        """
        Args:
            fx, fy: Focal lengths in pixels
            cx, cy: Principal point in pixels
            depth_scale: Metres per raw depth unit
        """
        if fx == 0 or fy == 0:
            raise ValueError("Focal lengths must be non-zero")
        self.fx = float(fx)
        self.fy = float(fy)
        self.cx = float(cx)
        self.cy = float(cy)
        self.depth_scale = float(depth_scale)

    @classmethod
    def from_intrinsics(cls, intrinsics: dict, depth_scale: float = 0.001) -> "PinholeConverter":
        """Create from a RealSense-style intrinsics dict (fx, fy, ppx, ppy)."""
        return cls(
            fx=intrinsics["fx"],
            fy=intrinsics["fy"],
            cx=intrinsics["ppx"],
            cy=intrinsics["ppy"],
            depth_scale=depth_scale,
        )

    def depth_to_world(self, xs, ys, depths):
        z = np.asarray(depths, dtype=np.float64) * self.depth_scale
        x = (np.asarray(xs, dtype=np.float64) - self.cx) * z / self.fx
        y = (np.asarray(ys, dtype=np.float64) - self.cy) * z / self.fy
        return np.column_stack((x, y, z)).astype(np.float32)

    def __repr__(self):
        return (f"PinholeConverter(fx={self.fx}, fy={self.fy}, cx={self.cx}, "
                f"cy={self.cy}, depth_scale={self.depth_scale})")
