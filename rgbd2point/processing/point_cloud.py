"""
Colored point cloud container and its assembler.
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class PointCloud:
    """Points with float32 positions and 8-bit RGB colors."""
    positions: np.ndarray
    colors: np.ndarray
    capacity: int

    @property
    def count(self) -> int:
        return int(self.positions.shape[0])

    def __len__(self) -> int:
        return self.count

    def is_empty(self) -> bool:
        return self.count == 0


class PointCloudAssembler:
    """
    Collects projected points into buffers preallocated for ``capacity`` points.

    ``build()`` fixes the point count and returns the trimmed cloud; the
    assembler accepts no points afterwards.
    """

    def __init__(self, capacity: int):
        if capacity < 0:
            raise ValueError(f"Capacity must be non-negative, got {capacity}")
        self.capacity = capacity
        self._positions = np.zeros((capacity, 3), dtype=np.float32)
        self._colors = np.zeros((capacity, 3), dtype=np.uint8)
        self._count = 0
        self._built = False

    @property
    def count(self) -> int:
        return self._count

    def append(self, positions: np.ndarray, colors: np.ndarray) -> None:
        """Append a batch of (N, 3) positions and (N, 3) colors."""
        if self._built:
            raise ValueError("Point cloud already built")

        positions = np.asarray(positions, dtype=np.float32).reshape(-1, 3)
        colors = np.asarray(colors).reshape(-1, 3)
        n = positions.shape[0]
        if colors.shape[0] != n:
            raise ValueError(f"Got {n} positions but {colors.shape[0]} colors")
        if self._count + n > self.capacity:
            raise ValueError(f"Appending {n} points exceeds capacity {self.capacity}")

        self._positions[self._count:self._count + n] = positions
        self._colors[self._count:self._count + n] = colors
        self._count += n

    def build(self) -> PointCloud:
        """Trim to the appended points and freeze."""
        self._built = True
        return PointCloud(
            positions=self._positions[:self._count].copy(),
            colors=self._colors[:self._count].copy(),
            capacity=self.capacity,
        )
