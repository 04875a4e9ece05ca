#!/usr/bin/env python3
"""
Unit Tests for Depth/Color Index Mapping
"""

import sys
import os
import unittest
import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from rgbd2point.processing.index_mapper import map_depth_to_color, map_depth_to_color_grid


class TestIndexMapper(unittest.TestCase):
    """Test cases for depth-to-color pixel mapping."""

    def test_identity_for_equal_resolutions(self):
        """Equal resolutions map every pixel onto itself."""
        columns, rows = map_depth_to_color_grid((640, 480), (640, 480))
        np.testing.assert_array_equal(columns, np.arange(640))
        np.testing.assert_array_equal(rows, np.arange(480))
        self.assertEqual(map_depth_to_color(123, 45, (640, 480), (640, 480)), (123, 45))

    def test_smaller_color_clamps_to_last_index(self):
        """The last depth pixel maps to the last color pixel."""
        self.assertEqual(map_depth_to_color(639, 479, (640, 480), (320, 240)), (319, 239))
        self.assertEqual(map_depth_to_color(1, 1, (640, 480), (320, 240)), (0, 0))
        self.assertEqual(map_depth_to_color(2, 3, (640, 480), (320, 240)), (1, 1))

    def test_larger_color(self):
        """Upscaling picks every other color pixel."""
        self.assertEqual(map_depth_to_color(0, 0, (320, 240), (640, 480)), (0, 0))
        self.assertEqual(map_depth_to_color(319, 239, (320, 240), (640, 480)), (638, 478))

    def test_non_integral_ratio_truncates(self):
        """Scaled coordinates are truncated, not rounded."""
        columns, rows = map_depth_to_color_grid((4, 3), (3, 2))
        self.assertEqual(columns.tolist(), [0, 0, 1, 2])
        self.assertEqual(rows.tolist(), [0, 0, 1])

    def test_grid_never_out_of_range(self):
        """Every mapped index is a valid color index."""
        for depth_res, color_res in [((640, 480), (1280, 720)), ((848, 480), (640, 360)), ((7, 5), (3, 11))]:
            columns, rows = map_depth_to_color_grid(depth_res, color_res)
            self.assertGreaterEqual(columns.min(), 0)
            self.assertLessEqual(columns.max(), color_res[0] - 1)
            self.assertLessEqual(rows.max(), color_res[1] - 1)

    def test_grid_matches_scalar_mapping(self):
        """The vectorized grid agrees with the per-pixel function."""
        columns, rows = map_depth_to_color_grid((10, 6), (7, 4))
        for x in range(10):
            for y in range(6):
                self.assertEqual(map_depth_to_color(x, y, (10, 6), (7, 4)), (columns[x], rows[y]))

    def test_invalid_resolution(self):
        """Empty resolutions cannot be mapped."""
        with self.assertRaises(ValueError):
            map_depth_to_color(0, 0, (640, 480), (0, 0))


if __name__ == '__main__':
    unittest.main()
