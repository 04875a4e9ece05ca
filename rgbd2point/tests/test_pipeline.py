#!/usr/bin/env python3
"""
Unit Tests for the Conversion Pipeline

Test suite covering:
- State transitions and single-run enforcement
- End-to-end conversion of in-memory and PNG captures
- Degraded captures (no color) and fatal stream errors
- Progress reporting
"""

import sys
import os
import unittest
import tempfile
import numpy as np
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))

from rgbd2point.capture.coordinates import PinholeConverter
from rgbd2point.capture.frames import (
    Frame, FrameSource, NO_RESOLUTION, PixelFormat, Resolution, StreamKind
)
from rgbd2point.errors import PipelineStateError, ResolutionMismatchError
from rgbd2point.export.ply_writer import read_ply_header
from rgbd2point.pipeline import ConversionPipeline, PipelineState, convert
from rgbd2point.settings import DEFAULT_SETTINGS, merge_settings
from rgbd2point.tests.create_test_data import create_test_capture


class MockFrameSource(FrameSource):
    """In-memory frame source replaying a fixed list of frames."""

    def __init__(self, frames, depth_resolution, color_resolution, converter=None):
        self._frames = list(frames)
        self._depth_resolution = Resolution(*depth_resolution)
        self._color_resolution = Resolution(*color_resolution)
        self._converter = converter or PinholeConverter(1.0, 1.0, 0.0, 0.0, depth_scale=1.0)
        self.opened = False
        self.closed = False
        self.states_seen = []
        self.pipeline = None

    def open(self):
        self.opened = True

    def close(self):
        self.closed = True

    def frames(self):
        for frame in self._frames:
            if self.pipeline is not None:
                self.states_seen.append(self.pipeline.state)
            yield frame

    @property
    def depth_resolution(self):
        return self._depth_resolution

    @property
    def color_resolution(self):
        return self._color_resolution

    @property
    def converter(self):
        return self._converter


def depth_frame(values, width, height):
    data = np.asarray(values, dtype=np.uint16).reshape(height, width)
    return Frame(StreamKind.DEPTH, PixelFormat.DEPTH_1_MM, data)


def color_frame(rgb, width, height):
    data = np.asarray(rgb, dtype=np.uint8).reshape(height, width, 3)
    return Frame(StreamKind.COLOR, PixelFormat.RGB888, data)


def example_frames():
    """Three depth frames and two color frames of a 2x2 capture."""
    colors = [[10, 20, 30], [40, 50, 60], [70, 80, 90], [1, 2, 3]]
    return [
        depth_frame([100, 100, 100, 0], 2, 2),
        color_frame(colors, 2, 2),
        depth_frame([100, 100, 100, 0], 2, 2),
        color_frame(colors, 2, 2),
        depth_frame([100, 100, 100, 0], 2, 2),
    ]


class TestConversionPipeline(unittest.TestCase):
    """Test cases for ConversionPipeline."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.output_path = Path(self.temp_dir.name) / "out.ply"

    def tearDown(self):
        """Clean up test fixtures."""
        self.temp_dir.cleanup()

    def test_initial_state(self):
        pipeline = ConversionPipeline(MockFrameSource([], (2, 2), (2, 2)))
        self.assertEqual(pipeline.state, PipelineState.CREATED)

    def test_run(self):
        """The example capture becomes three points."""
        source = MockFrameSource(example_frames(), (2, 2), (2, 2))
        pipeline = ConversionPipeline(source)
        source.pipeline = pipeline

        result = pipeline.run(self.output_path)

        self.assertEqual(pipeline.state, PipelineState.DONE)
        self.assertEqual(result.point_count, 3)
        self.assertEqual(result.depth_frames, 3)
        self.assertEqual(result.color_frames, 2)
        self.assertEqual(result.output_path, self.output_path)
        self.assertTrue(source.opened)
        self.assertTrue(source.closed)
        self.assertTrue(all(state is PipelineState.ACCUMULATING for state in source.states_seen))

        lines = self.output_path.read_text().splitlines()
        self.assertEqual(lines[13:], [
            "0.000000 0.000000 100.000000 10 20 30",
            "100.000000 0.000000 100.000000 40 50 60",
            "0.000000 100.000000 100.000000 70 80 90",
        ])

    def test_second_run_rejected(self):
        """A pipeline cannot return to accumulation once it ran."""
        pipeline = ConversionPipeline(MockFrameSource(example_frames(), (2, 2), (2, 2)))
        pipeline.run(self.output_path)

        with self.assertRaises(PipelineStateError):
            pipeline.run(self.output_path)
        self.assertEqual(pipeline.state, PipelineState.DONE)

    def test_identical_output_for_identical_input(self):
        first = Path(self.temp_dir.name) / "first.ply"
        second = Path(self.temp_dir.name) / "second.ply"
        ConversionPipeline(MockFrameSource(example_frames(), (2, 2), (2, 2))).run(first)
        ConversionPipeline(MockFrameSource(example_frames(), (2, 2), (2, 2))).run(second)
        self.assertEqual(first.read_bytes(), second.read_bytes())

    def test_without_color(self):
        """A depth-only capture is written with the fallback color."""
        frames = [depth_frame([100, 0, 0, 200], 2, 2)]
        pipeline = ConversionPipeline(MockFrameSource(frames, (2, 2), NO_RESOLUTION))

        result = pipeline.run(self.output_path)

        self.assertEqual(result.point_count, 2)
        self.assertEqual(result.cloud.colors.tolist(), [[128, 128, 128], [128, 128, 128]])

    def test_without_depth(self):
        """A color-only capture yields an empty but valid point cloud."""
        frames = [color_frame([[1, 2, 3]] * 4, 2, 2)]
        pipeline = ConversionPipeline(MockFrameSource(frames, NO_RESOLUTION, (2, 2)))

        result = pipeline.run(self.output_path)

        self.assertEqual(result.point_count, 0)
        self.assertEqual(read_ply_header(self.output_path)['vertex_count'], 0)

    def test_resolution_mismatch_fails(self):
        source = MockFrameSource([depth_frame([100] * 6, 3, 2)], (2, 2), (2, 2))
        pipeline = ConversionPipeline(source)

        with self.assertRaises(ResolutionMismatchError):
            pipeline.run(self.output_path)

        self.assertEqual(pipeline.state, PipelineState.FAILED)
        self.assertTrue(source.closed)
        self.assertFalse(self.output_path.exists())

    def test_resolution_mismatch_tolerated(self):
        settings = merge_settings(DEFAULT_SETTINGS, {'capture': {'strict_resolution': False}})
        frames = [depth_frame([100] * 6, 3, 2), depth_frame([100] * 4, 2, 2)]
        result = ConversionPipeline(MockFrameSource(frames, (2, 2), (2, 2)), settings).run(self.output_path)

        self.assertEqual(result.skipped_frames, 1)
        self.assertEqual(result.point_count, 4)

    def test_settings_applied(self):
        settings = merge_settings(DEFAULT_SETTINGS, {
            'accumulation': {'depth_threshold': 10},
            'export': {'comment': 'desk scan'},
        })
        frames = [depth_frame([100], 1, 1), depth_frame([150], 1, 1)]
        result = ConversionPipeline(MockFrameSource(frames, (1, 1), NO_RESOLUTION), settings).run(self.output_path)

        self.assertEqual(result.rejected_samples, 1)
        self.assertEqual(read_ply_header(self.output_path)['comments'], ["desk scan"])

    def test_progress_callback(self):
        progress_updates = []
        pipeline = ConversionPipeline(MockFrameSource(example_frames(), (2, 2), (2, 2)))
        pipeline.set_progress_callback(lambda p, m: progress_updates.append(p))

        pipeline.run(self.output_path)

        self.assertEqual(progress_updates, [50.0, 100.0])

    def test_header_count_matches_data_lines(self):
        pipeline = ConversionPipeline(MockFrameSource(example_frames(), (2, 2), (2, 2)))
        pipeline.run(self.output_path)

        header = read_ply_header(self.output_path)
        data_lines = self.output_path.read_text().splitlines()[header['header_lines']:]
        self.assertEqual(len(data_lines), header['vertex_count'])


class TestConvert(unittest.TestCase):
    """Test cases for convert() on PNG captures."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.TemporaryDirectory()
        self.root = Path(self.temp_dir.name)

    def tearDown(self):
        """Clean up test fixtures."""
        self.temp_dir.cleanup()

    def test_synthetic_capture(self):
        """Every pixel with a reading becomes a point, missing readings do not."""
        capture_dir = create_test_capture(self.root / "cap", num_frames=4, depth_resolution=(32, 24),
                                          color_resolution=(32, 24))
        result = convert(capture_dir, self.root / "cloud.ply")

        # The two leftmost columns have no readings
        self.assertEqual(result.point_count, 30 * 24)
        self.assertEqual(result.depth_frames, 4)
        self.assertEqual(result.color_frames, 4)
        self.assertEqual(result.rejected_samples, 0)

        z = result.cloud.positions[:, 2]
        self.assertTrue(np.all((z > 0.45) & (z < 0.85)))

    def test_box_color(self):
        """The box center keeps its color after BGR decoding and averaging."""
        capture_dir = create_test_capture(self.root / "cap", num_frames=2, depth_resolution=(32, 24),
                                          color_resolution=(32, 24))
        result = convert(capture_dir, self.root / "cloud.ply")

        # Center pixel (16, 12) lies in the box; 30 valid pixels per row
        index = 12 * 30 + (16 - 2)
        self.assertEqual(result.cloud.colors[index].tolist(), [255, 128, 64])

    def test_repeatable(self):
        capture_dir = create_test_capture(self.root / "cap", num_frames=2)
        first = convert(capture_dir, self.root / "a.ply").output_path
        second = convert(capture_dir, self.root / "b.ply").output_path
        self.assertEqual(first.read_bytes(), second.read_bytes())


if __name__ == '__main__':
    unittest.main()
