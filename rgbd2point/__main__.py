#!/usr/bin/env python3
"""
Convert a recorded RGB-D capture into a colored PLY point cloud.

Usage:
    python -m rgbd2point CAPTURE OUTPUT [options]

Arguments:
    CAPTURE                 RealSense .bag recording or PNG capture directory
    OUTPUT                  Path of the ASCII .ply file to write

Options:
    --config FILE           YAML configuration (default: rgbd2point/config/rgbd2point.yaml)
    --log-file FILE         Also write the log to FILE
    --verbose, -v           Debug logging
    --visualize             Show the point cloud after export (needs open3d)

Exit codes:
    1  bad arguments or capture cannot be opened
    2  device or stream open failure
    3  frame resolution does not match its stream
    4  output file cannot be written
"""

import argparse
import sys

from .converter_logger import ConverterLogger
from .errors import Rgbd2PointError
from .pipeline import convert
from .settings import load_settings


class _ArgumentParser(argparse.ArgumentParser):
    """Argument parser that exits with status 1 on usage errors."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="rgbd2point",
        description="Convert a recorded RGB-D capture into a colored PLY point cloud",
    )
    parser.add_argument("capture", help="RealSense .bag recording or PNG capture directory")
    parser.add_argument("output", help="Path of the ASCII .ply file to write")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--log-file", help="Also write the log to this file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument(
        "--visualize", action="store_true", help="Show the point cloud after export"
    )
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # Console logging first so that settings loading is reported
    log = ConverterLogger(level="DEBUG" if args.verbose else "INFO")
    settings = load_settings(args.config)
    log_settings = settings.get('logging', {})
    log.configure(
        level="DEBUG" if args.verbose else log_settings.get('level', "INFO"),
        log_file=args.log_file or log_settings.get('log_file'),
    )

    try:
        result = convert(args.capture, args.output, settings)
    except Rgbd2PointError as e:
        log.error(str(e))
        log.close()
        return e.exit_code

    log.info(
        f"{result.point_count} points from {result.depth_frames} depth / "
        f"{result.color_frames} color frames in {result.elapsed_time:.1f}s -> {result.output_path}"
    )

    if args.visualize:
        try:
            from .export.preview import show_point_cloud
        except ImportError as e:
            log.warning(f"Preview unavailable: {e}")
        else:
            show_point_cloud(result.cloud, window_name=str(result.output_path))

    log.close()
    return 0


if __name__ == "__main__":
    exit(main())
