"""
rgbd2point: recorded RGB-D capture to colored point cloud.

Modules:
- capture: playback of recorded captures (RealSense .bag, PNG sequences)
- processing: frame accumulation, depth/color mapping and point projection
- export: ASCII PLY writing and Open3D preview
- pipeline: the two-phase conversion run
- tests: unit tests and synthetic capture generation
"""

from . import capture
from . import processing
from . import export
from .errors import (
    CaptureOpenError,
    DeviceOpenError,
    PipelineStateError,
    PlyExportError,
    ResolutionMismatchError,
    Rgbd2PointError,
)
from .pipeline import ConversionPipeline, ConversionResult, PipelineState, convert
from .settings import load_settings

__version__ = "1.0.0"
__all__ = [
    "capture",
    "processing",
    "export",
    "CaptureOpenError",
    "DeviceOpenError",
    "PipelineStateError",
    "PlyExportError",
    "ResolutionMismatchError",
    "Rgbd2PointError",
    "ConversionPipeline",
    "ConversionResult",
    "PipelineState",
    "convert",
    "load_settings",
]
