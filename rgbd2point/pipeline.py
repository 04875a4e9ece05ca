#!/usr/bin/env python3
"""
Conversion Pipeline Module

Two-phase batch conversion of a recorded RGB-D capture into a PLY point cloud:
- Accumulation: every frame of the recording is ingested into per-pixel sums
- Finalization: averaged depth is projected into colored points, once
- Serialization: the point cloud is written as an ASCII PLY file

A pipeline runs exactly once; there is no way back to accumulation after
finalization has started.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .capture import FrameSource, open_capture
from .errors import PipelineStateError
from .export.ply_writer import DEFAULT_COMMENT, write_ply
from .processing.accumulator import DEFAULT_DEPTH_THRESHOLD, FrameAccumulator
from .processing.point_cloud import PointCloud
from .processing.projector import DEFAULT_FALLBACK_COLOR, PointProjector, ProgressCallback
from .settings import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    """Conversion pipeline states."""
    CREATED = "created"
    ACCUMULATING = "accumulating"
    FINALIZING = "finalizing"
    SERIALIZING = "serializing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ConversionResult:
    """Result container for a conversion run."""
    output_path: Path
    cloud: PointCloud
    depth_frames: int = 0
    color_frames: int = 0
    skipped_frames: int = 0
    rejected_samples: int = 0
    elapsed_time: float = 0.0

    @property
    def point_count(self) -> int:
        return self.cloud.count


class ConversionPipeline:
    """Runs one capture through accumulation, projection and export."""

    def __init__(self, source: FrameSource, settings: Optional[Dict[str, Any]] = None):
        """
        Initialize the pipeline.

        Args:
            source: Frame source of the recording (opened by the pipeline)
            settings: Settings dictionary as returned by ``load_settings``
        """
        self.source = source
        self.settings = settings or DEFAULT_SETTINGS
        self.state = PipelineState.CREATED
        self.progress_callback: Optional[ProgressCallback] = None

    def set_progress_callback(self, callback: Optional[ProgressCallback]) -> None:
        """Receive (percent, message) updates during projection."""
        self.progress_callback = callback

    def run(self, output_path) -> ConversionResult:
        """
        Convert the capture and write the point cloud to ``output_path``.

        Raises:
            PipelineStateError: if the pipeline already ran
            Rgbd2PointError: on any fatal capture, stream or export failure
        """
        if self.state is not PipelineState.CREATED:
            raise PipelineStateError(f"Pipeline already {self.state.value}")

        start_time = time.time()
        try:
            with self.source:
                self._transition(PipelineState.ACCUMULATING)
                buffer = self._accumulate()

                self._transition(PipelineState.FINALIZING)
                cloud = self._project(buffer)

            self._transition(PipelineState.SERIALIZING)
            output_path = write_ply(
                output_path, cloud,
                comment=self.settings.get('export', {}).get('comment', DEFAULT_COMMENT),
            )
        except Exception:
            self.state = PipelineState.FAILED
            raise

        self._transition(PipelineState.DONE)
        logger.info("Extracted to point cloud.")

        return ConversionResult(
            output_path=output_path,
            cloud=cloud,
            depth_frames=buffer.depth_frames,
            color_frames=buffer.color_frames,
            skipped_frames=buffer.skipped_frames,
            rejected_samples=buffer.rejected_samples,
            elapsed_time=time.time() - start_time,
        )

    def _transition(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline {self.state.value} -> {state.value}")
        self.state = state

    def _accumulate(self):
        accumulation = self.settings.get('accumulation', {})
        capture = self.settings.get('capture', {})

        accumulator = FrameAccumulator(
            self.source.depth_resolution,
            self.source.color_resolution,
            depth_threshold=accumulation.get('depth_threshold', DEFAULT_DEPTH_THRESHOLD),
            strict_resolution=capture.get('strict_resolution', True),
        )
        for frame in self.source.frames():
            accumulator.ingest(frame)
        return accumulator.finish()

    def _project(self, buffer) -> PointCloud:
        projection = self.settings.get('projection', {})
        projector = PointProjector(
            self.source.converter,
            fallback_color=projection.get('fallback_color', DEFAULT_FALLBACK_COLOR),
        )
        projector.set_progress_callback(self.progress_callback)
        return projector.project(buffer)


def convert(capture_path, output_path, settings: Optional[Dict[str, Any]] = None,
            progress_callback: Optional[ProgressCallback] = None) -> ConversionResult:
    """Convert the capture at ``capture_path`` into a PLY file at ``output_path``."""
    source = open_capture(capture_path, settings)
    pipeline = ConversionPipeline(source, settings)
    pipeline.set_progress_callback(progress_callback)
    return pipeline.run(output_path)
