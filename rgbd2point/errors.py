"""
Exceptions raised by the conversion pipeline.

Each fatal condition carries the process exit code the command line returns
for it.
"""


class Rgbd2PointError(Exception):
    """Base class for conversion failures."""

    exit_code = 1


class CaptureOpenError(Rgbd2PointError):
    """The recorded capture could not be found or initialized."""

    exit_code = 1


class DeviceOpenError(Rgbd2PointError):
    """The playback device or its streams could not be opened."""

    exit_code = 2


class ResolutionMismatchError(Rgbd2PointError):
    """A delivered frame does not match the declared stream resolution."""

    exit_code = 3

    def __init__(self, stream: str, expected, actual):
        self.stream = stream
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{stream} frame resolution {actual[0]}x{actual[1]} does not match "
            f"stream resolution {expected[0]}x{expected[1]}"
        )


class PlyExportError(Rgbd2PointError):
    """The point cloud file could not be written."""

    exit_code = 4


class PipelineStateError(Rgbd2PointError):
    """A pipeline operation was requested in the wrong state."""
