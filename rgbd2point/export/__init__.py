"""
Point cloud export.

ASCII PLY writing; the Open3D preview lives in ``export.preview`` and is
imported on demand.
"""

from .ply_writer import DEFAULT_COMMENT, read_ply_header, write_ply

__all__ = ["DEFAULT_COMMENT", "read_ply_header", "write_ply"]
