"""
ASCII PLY export of colored point clouds.

The header always declares an empty face element; one line per vertex
follows with ``x y z red green blue``.
"""

import logging
from pathlib import Path
from typing import Dict, List

import numpy as np

from ..errors import PlyExportError
from ..processing.point_cloud import PointCloud

logger = logging.getLogger(__name__)

DEFAULT_COMMENT = "created by rgbdsend"

PLY_HEADER = (
    "ply\n"
    "format ascii 1.0\n"
    "comment {comment}\n"
    "element vertex {count}\n"
    "property float32 x\n"
    "property float32 y\n"
    "property float32 z\n"
    "property uint8 red\n"
    "property uint8 green\n"
    "property uint8 blue\n"
    "element face 0\n"
    "property list uint8 int32 vertex_indices\n"
    "end_header\n"
)

VERTEX_FORMAT = "%f %f %f %d %d %d"


def write_ply(path, cloud: PointCloud, comment: str = DEFAULT_COMMENT) -> Path:
    """
    Write a point cloud as an ASCII PLY file.

    Args:
        path: Output file path; its directory must exist
        cloud: Point cloud to write
        comment: Header comment line

    Returns:
        Path of the written file
    """
    path = Path(path)
    try:
        with path.open('w', newline='\n') as f:
            f.write(PLY_HEADER.format(comment=comment, count=cloud.count))
            if cloud.count:
                rows = np.hstack((
                    cloud.positions.astype(np.float64),
                    cloud.colors.astype(np.float64),
                ))
                np.savetxt(f, rows, fmt=VERTEX_FORMAT, newline='\n')
    except OSError as e:
        raise PlyExportError(f"Couldn't write point cloud to {path}: {e}") from e

    logger.info(f"Wrote {cloud.count} points to {path}")
    return path


def read_ply_header(path) -> Dict:
    """
    Parse the header of an ASCII PLY file.

    Returns:
        Dict with 'format', 'comments', 'vertex_count', 'face_count',
        'properties' (vertex property names) and 'header_lines'
    """
    header = {
        'format': None,
        'comments': [],
        'vertex_count': 0,
        'face_count': 0,
        'properties': [],
        'header_lines': 0,
    }
    current_element = None
    properties: List[str] = []

    with Path(path).open('r') as f:
        if f.readline().strip() != "ply":
            raise ValueError(f"{path} is not a PLY file")
        header['header_lines'] = 1

        for line in f:
            header['header_lines'] += 1
            tokens = line.split()
            if not tokens:
                continue
            keyword = tokens[0]
            if keyword == "end_header":
                break
            if keyword == "format":
                header['format'] = " ".join(tokens[1:])
            elif keyword == "comment":
                header['comments'].append(line.rstrip("\n")[len("comment "):])
            elif keyword == "element":
                current_element = tokens[1]
                if current_element == "vertex":
                    header['vertex_count'] = int(tokens[2])
                elif current_element == "face":
                    header['face_count'] = int(tokens[2])
            elif keyword == "property" and current_element == "vertex":
                properties.append(tokens[-1])
        else:
            raise ValueError(f"{path} has no end_header line")

    header['properties'] = properties
    return header
