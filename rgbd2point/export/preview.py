"""
Open3D conversion and on-screen preview of converted point clouds.
"""

import numpy as np
import open3d as o3d

from ..processing.point_cloud import PointCloud


def to_open3d(cloud: PointCloud) -> o3d.geometry.PointCloud:
    """Create an Open3D point cloud with colors scaled to [0, 1]."""
    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(cloud.positions.astype(np.float64))
    pcd.colors = o3d.utility.Vector3dVector(cloud.colors.astype(np.float64) / 255.0)
    return pcd


def show_point_cloud(cloud: PointCloud, window_name: str = "rgbd2point"):
    """Visualize point cloud with Open3D."""
    print(f"Visualizing point cloud with {cloud.count} points...")
    print("Controls: Mouse to rotate, scroll to zoom, ESC to exit")
    o3d.visualization.draw_geometries([to_open3d(cloud)], window_name=window_name)
