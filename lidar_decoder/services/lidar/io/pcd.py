import numpy as np
import open3d as o3d

from lidar_decoder.services.lidar.core.points import PointCloud


def save_to_pcd(cloud: PointCloud, output_path: str, binary: bool = False) -> int:
    """Saves decoded points to a PCD file. Intensity is written as a gray color."""
    points = cloud.to_array()
    pcd = o3d.geometry.PointCloud()
    pcd.points = o3d.utility.Vector3dVector(points[:, :3])
    if len(points):
        gray = np.repeat(points[:, 3:4] / 255.0, 3, axis=1)
        pcd.colors = o3d.utility.Vector3dVector(gray)
    o3d.io.write_point_cloud(output_path, pcd, write_ascii=not binary)
    return len(points)
