import numpy as np
from scipy.spatial.transform import Rotation


def skew(t):
    """Cross product matrix [t]x."""
    return np.array([
        [0, -t[2], t[1]],
        [t[2], 0, -t[0]],
        [-t[1], t[0], 0]
    ])


def generate_synthetic_data(num_points=100, num_outliers=0, noise_level=0.0,
                            outlier_offset=(20.0, 60.0), rng=None):
    """
    Generate synthetic 3D points seen by two cameras, with optional noise and outliers.

    Parameters:
    -----------
    num_points : int, optional (default=100)
        Number of correspondences consistent with the scene
    num_outliers : int, optional (default=0)
        Number of extra correspondences moved off their epipolar line
    noise_level : float, optional (default=0.0)
        Standard deviation of the Gaussian pixel noise added to the consistent points
    outlier_offset : (float, float), optional
        Range of the distance (pixels) an outlier is moved away from its epipolar line
    rng : numpy.random.Generator, optional

    Returns:
    --------
    pts_img1 : numpy.ndarray (Nx2), N = num_points + num_outliers
        Points in the first camera
    pts_img2 : numpy.ndarray (Nx2)
        Corresponding points in the second camera
    true_F : numpy.ndarray (3x3)
        True fundamental matrix, x2' F x1 = 0, scaled so that F[2, 2] == 1
    is_inlier : numpy.ndarray (N,) of bool
        False for the outliers, which are the last num_outliers rows
    """
    if rng is None:
        rng = np.random.default_rng()

    # First camera at the origin, second one rotated and translated
    K = np.array([
        [800.0, 0.0, 320.0],
        [0.0, 800.0, 240.0],
        [0.0, 0.0, 1.0]
    ])
    R = Rotation.from_rotvec(np.deg2rad(25.0) * np.array([0.3, 1.0, 0.2]) / np.linalg.norm([0.3, 1.0, 0.2])).as_matrix()
    t = np.array([1.0, 0.2, 0.1])

    Kinv = np.linalg.inv(K)
    true_F = Kinv.T @ skew(t) @ R @ Kinv
    true_F = true_F / true_F[2, 2]

    # Random 3D points in front of the cameras
    total = num_points + num_outliers
    pts3d = np.column_stack([
        rng.uniform(-3.0, 3.0, total),
        rng.uniform(-3.0, 3.0, total),
        rng.uniform(6.0, 12.0, total),
    ])

    # Project 3D points to both cameras
    x1 = pts3d @ K.T
    x2 = (pts3d @ R.T + t) @ K.T
    pts_img1 = x1[:, :2] / x1[:, 2:3]
    pts_img2 = x2[:, :2] / x2[:, 2:3]

    if noise_level > 0:
        pts_img1[:num_points] += rng.normal(0, noise_level, (num_points, 2))
        pts_img2[:num_points] += rng.normal(0, noise_level, (num_points, 2))

    # Push the outliers away from their epipolar lines
    if num_outliers:
        lines = np.hstack((pts_img1[num_points:], np.ones((num_outliers, 1)))) @ true_F.T
        normals = lines[:, :2] / np.linalg.norm(lines[:, :2], axis=1, keepdims=True)
        offsets = rng.uniform(*outlier_offset, num_outliers) * rng.choice([-1.0, 1.0], num_outliers)
        pts_img2[num_points:] += normals * offsets[:, np.newaxis]

    is_inlier = np.arange(total) < num_points

    return pts_img1, pts_img2, true_F, is_inlier
