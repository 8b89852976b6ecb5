import numpy as np

from EpipolarKernels.p2e import e2p, to_cartesian


def compute_correspond_epilines(points, which_image, F):
    """
    Epipolar lines corresponding to points of one image.

    Parameters:
    -----------
    points : array of points in any layout accepted by to_cartesian.
    which_image : 1 if the points belong to the first image (lines F x live in the second image),
                  2 if they belong to the second image (lines F' x live in the first image).
    F : numpy.ndarray 3x3 fundamental matrix.

    Returns:
    --------
    lines : numpy.ndarray Nx3, each row (a, b, c) of a line a x + b y + c = 0 scaled so that a² + b² = 1.
            Lines with a = b = 0 are returned unscaled.
    """
    if which_image not in (1, 2):
        raise ValueError(f"which_image must be 1 or 2, got {which_image}")

    F = np.asarray(F, dtype=np.float64).reshape(3, 3)
    if which_image == 2:
        F = F.T

    u = e2p(to_cartesian(points))
    lines = u @ F.T

    norm = np.sqrt(lines[:, 0] ** 2 + lines[:, 1] ** 2)
    norm[norm == 0] = 1.0

    return lines / norm[:, np.newaxis]
