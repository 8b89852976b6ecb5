import numpy as np

from EpipolarKernels.errors import DegenerateScaleError
from EpipolarKernels.tolerances import DEFAULT_TOLERANCES


def normu(u, tolerances=DEFAULT_TOLERANCES):
    """
    Computes a normalization transformation matrix for a set of 2D points to improve numerical stability.

    Parameters:
    -----------
    u : numpy.ndarray a Nx2 array of Cartesian points.
    tolerances : Tolerances, scale_eps is the smallest accepted mean distance to the centroid.

    Returns:
    --------
    A : numpy.ndarray a 3x3 normalization matrix that translates the points to have a mean of zero
        and scales them to an average distance of sqrt(2) from the origin.

    Raises:
    -------
    DegenerateScaleError if the points coincide (mean distance below scale_eps).
    """
    u = np.asarray(u, dtype=np.float64)

    # Calculate the centroid
    m = np.mean(u, axis=0)

    # Mean distance to the centroid
    distu = np.sqrt(np.sum((u - m) ** 2, axis=1))
    r = np.mean(distu)

    if not r >= tolerances.scale_eps:
        raise DegenerateScaleError(f"Mean distance to the centroid is {r:g}, points are coincident")

    scale = np.sqrt(2) / r

    # Create the normalization matrix
    A = np.diag([scale, scale, 1.0])
    A[0:2, 2] = -scale * m

    return A


def normalize_points(u, A):
    """Applies the similarity A returned by normu to a Nx2 array of Cartesian points."""
    u = np.asarray(u, dtype=np.float64)
    return u * A[0, 0] + A[0:2, 2]


# Example usage
# u = np.random.rand(10, 2) * 640
# A = normu(u)
# print(np.mean(np.linalg.norm(normalize_points(u, A), axis=1)))  # ~ sqrt(2)
