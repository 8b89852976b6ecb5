import numpy as np

from EpipolarKernels.tolerances import FLT_EPSILON


def p2e(u):
    """
    Converts homogeneous coordinates to Euclidean coordinates.

    Parameters:
    -----------
    u : numpy.ndarray a Nx3 array where each row is a point in homogeneous coordinates.

    Returns:
    --------
    E : numpy.ndarray a Nx2 array of Euclidean points.
        Points at infinity (|w| <= FLT_EPSILON) keep their first two coordinates unscaled.
    """
    u = np.asarray(u, dtype=np.float64)
    w = u[:, 2]
    scale = np.ones_like(w)
    finite = np.abs(w) > FLT_EPSILON
    scale[finite] = 1.0 / w[finite]
    return u[:, :2] * scale[:, np.newaxis]


def e2p(u):
    """Appends a column of ones to a Nx2 array of Euclidean points."""
    u = np.asarray(u, dtype=np.float64)
    return np.hstack((u, np.ones((u.shape[0], 1))))


def to_cartesian(points):
    """
    Brings a point array into the (N, 2) float64 layout the kernels expect.

    Accepted layouts:
        (N, 2)     Cartesian points, one per row
        (N, 3)     homogeneous points, one per row
        (N, 1, 2)  / (N, 1, 3) OpenCV style point vectors
        (2, N)     / (3, N) one point per column, N > 3

    The input is never modified; a new array is always returned.
    """
    u = np.asarray(points, dtype=np.float64)

    if u.ndim == 3 and u.shape[1] == 1:
        u = u.reshape(u.shape[0], u.shape[2])
    elif u.ndim == 1 and u.size == 0:
        return np.zeros((0, 2))

    if u.ndim != 2:
        raise ValueError(f"Wrong size of input points: {u.shape}")

    if u.shape[1] not in (2, 3) and u.shape[0] in (2, 3):
        u = u.T

    if u.shape[1] == 2:
        return u.copy()
    if u.shape[1] == 3:
        return p2e(u)

    raise ValueError(f"Wrong size of input points: {u.shape}")


# Example usage
# u = np.array([[2, 4, 2], [3, 6, 3], [1, 1, 1]])
# print(p2e(u))            # [[1, 2], [1, 2], [1, 1]]
