import numpy as np

from EpipolarKernels.p2e import e2p


def fm_error(F, x1, x2):
    """
    Symmetric epipolar error of a fundamental matrix on a set of correspondences.

    Parameters:
    -----------
    F : numpy.ndarray 3x3 fundamental matrix with x2' F x1 = 0.
    x1 : numpy.ndarray Nx2 points in the first image.
    x2 : numpy.ndarray Nx2 corresponding points in the second image.

    Returns:
    --------
    err : numpy.ndarray of length N,

        max( d(x2, F x1)^2 , d(x1, F' x2)^2 )

    the larger of the two squared distances (in pixels^2) between a point and the
    epipolar line induced by its match. A degenerate line (a = b = 0) gives inf.
    """
    F = np.asarray(F, dtype=np.float64).reshape(3, 3)
    u1 = e2p(x1)
    u2 = e2p(x2)

    Fu1 = u1 @ F.T  # epipolar lines in the second image
    Fu2 = u2 @ F  # epipolar lines in the first image

    d2 = np.sum(u2 * Fu1, axis=1)
    d1 = np.sum(u1 * Fu2, axis=1)
    n2 = Fu1[:, 0] ** 2 + Fu1[:, 1] ** 2
    n1 = Fu2[:, 0] ** 2 + Fu2[:, 1] ** 2

    with np.errstate(divide='ignore', invalid='ignore'):
        e2 = np.where(n2 > 0, d2 ** 2 / n2, np.inf)
        e1 = np.where(n1 > 0, d1 ** 2 / n1, np.inf)

    return np.maximum(e1, e2)


# Example usage
# F = np.random.rand(3, 3)
# x1 = np.random.rand(10, 2) * 640
# x2 = np.random.rand(10, 2) * 640
# print(fm_error(F, x1, x2))
