import numpy as np


def lin_fm(x1, x2):
    """
    Constructs the coefficient matrix A of the epipolar constraint (x2, 1)' * F * (x1, 1) = 0.

    Parameters:
    -----------
    x1 : numpy.ndarray a Nx2 array of points in the first image (x0, y0).
    x2 : numpy.ndarray a Nx2 array of corresponding points in the second image (x1, y1).

    Returns:
    --------
    A : numpy.ndarray a Nx9 matrix, one row of bilinear monomials per correspondence:
        (x1*x0, x1*y0, x1, y1*x0, y1*y0, y1, x0, y0, 1)
        so that A @ F.reshape(9) = 0 for a row-major F.
    """
    x1 = np.asarray(x1, dtype=np.float64)
    x2 = np.asarray(x2, dtype=np.float64)

    if x1.shape != x2.shape or x1.ndim != 2 or x1.shape[1] != 2:
        raise ValueError("Wrong size of input points.")

    x0, y0 = x1[:, 0], x1[:, 1]
    xp, yp = x2[:, 0], x2[:, 1]

    A = np.column_stack([
        xp * x0,  # x' * x
        xp * y0,  # x' * y
        xp,  # x'
        yp * x0,  # y' * x
        yp * y0,  # y' * y
        yp,  # y'
        x0,  # x
        y0,  # y
        np.ones(x1.shape[0])  # Constant term
    ])

    return A
