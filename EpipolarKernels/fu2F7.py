import logging

import numpy as np
from scipy.linalg import svd

from EpipolarKernels.errors import CubicSolveError
from EpipolarKernels.fslcm import fslcm, solve_cubic
from EpipolarKernels.lin_fm import lin_fm
from EpipolarKernels.tolerances import DEFAULT_TOLERANCES

logger = logging.getLogger(__name__)


def fu2F7(x1, x2, tolerances=DEFAULT_TOLERANCES):
    """
    Computes the fundamental matrix using the 7-point algorithm.

    Parameters:
    -----------
    x1 : numpy.ndarray a 7x2 array of points in the first image (pixel coordinates, not normalized).
    x2 : numpy.ndarray a 7x2 array of the corresponding points in the second image.
    tolerances : Tolerances, seven_f33_eps decides whether a candidate is scaled to F[2, 2] == 1.

    Returns:
    --------
    Fs : list of 1 to 3 numpy.ndarray 3x3 candidate fundamental matrices.

    Raises:
    -------
    CubicSolveError if the cubic det(F) = 0 has a root count outside {1, 2, 3}.

    Explanation:
    ------------
    1. lin_fm builds the 7x9 system Z f = 0.
    2. Its null space is (at least) 2-dimensional; the last two right singular vectors F1, F2 span it.
    3. Every F = λ * F1 + (1 - λ) * F2 satisfies the 7 constraints; det(F) = 0 is a cubic in λ (fslcm).
    4. Every real root λ gives one candidate, normalized so that F[2, 2] == 1 when possible,
       otherwise F[2, 2] is set to 0.
    """
    x1 = np.asarray(x1, dtype=np.float64)
    x2 = np.asarray(x2, dtype=np.float64)

    if x1.shape[0] != 7 or x2.shape[0] != 7:
        raise ValueError("Wrong size of input points, exactly 7 correspondences are required.")

    Z = lin_fm(x1, x2)
    _, _, Vt = svd(Z)

    F1 = Vt[7].reshape(3, 3)
    F2 = Vt[8].reshape(3, 3)

    p = fslcm(F1, F2)
    n, aroots = solve_cubic(p, tolerances)

    if n < 1 or n > 3:
        raise CubicSolveError(f"det(F) = 0 cubic with coefficients {p} has {n} real roots")

    D = F1 - F2
    Fs = []
    for l in aroots:
        Ft = D * l + F2
        s = Ft[2, 2]

        if abs(s) > tolerances.seven_f33_eps:
            Ft = Ft / s
            Ft[2, 2] = 1.0
        else:
            Ft[2, 2] = 0.0

        Fs.append(Ft)

    return Fs


def run_seven_point(x1, x2, tolerances=DEFAULT_TOLERANCES):
    """Kernel wrapper around fu2F7: the candidate list, or [] when the cubic cannot be solved."""
    try:
        return fu2F7(x1, x2, tolerances)
    except CubicSolveError as e:
        logger.debug(f"7-point kernel gave no solution: {e}")
        return []
