import logging

import numpy as np
from scipy.linalg import eigh, svd

from EpipolarKernels.errors import DegenerateScaleError, RankDeficiencyError
from EpipolarKernels.lin_fm import lin_fm
from EpipolarKernels.normu import normalize_points, normu
from EpipolarKernels.tolerances import DEFAULT_TOLERANCES

logger = logging.getLogger(__name__)

# rows of the design matrix materialized at once while accumulating Z'Z
ROW_CHUNK = 1024


def normal_matrix(x1, x2, chunk=ROW_CHUNK):
    """
    Accumulates the 9x9 matrix Z'Z of the epipolar constraint rows without building the whole Nx9 Z.

    Parameters:
    -----------
    x1, x2 : numpy.ndarray Nx2 corresponding points of the first and second image.
    chunk : int, number of correspondences turned into monomial rows per step.

    Returns:
    --------
    M : numpy.ndarray symmetric 9x9 matrix, sum over the correspondences of r r' with r = lin_fm(x1, x2) rows.
    """
    M = np.zeros((9, 9))
    for start in range(0, x1.shape[0], chunk):
        Z = lin_fm(x1[start:start + chunk], x2[start:start + chunk])
        M += Z.T @ Z
    return M


def u2F(x1, x2, tolerances=DEFAULT_TOLERANCES):
    """
    Estimates the fundamental matrix with the normalized 8-point algorithm (orthogonal LS regression).

    Parameters:
    -----------
    x1 : numpy.ndarray Nx2 points in the first image, N >= 8.
    x2 : numpy.ndarray Nx2 corresponding points in the second image.
    tolerances : Tolerances used for the scale, rank and F(3,3) tests.

    Returns:
    --------
    F : numpy.ndarray 3x3 rank-2 fundamental matrix with x2' F x1 = 0,
        scaled so that F[2, 2] == 1 unless that entry is below linear_f33_eps.

    Raises:
    -------
    DegenerateScaleError if the points of one image coincide.
    RankDeficiencyError if more than one eigenvalue of Z'Z is numerically zero.
    """
    x1 = np.asarray(x1, dtype=np.float64)
    x2 = np.asarray(x2, dtype=np.float64)

    ptNum = x1.shape[0]
    if ptNum < 8 or x2.shape[0] != ptNum:
        raise ValueError('Too few correspondences. At least 8 points are required.')

    A1 = normu(x1, tolerances)
    A2 = normu(x2, tolerances)

    u1 = normalize_points(x1, A1)
    u2 = normalize_points(x2, A2)

    M = normal_matrix(u1, u2)

    # eigenvalues in ascending order
    d, V = eigh(M)
    dmax = np.max(np.abs(d))

    # only the smallest eigenvalue may vanish
    if dmax <= 0 or np.any(np.abs(d[1:]) < tolerances.eigen_eps * dmax):
        raise RankDeficiencyError(
            f"{int(np.sum(np.abs(d) < tolerances.eigen_eps * dmax))} near-zero eigenvalues in the normal matrix")

    F0 = V[:, 0].reshape(3, 3)

    # enforce rank 2
    uu, us, uvt = svd(F0)
    us[2] = 0.0
    F_rank2 = uu @ np.diag(us) @ uvt

    # undo the normalization
    F = A2.T @ F_rank2 @ A1

    if abs(F[2, 2]) > tolerances.linear_f33_eps:
        F = F / F[2, 2]

    return F


def run_eight_point(x1, x2, tolerances=DEFAULT_TOLERANCES):
    """Kernel wrapper around u2F: [F] on success, [] when the points are degenerate."""
    try:
        return [u2F(x1, x2, tolerances)]
    except (DegenerateScaleError, RankDeficiencyError) as e:
        logger.debug(f"8-point kernel gave no solution: {e}")
        return []
