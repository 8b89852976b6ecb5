import numpy as np
from numpy.polynomial import Polynomial as P

from EpipolarKernels.tolerances import DEFAULT_TOLERANCES


def cofactors(M):
    """Matrix of cofactors of a 3x3 matrix, so that det(M) = sum(M[0] * C[0])."""
    return np.array([
        [M[1, 1] * M[2, 2] - M[1, 2] * M[2, 1],
         M[1, 2] * M[2, 0] - M[1, 0] * M[2, 2],
         M[1, 0] * M[2, 1] - M[1, 1] * M[2, 0]],
        [M[0, 2] * M[2, 1] - M[0, 1] * M[2, 2],
         M[0, 0] * M[2, 2] - M[0, 2] * M[2, 0],
         M[0, 1] * M[2, 0] - M[0, 0] * M[2, 1]],
        [M[0, 1] * M[1, 2] - M[0, 2] * M[1, 1],
         M[0, 2] * M[1, 0] - M[0, 0] * M[1, 2],
         M[0, 0] * M[1, 1] - M[0, 1] * M[1, 0]],
    ])


def fslcm(F1, F2):
    """
    Computes the coefficients of the cubic polynomial det(λ * F1 + (1 - λ) * F2) = 0.

    Parameters:
    -----------
    F1 : numpy.ndarray a 3x3 basis matrix of the null space of the 7-point system.
    F2 : numpy.ndarray the second 3x3 basis matrix.

    Returns:
    --------
    p : numpy.ndarray the 4 coefficients [a, b, c, d] of a λ³ + b λ² + c λ + d.

    Explanation:
    ------------
    With D = F1 - F2 the pencil is λ * D + F2 and

        det(λ D + F2) = det(D) λ³ + <F2, cof(D)> λ² + <D, cof(F2)> λ + det(F2)

    where cof() is the matrix of cofactors and <,> the sum of the elementwise products.
    """
    D = F1 - F2
    cD = cofactors(D)
    cF2 = cofactors(F2)

    a = np.sum(D[0] * cD[0])
    b = np.sum(F2 * cD)
    c = np.sum(D * cF2)
    d = np.sum(F2[0] * cF2[0])

    return np.array([a, b, c, d])


def solve_cubic(p, tolerances=DEFAULT_TOLERANCES):
    """
    Real roots of a λ³ + b λ² + c λ + d.

    Leading coefficients below cubic_eps (relative to the largest one) are dropped,
    so the polynomial degrades to a quadratic or a linear equation.

    Returns:
    --------
    (n, roots) : n is the number of real roots, or -1 when every coefficient vanishes
                 (any λ is a solution); roots is a sorted array of length max(n, 0).
    """
    p = np.asarray(p, dtype=np.float64)
    scale = np.max(np.abs(p))

    significant = np.abs(p) > tolerances.cubic_eps * scale
    if not np.isfinite(scale) or not significant.any():
        return -1, np.zeros(0)

    p = p[np.argmax(significant):]
    if p.size == 1:
        return 0, np.zeros(0)

    aroots = P(p[::-1]).roots()
    real = np.abs(aroots.imag) <= tolerances.root_imag_eps * np.maximum(1.0, np.abs(aroots))
    roots = np.sort(aroots[real].real)

    return roots.size, roots


# Example usage
"""
    F1 = np.random.rand(3, 3)
    F2 = np.random.rand(3, 3)
    p = fslcm(F1, F2)
    n, roots = solve_cubic(p)
    for l in roots:
        print(np.linalg.det(l * F1 + (1 - l) * F2))  # ~ 0
"""
