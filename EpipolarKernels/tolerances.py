import numpy as np
from dataclasses import dataclass

FLT_EPSILON = float(np.finfo(np.float32).eps)
DBL_EPSILON = float(np.finfo(np.float64).eps)


@dataclass(frozen=True)
class Tolerances:
    """
    Near-zero thresholds used by the kernels and the orchestrator.

    Attributes:
        scale_eps: minimum mean distance of a point set to its centroid.
        eigen_eps: eigenvalues of the 8-point normal matrix below
                   eigen_eps * (largest eigenvalue) count as zero.
        linear_f33_eps: F[2,2] magnitude above which the 8-point result is scaled to F[2,2] = 1.
        seven_f33_eps: same threshold for the 7-point candidates (F[2,2] is set to 0 below it).
        cubic_eps: coefficient magnitude under which a polynomial term is dropped.
        root_imag_eps: relative imaginary part under which a cubic root is taken as real.
        confidence_eps: the confidence must lie in (confidence_eps, 1 - confidence_eps).
    """
    scale_eps: float = FLT_EPSILON
    eigen_eps: float = 1e-12
    linear_f33_eps: float = FLT_EPSILON
    seven_f33_eps: float = DBL_EPSILON
    cubic_eps: float = DBL_EPSILON
    root_imag_eps: float = 1e-6
    confidence_eps: float = DBL_EPSILON


DEFAULT_TOLERANCES = Tolerances()
