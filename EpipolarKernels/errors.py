"""
Exceptions raised while estimating epipolar geometry.

The kernels raise these internally; the ``run_*`` kernel wrappers turn them
into an empty candidate list, and the orchestrator reports them through
``FundamentalResult.error``.
"""


class EstimationError(Exception):
    """Base class for all fundamental matrix estimation failures."""


class InsufficientPointsError(EstimationError):
    """Fewer than 7 correspondences were supplied."""


class DegenerateScaleError(EstimationError):
    """The points of one image coincide, so no normalization scale exists."""


class RankDeficiencyError(EstimationError):
    """More than one near-zero eigenvalue in the 8-point normal matrix."""


class CubicSolveError(EstimationError):
    """The det(F) = 0 cubic of the 7-point solver has no usable roots."""


class RobustEstimationFailure(EstimationError):
    """RANSAC / LMedS found no consensus, or the inliers could not be polished."""
