"""
Estimate Fundamental - top level entry point
=============================================

Chooses between the exact 7-point solver, the linear 8-point solver and a robust
(RANSAC / LMedS) estimation, polishes robust results on their inliers and fills the
caller's buffers.

Usage:
    from FundamentalCore.estimate_fundamental import estimate_fundamental, FMMethod

    result = estimate_fundamental(pts1, pts2, FMMethod.RANSAC, threshold=1.0, confidence=0.99)
    if result.success:
        F, inliers = result.F, result.mask
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

import numpy as np

from EpipolarKernels.errors import (
    EstimationError,
    InsufficientPointsError,
    RobustEstimationFailure,
)
from EpipolarKernels.fu2F7 import fu2F7
from EpipolarKernels.p2e import to_cartesian
from EpipolarKernels.tolerances import DEFAULT_TOLERANCES, Tolerances
from EpipolarKernels.u2F import u2F
from RobustEstimation.compress_points import compress_points
from RobustEstimation.lmeds import run_lmeds
from RobustEstimation.model_kernel import FUNDAMENTAL_METRIC, SEVEN_POINT_KERNEL
from RobustEstimation.ransac import run_ransac

logger = logging.getLogger(__name__)

MIN_POINTS = 7
LINEAR_MIN_POINTS = 8
RANSAC_MIN_POINTS = 15

DEFAULT_THRESHOLD = 3.0
DEFAULT_CONFIDENCE = 0.99
DEFAULT_MAX_ITERS = 2000


class FMMethod(Enum):
    """Estimation strategy; the values are the names used in config files."""
    SEVEN_POINT = "7point"
    EIGHT_POINT = "8point"
    RANSAC = "ransac"
    LMEDS = "lmeds"


@dataclass
class FundamentalResult:
    """
    success: whether a matrix was produced.
    F: 3x3 matrix, or the (3k)x3 stack of the k 7-point candidates; None on failure.
    mask: inlier mask of the robust estimator, None on the 7-point and 8-point paths.
    num_iters: samples drawn by the robust estimator.
    max_iters_reached: num_iters hit the iteration cap.
    method: strategy that actually ran (None if nothing ran).
    error: reason of the failure.
    """
    success: bool = False
    F: Optional[np.ndarray] = None
    mask: Optional[np.ndarray] = None
    num_iters: int = 0
    max_iters_reached: bool = False
    method: Optional[FMMethod] = None
    error: Optional[EstimationError] = None

    @property
    def candidates(self) -> List[np.ndarray]:
        """F split into its 3x3 blocks."""
        if self.F is None:
            return []
        return [self.F[i:i + 3] for i in range(0, self.F.shape[0], 3)]


def _failure(method: Optional[FMMethod], error: EstimationError, num_iters: int = 0) -> FundamentalResult:
    logger.warning(f"Fundamental matrix estimation failed ({method.value if method else 'validation'}): {error}")
    return FundamentalResult(success=False, num_iters=num_iters, method=method, error=error)


def _check_buffers(count: int, mask: Optional[np.ndarray], out: Optional[np.ndarray]) -> None:
    if mask is not None and mask.size != count:
        raise ValueError(f"Mask buffer of size {mask.size} does not match {count} correspondences")
    if mask is not None and mask.ndim == 2 and 1 not in mask.shape:
        raise ValueError(f"Mask buffer must be a vector, got shape {mask.shape}")
    if out is not None and out.shape not in ((3, 3), (9, 3)):
        raise ValueError(f"Output buffer must be 3x3 or 9x3, got {out.shape}")


def _write_buffers(result: FundamentalResult, count: int,
                   mask: Optional[np.ndarray], out: Optional[np.ndarray]) -> None:
    if out is not None:
        if out.shape[0] == 3:
            np.copyto(out, result.F[:3], casting='unsafe')
        else:
            out[...] = 0
            np.copyto(out[:result.F.shape[0]], result.F, casting='unsafe')

    if mask is not None:
        # the exact and linear paths use every correspondence
        inliers = result.mask if result.mask is not None else np.ones(count, dtype=bool)
        np.copyto(mask, inliers.reshape(mask.shape), casting='unsafe')


def _robust_path(m1, m2, method, threshold, confidence, max_iters, rng, tolerances):
    count = m1.shape[0]

    if threshold <= 0:
        threshold = DEFAULT_THRESHOLD
    if confidence < tolerances.confidence_eps or confidence > 1 - tolerances.confidence_eps:
        confidence = DEFAULT_CONFIDENCE

    if method is FMMethod.RANSAC and count >= RANSAC_MIN_POINTS:
        used = FMMethod.RANSAC
        fit = run_ransac(m1, m2, SEVEN_POINT_KERNEL, FUNDAMENTAL_METRIC, threshold,
                         confidence, max_iters, rng)
    else:
        used = FMMethod.LMEDS
        fit = run_lmeds(m1, m2, SEVEN_POINT_KERNEL, FUNDAMENTAL_METRIC, confidence, max_iters, rng)

    logger.debug(f"{used.value} requested as {method.value} on {count} correspondences")

    if fit.retval <= 0:
        return _failure(used, RobustEstimationFailure(
            f"{used.value} found no consensus model among {count} correspondences"), fit.num_iters)

    in1 = compress_points(m1, fit.mask)
    in2 = compress_points(m2, fit.mask)

    if in1.shape[0] < LINEAR_MIN_POINTS:
        return _failure(used, RobustEstimationFailure(
            f"{in1.shape[0]} inliers, at least {LINEAR_MIN_POINTS} are needed to polish the model"), fit.num_iters)

    try:
        F = u2F(in1, in2, tolerances)
    except EstimationError as e:
        return _failure(used, RobustEstimationFailure(f"polishing on {in1.shape[0]} inliers failed: {e}"),
                        fit.num_iters)

    return FundamentalResult(success=True, F=F, mask=fit.mask, num_iters=fit.num_iters, method=used)


def estimate_fundamental(points1, points2,
                         method: Union[FMMethod, str] = FMMethod.RANSAC,
                         threshold: float = DEFAULT_THRESHOLD,
                         confidence: float = DEFAULT_CONFIDENCE,
                         max_iters: int = DEFAULT_MAX_ITERS,
                         mask: Optional[np.ndarray] = None,
                         out: Optional[np.ndarray] = None,
                         rng: Optional[np.random.Generator] = None,
                         tolerances: Tolerances = DEFAULT_TOLERANCES) -> FundamentalResult:
    """
    Estimates the fundamental matrix F (x2' F x1 = 0) from point correspondences.

    Args:
        points1: points of the first image, (N, 2) Cartesian or (N, 3) homogeneous
                 (any layout accepted by to_cartesian).
        points2: corresponding points of the second image, same length.
        method: requested strategy. With exactly 7 correspondences the 7-point solver always
                runs. EIGHT_POINT runs the linear solver once on all points; every other request
                runs RANSAC when there are at least 15 correspondences and RANSAC was asked for,
                LMedS otherwise.
        threshold: RANSAC inlier distance in pixels (non-positive -> 3.0).
        confidence: robust confidence level (outside (eps, 1 - eps) -> 0.99).
        max_iters: RANSAC / LMedS sample cap.
        mask: optional preallocated buffer of N entries ((N,), (N, 1) or (1, N)), receives the
              inlier mask (all ones on the 7-point and 8-point paths).
        out: optional preallocated 3x3 or 9x3 buffer receiving the matrix (first candidate only
             for a 3x3 buffer on the 7-point path, zero padded for a 9x3 buffer).
        rng: random generator of the robust estimators.
        tolerances: near-zero thresholds.

    Returns:
        FundamentalResult. On failure F is None and neither buffer is written.

    Raises:
        ValueError for mismatched point counts or buffer shapes.
    """
    method = FMMethod(method)

    m1 = to_cartesian(points1)
    m2 = to_cartesian(points2)

    count = m1.shape[0]
    if m2.shape[0] != count:
        raise ValueError(f"Point sets differ in length: {count} and {m2.shape[0]}")

    _check_buffers(count, mask, out)

    if count < MIN_POINTS:
        return _failure(None, InsufficientPointsError(
            f"{count} correspondences, at least {MIN_POINTS} are required"))

    if count == MIN_POINTS:
        try:
            Fs = fu2F7(m1, m2, tolerances)
        except EstimationError as e:
            return _failure(FMMethod.SEVEN_POINT, e)
        logger.debug(f"7-point solver gave {len(Fs)} candidates")
        result = FundamentalResult(success=True, F=np.vstack(Fs), method=FMMethod.SEVEN_POINT)

    elif method is FMMethod.EIGHT_POINT:
        try:
            F = u2F(m1, m2, tolerances)
        except EstimationError as e:
            return _failure(FMMethod.EIGHT_POINT, e)
        result = FundamentalResult(success=True, F=F, method=FMMethod.EIGHT_POINT)

    else:
        result = _robust_path(m1, m2, method, threshold, confidence, max_iters, rng, tolerances)
        result.max_iters_reached = result.num_iters == max_iters
        if not result.success:
            return result

    _write_buffers(result, count, mask, out)

    return result
