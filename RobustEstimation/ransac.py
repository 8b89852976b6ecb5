import logging
import warnings

import numpy as np

from RobustEstimation.model_kernel import ErrorMetric, MinimalSampleKernel, RobustFit, find_inliers
from RobustEstimation.nsamples import nsamples

logger = logging.getLogger(__name__)


def get_subset(count, sample_size, rng):
    """Indices of a random minimal sample, all distinct."""
    if count == sample_size:
        return np.arange(count)
    return rng.choice(count, size=sample_size, replace=False)


def run_ransac(x1, x2, kernel: MinimalSampleKernel, metric: ErrorMetric, threshold,
               confidence=0.99, max_iters=2000, rng=None) -> RobustFit:
    """
    Robust estimation of a model via RANSAC

    Parameters:
    -----------
    x1, x2 : numpy.ndarray (Nx2)
        Corresponding points in the first and second image
    kernel : MinimalSampleKernel
        Minimal solver; each sample yields up to kernel.max_models hypotheses
    metric : ErrorMetric
        Squared error of every correspondence under a hypothesis
    threshold : float
        Inlier tolerance in pixels, a correspondence is an inlier when its error <= threshold²
    confidence : float, optional (default=0.99)
        Confidence level of self-termination (higher values mean more samples will be taken)
    max_iters : int, optional (default=2000)
        Hard limit on the number of samples
    rng : numpy.random.Generator, optional

    Returns:
    --------
    RobustFit
        model : best hypothesis (None if no hypothesis reached sample_size inliers)
        mask : numpy.ndarray (N,) of bool, inliers of the best hypothesis
        num_iters : number of samples drawn
        retval : number of inliers of the best hypothesis, 0 on failure

    Notes:
    ------
    A hypothesis replaces the current best one when it has more inliers and at least
    sample_size of them; each replacement shrinks the number of samples still needed
    (see nsamples).
    """
    if rng is None:
        rng = np.random.default_rng()

    len_pts = x1.shape[0]
    ss = kernel.sample_size

    inls = np.zeros(len_pts, dtype=bool)
    F = None
    max_i = 0

    if len_pts < ss:
        return RobustFit(model=F, mask=inls, num_iters=0, retval=0)

    max_sam = 1 if len_pts == ss else max_iters
    no_sam = 0

    while no_sam < max_sam:
        ptr = get_subset(len_pts, ss, rng)
        no_sam += 1

        for aF in kernel.solve(x1[ptr], x2[ptr])[:kernel.max_models]:
            v, no_i = find_inliers(metric, aF, x1, x2, threshold)

            if no_i > max(max_i, ss - 1):
                inls = v
                F = aF
                max_i = no_i
                max_sam = nsamples(confidence, (len_pts - no_i) / len_pts, ss, max_sam)

    if no_sam == max_iters:
        warnings.warn(f'RANSAC - termination forced after {no_sam} samples')

    logger.info(f"RANSAC: {no_sam} samples, {max_i} inliers out of {len_pts} points")

    return RobustFit(model=F, mask=inls, num_iters=no_sam, retval=max_i)
