import logging

import numpy as np

from RobustEstimation.model_kernel import ErrorMetric, MinimalSampleKernel, RobustFit, find_inliers
from RobustEstimation.ransac import get_subset

logger = logging.getLogger(__name__)

# outlier fraction assumed when sizing the number of LMedS samples
LMEDS_OUTLIER_RATIO = 0.45


def run_lmeds(x1, x2, kernel: MinimalSampleKernel, metric: ErrorMetric,
              confidence=0.99, max_iters=2000, rng=None,
              outlier_ratio=LMEDS_OUTLIER_RATIO) -> RobustFit:
    """
    Least Median of Squares estimation of a model.

    See Peter J. Rousseeuw, "Least Median of Squares Regression", 1984.

    The number of samples is fixed up front from the confidence and an assumed outlier
    ratio, clamped to [3, max_iters]. The hypothesis with the smallest median error wins;
    its inliers are the correspondences within the robust standard deviation

        sigma = 2.5 * 1.4826 * (1 + 5 / (N - sample_size)) * sqrt(median)

    (at least 0.001). Fails (retval 0) unless at least sample_size inliers remain.
    """
    if rng is None:
        rng = np.random.default_rng()

    count = x1.shape[0]
    ss = kernel.sample_size
    empty = np.zeros(count, dtype=bool)

    if count < ss:
        return RobustFit(model=None, mask=empty, num_iters=0, retval=0)

    if count == ss:
        niters = 1
    else:
        num = np.log(max(1.0 - confidence, np.finfo(float).tiny))
        denom = np.log(1.0 - (1.0 - outlier_ratio) ** ss)
        niters = int(round(num / denom))
        niters = min(max(niters, 3), max_iters)

    model = None
    min_median = np.inf

    for _ in range(niters):
        idx = get_subset(count, ss, rng)

        for aF in kernel.solve(x1[idx], x2[idx])[:kernel.max_models]:
            median = np.median(metric(aF, x1, x2))
            if median < min_median:
                min_median = median
                model = aF

    if model is None:
        logger.info(f"LMedS: no hypothesis after {niters} samples")
        return RobustFit(model=None, mask=empty, num_iters=niters, retval=0)

    spread = 1.0 + 5.0 / (count - ss) if count > ss else 1.0
    sigma = max(2.5 * 1.4826 * spread * np.sqrt(min_median), 0.001)

    inls, no_i = find_inliers(metric, model, x1, x2, sigma)
    logger.info(f"LMedS: {niters} samples, median error {min_median:.4g}, {no_i} inliers out of {count} points")

    return RobustFit(model=model, mask=inls, num_iters=niters, retval=no_i if no_i >= ss else 0)
