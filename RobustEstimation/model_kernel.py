"""
Capabilities handed to the robust estimators.

A MinimalSampleKernel turns a minimal sample of correspondences into candidate models,
an ErrorMetric scores a model against every correspondence. The estimators in
RobustEstimation.ransac and RobustEstimation.lmeds only talk to these two.
"""

from dataclasses import dataclass
from typing import Callable, List, Tuple

import numpy as np

from EpipolarKernels.fm_error import fm_error
from EpipolarKernels.fu2F7 import run_seven_point
from EpipolarKernels.u2F import run_eight_point

ErrorMetric = Callable[[np.ndarray, np.ndarray, np.ndarray], np.ndarray]


@dataclass(frozen=True)
class MinimalSampleKernel:
    """
    sample_size: number of correspondences per minimal sample.
    max_models: candidates per sample the estimators score, extra ones are ignored.
    solve: (x1, x2) -> list of candidate models, empty when the sample is degenerate.
    """
    sample_size: int
    max_models: int
    solve: Callable[[np.ndarray, np.ndarray], List[np.ndarray]]


@dataclass
class RobustFit:
    """Outcome of a robust estimator; retval <= 0 means no model was found."""
    model: np.ndarray
    mask: np.ndarray
    num_iters: int
    retval: int


SEVEN_POINT_KERNEL = MinimalSampleKernel(sample_size=7, max_models=3, solve=run_seven_point)
EIGHT_POINT_KERNEL = MinimalSampleKernel(sample_size=8, max_models=1, solve=run_eight_point)
FUNDAMENTAL_METRIC: ErrorMetric = fm_error


def find_inliers(metric: ErrorMetric, model: np.ndarray, x1: np.ndarray, x2: np.ndarray,
                 threshold: float) -> Tuple[np.ndarray, int]:
    """Marks the correspondences whose error does not exceed threshold² (the metric is squared)."""
    err = metric(model, x1, x2)
    mask = err <= threshold * threshold
    return mask, int(np.count_nonzero(mask))
