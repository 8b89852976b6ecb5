import numpy as np


def nsamples(conf, outlier_ratio, pf, max_iters):
    """
    Computes the required number of random samples to achieve a desired confidence level
    in robust estimation.

    Parameters:
    -----------
    conf : (float) The desired confidence level, clamped to [0, 1].
    outlier_ratio : (float) The current fraction of outliers, clamped to [0, 1].
    pf : (int) The number of points needed to estimate the model.
    max_iters : (int) The current iteration budget; the result never exceeds it.

    Returns:
    --------
    SampleCnt : (int) The number of samples needed so that, with probability conf,
                at least one of them contains inliers only.

    Explanation:
    ------------
    The formula is derived from (1 - (1 - outl)^pf)^N = 1 - conf. When the logarithms
    under/overflow, or the estimate exceeds max_iters, the budget is left as it is.
    """
    conf = min(max(conf, 0.0), 1.0)
    outlier_ratio = min(max(outlier_ratio, 0.0), 1.0)

    tiny = np.finfo(float).tiny
    num = max(1.0 - conf, tiny)
    denom = 1.0 - (1.0 - outlier_ratio) ** pf
    if denom < tiny:
        return 0

    num = np.log(num)
    denom = np.log(denom)

    if denom >= 0 or -num >= max_iters * (-denom):
        return max_iters

    return int(round(num / denom))


# Example usage
"""
conf = 0.99  # Desired confidence level
outl = 0.2  # 20% outliers
pf = 7  # Number of points needed for the model

print(nsamples(conf, outl, pf, 2000))  # 20
"""
