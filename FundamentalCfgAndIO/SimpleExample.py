"""
Simple Example - How to Use the Estimation System
=================================================
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt
import numpy as np

from EpipolarKernels.fm_error import fm_error
from FundamentalCfgAndIO.EstimationSystem import EstimationConfig, EstimationSystem
from FundamentalCfgAndIO.epipolar_plot import draw_epipolar_lines
from FundamentalCfgAndIO.synthetic_scene import generate_synthetic_data


def main(output_folder='Results', seed=0):
    print("=" * 60)
    print("FUNDAMENTAL MATRIX ESTIMATION - SIMPLE EXAMPLE")
    print("=" * 60)

    rng = np.random.default_rng(seed)
    system = EstimationSystem()

    # Step 1: Synthetic correspondences, 20% outliers
    print("\n1. Generating synthetic data...")
    pts1, pts2, true_F, is_inlier = generate_synthetic_data(
        num_points=160, num_outliers=40, noise_level=0.5, rng=rng)
    print(f"   Correspondences: {pts1.shape[0]} ({np.sum(~is_inlier)} outliers)")

    # Step 2: Estimate
    print("\n2. Estimating fundamental matrix using RANSAC...")
    config = EstimationConfig(method='ransac', threshold=2.0, confidence=0.99, seed=seed,
                              results_folder=output_folder)
    result = system.estimate(config, pts1, pts2)

    if not result.success:
        print(f"   Estimation failed: {result.error}")
        return result

    errors = fm_error(result.F, pts1, pts2)
    print(f"   Inliers: {np.sum(result.mask)} of {pts1.shape[0]} after {result.num_iters} iterations")
    print(f"   Correctly classified: {np.sum(result.mask == is_inlier)}")
    print(f"   Mean squared epipolar error of inliers: {np.mean(errors[result.mask]):.4f}")
    print(f"\n   True F:\n{true_F}")
    print(f"\n   Estimated F:\n{result.F}")

    # Step 3: Save results and a plot
    print("\n3. Saving results...")
    output_path = system.save_results(config, result)
    fig = draw_epipolar_lines(result.F, pts1, pts2, result.mask, num_lines=15, rng=rng)
    fig.savefig(output_path / 'epipolar_lines.png')
    plt.close(fig)

    print(f"\nDONE! Results saved to: {output_path}/")
    return result


if __name__ == "__main__":
    main()
