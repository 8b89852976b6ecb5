import numpy as np
import pytest

import FundamentalCore.estimate_fundamental as ef
from EpipolarKernels.errors import (
    DegenerateScaleError,
    InsufficientPointsError,
    RankDeficiencyError,
    RobustEstimationFailure,
)
from EpipolarKernels.fm_error import fm_error
from EpipolarKernels.p2e import e2p
from EpipolarKernels.u2F import u2F
from FundamentalCfgAndIO.synthetic_scene import generate_synthetic_data
from FundamentalCore.estimate_fundamental import FMMethod, estimate_fundamental
from RobustEstimation.compress_points import compress_points
from RobustEstimation.model_kernel import RobustFit


class TestMethodSelection:
    @pytest.mark.parametrize('method', list(FMMethod))
    def test_seven_points_always_exact(self, clean_scene, method):
        """With exactly 7 correspondences the requested method is ignored."""
        pts1, pts2, _, _ = clean_scene
        result = estimate_fundamental(pts1[:7], pts2[:7], method)

        assert result.success
        assert result.method is FMMethod.SEVEN_POINT
        assert result.F.shape[0] in (3, 6, 9)
        assert result.F.shape[1] == 3
        assert len(result.candidates) == result.F.shape[0] // 3
        assert result.mask is None

    def test_eight_point(self, clean_scene, same_up_to_scale):
        pts1, pts2, true_F, _ = clean_scene
        result = estimate_fundamental(pts1, pts2, FMMethod.EIGHT_POINT)

        assert result.success
        assert result.method is FMMethod.EIGHT_POINT
        assert result.num_iters == 0
        assert same_up_to_scale(result.F, true_F)

    def test_method_names(self, clean_scene):
        pts1, pts2, _, _ = clean_scene
        assert estimate_fundamental(pts1, pts2, '8point').method is FMMethod.EIGHT_POINT
        with pytest.raises(ValueError):
            estimate_fundamental(pts1, pts2, 'homography')

    def test_few_points_ransac_runs_lmeds(self, rng):
        """RANSAC needs 15 correspondences, LMedS takes over below."""
        pts1, pts2, _, _ = generate_synthetic_data(14, noise_level=0.2, rng=rng)
        result = estimate_fundamental(pts1, pts2, FMMethod.RANSAC, rng=rng)
        assert result.method is FMMethod.LMEDS

    def test_seven_point_request_runs_lmeds(self, rng):
        pts1, pts2, _, _ = generate_synthetic_data(30, noise_level=0.2, rng=rng)
        result = estimate_fundamental(pts1, pts2, FMMethod.SEVEN_POINT, rng=rng)
        assert result.method is FMMethod.LMEDS

    def test_parameter_defaults(self, monkeypatch, contaminated_scene):
        """Non-positive thresholds and out of range confidences fall back to 3.0 and 0.99."""
        pts1, pts2, _, _ = contaminated_scene
        calls = []

        def fake_ransac(x1, x2, kernel, metric, threshold, confidence, max_iters, rng):
            calls.append((threshold, confidence))
            return RobustFit(model=None, mask=np.zeros(x1.shape[0], dtype=bool), num_iters=1, retval=0)

        monkeypatch.setattr(ef, 'run_ransac', fake_ransac)

        estimate_fundamental(pts1, pts2, FMMethod.RANSAC, threshold=0.0, confidence=1.5)
        estimate_fundamental(pts1, pts2, FMMethod.RANSAC, threshold=-2.0, confidence=0.0)
        estimate_fundamental(pts1, pts2, FMMethod.RANSAC, threshold=0.5, confidence=0.9)

        assert calls == [(3.0, 0.99), (3.0, 0.99), (0.5, 0.9)]


class TestRobustEstimation:
    @pytest.mark.parametrize('seed', [0, 1, 2, 3, 4])
    def test_ransac_end_to_end(self, seed, same_up_to_scale):
        rng = np.random.default_rng(seed)
        pts1, pts2, true_F, is_inlier = generate_synthetic_data(20, 5, rng=rng)

        result = estimate_fundamental(pts1, pts2, FMMethod.RANSAC, threshold=1.0, confidence=0.99, rng=rng)

        assert result.success
        assert result.method is FMMethod.RANSAC
        assert np.array_equal(result.mask, is_inlier)
        assert same_up_to_scale(result.F, true_F, atol=1e-6)
        assert not result.max_iters_reached

    def test_lmeds(self, rng):
        pts1, pts2, _, is_inlier = generate_synthetic_data(40, 10, noise_level=0.2, rng=rng)
        result = estimate_fundamental(pts1, pts2, FMMethod.LMEDS, rng=rng)

        assert result.success
        assert result.method is FMMethod.LMEDS
        assert not np.any(result.mask[~is_inlier])
        assert np.median(fm_error(result.F, pts1[is_inlier], pts2[is_inlier])) < 1.0

    def test_polish_is_idempotent(self, rng):
        """Re-fitting the returned inliers gives back the returned matrix."""
        pts1, pts2, _, _ = generate_synthetic_data(60, 15, noise_level=0.3, rng=rng)
        result = estimate_fundamental(pts1, pts2, FMMethod.RANSAC, threshold=1.5, rng=rng)
        assert result.success

        in1 = compress_points(pts1, result.mask)
        in2 = compress_points(pts2, result.mask)

        assert np.allclose(u2F(in1, in2), result.F)
        again = estimate_fundamental(in1, in2, FMMethod.EIGHT_POINT)
        assert np.allclose(again.F, result.F)

    def test_iteration_cap(self, rng):
        pts1 = rng.uniform(0, 640, (30, 2))
        pts2 = rng.uniform(0, 640, (30, 2))

        with pytest.warns(UserWarning):
            result = estimate_fundamental(pts1, pts2, FMMethod.RANSAC, threshold=1.0, max_iters=5, rng=rng)

        assert result.num_iters == 5
        assert result.max_iters_reached

    def test_too_few_inliers_to_polish(self, monkeypatch, contaminated_scene):
        pts1, pts2, _, _ = contaminated_scene
        mask = np.arange(pts1.shape[0]) < 7
        monkeypatch.setattr(ef, 'run_ransac',
                            lambda *args: RobustFit(model=np.eye(3), mask=mask, num_iters=3, retval=7))

        result = estimate_fundamental(pts1, pts2, FMMethod.RANSAC)

        assert not result.success
        assert result.F is None
        assert isinstance(result.error, RobustEstimationFailure)
        assert result.num_iters == 3

    def test_polish_failure(self, monkeypatch, collinear_points):
        pts1, pts2 = collinear_points
        mask = np.ones(pts1.shape[0], dtype=bool)
        monkeypatch.setattr(ef, 'run_ransac',
                            lambda *args: RobustFit(model=np.eye(3), mask=mask, num_iters=1, retval=20))

        result = estimate_fundamental(pts1, pts2, FMMethod.RANSAC)

        assert not result.success
        assert isinstance(result.error, RobustEstimationFailure)


class TestFailures:
    def test_insufficient_points(self, clean_scene):
        pts1, pts2, _, _ = clean_scene
        result = estimate_fundamental(pts1[:6], pts2[:6])

        assert not result.success
        assert result.method is None
        assert isinstance(result.error, InsufficientPointsError)

    def test_coincident_points(self, clean_scene):
        _, pts2, _, _ = clean_scene
        pts1 = np.tile([[320.0, 240.0]], (30, 1))
        result = estimate_fundamental(pts1, pts2, FMMethod.EIGHT_POINT)

        assert not result.success
        assert isinstance(result.error, DegenerateScaleError)

    def test_collinear_points(self, collinear_points):
        result = estimate_fundamental(*collinear_points, FMMethod.EIGHT_POINT)

        assert not result.success
        assert isinstance(result.error, RankDeficiencyError)

    def test_length_mismatch(self, clean_scene):
        pts1, pts2, _, _ = clean_scene
        with pytest.raises(ValueError):
            estimate_fundamental(pts1, pts2[:20])


class TestBuffers:
    def test_mask_and_matrix_buffers(self, contaminated_scene, rng):
        pts1, pts2, _, is_inlier = contaminated_scene
        mask = np.zeros((50, 1), dtype=np.uint8)
        out = np.full((3, 3), np.nan)

        result = estimate_fundamental(pts1, pts2, FMMethod.RANSAC, threshold=1.0, mask=mask, out=out, rng=rng)

        assert result.success
        assert np.array_equal(mask.ravel(), is_inlier.astype(np.uint8))
        assert np.array_equal(out, result.F)

    def test_seven_point_buffers(self, clean_scene):
        pts1, pts2, _, _ = clean_scene
        mask = np.zeros(7, dtype=bool)
        stack = np.full((9, 3), np.nan)
        single = np.zeros((3, 3))

        result = estimate_fundamental(pts1[:7], pts2[:7], mask=mask, out=stack)
        estimate_fundamental(pts1[:7], pts2[:7], out=single)

        k = result.F.shape[0]
        assert mask.all()
        assert np.array_equal(stack[:k], result.F)
        assert np.all(stack[k:] == 0)
        assert np.array_equal(single, result.F[:3])

    def test_linear_path_sets_every_mask_entry(self, clean_scene):
        pts1, pts2, _, _ = clean_scene
        mask = np.zeros(30, dtype=np.uint8)
        estimate_fundamental(pts1, pts2, FMMethod.EIGHT_POINT, mask=mask)
        assert np.all(mask == 1)

    def test_failure_leaves_buffers(self, collinear_points):
        mask = np.full(20, 7, dtype=np.uint8)
        out = np.full((3, 3), 7.0)
        estimate_fundamental(*collinear_points, FMMethod.EIGHT_POINT, mask=mask, out=out)

        assert np.all(mask == 7)
        assert np.all(out == 7.0)

    def test_bad_buffers(self, clean_scene):
        pts1, pts2, _, _ = clean_scene
        with pytest.raises(ValueError):
            estimate_fundamental(pts1, pts2, mask=np.zeros(29))
        with pytest.raises(ValueError):
            estimate_fundamental(pts1, pts2, mask=np.zeros((5, 6)))
        with pytest.raises(ValueError):
            estimate_fundamental(pts1, pts2, out=np.zeros((6, 3)))


class TestInputs:
    def test_homogeneous_and_column_layouts(self, clean_scene):
        pts1, pts2, _, _ = clean_scene
        F = estimate_fundamental(pts1, pts2, FMMethod.EIGHT_POINT).F

        assert np.allclose(estimate_fundamental(e2p(pts1), e2p(pts2), FMMethod.EIGHT_POINT).F, F)
        assert np.allclose(estimate_fundamental(pts1.T, pts2.T, FMMethod.EIGHT_POINT).F, F)

    def test_inputs_untouched(self, contaminated_scene, rng):
        pts1, pts2, _, _ = contaminated_scene
        c1, c2 = pts1.copy(), pts2.copy()
        estimate_fundamental(pts1, pts2, FMMethod.RANSAC, rng=rng)

        assert np.array_equal(pts1, c1)
        assert np.array_equal(pts2, c2)
