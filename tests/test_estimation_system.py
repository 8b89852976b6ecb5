import json

import numpy as np
import pytest

from FundamentalCfgAndIO.EstimationSystem import EstimationConfig, EstimationSystem
from FundamentalCore.estimate_fundamental import FMMethod


@pytest.fixture
def system():
    return EstimationSystem()


@pytest.fixture
def config():
    return EstimationConfig(method='lmeds', threshold=1.5, confidence=0.995, max_iters=500, seed=7)


class TestEstimationConfig:
    def test_defaults(self):
        config = EstimationConfig()
        assert config.method == 'ransac'
        assert config.threshold == 3.0
        assert config.confidence == 0.99
        assert config.max_iters == 2000
        assert config.seed is None

    def test_method_is_validated(self):
        assert EstimationConfig(method='LMEDS').method == 'lmeds'
        assert EstimationConfig(method=FMMethod.LMEDS).method == 'lmeds'
        with pytest.raises(ValueError):
            EstimationConfig(method='homography')


class TestConfigFiles:
    def test_cfg_round_trip(self, system, config, tmp_path):
        system.save_config(config, tmp_path / 'estimation.cfg')
        assert system.load_config(tmp_path / 'estimation.cfg') == config
        assert system.current_config == config

    def test_cfg_layout(self, system, config, tmp_path):
        system.save_config(config, tmp_path / 'estimation.cfg')
        text = (tmp_path / 'estimation.cfg').read_text()

        assert '[Estimation]' in text
        assert 'Max-Iters = 500' in text
        assert 'Seed = 7' in text
        assert '[PATHS]' not in text

    def test_json_round_trip(self, system, config, tmp_path):
        system.save_config(config, tmp_path / 'estimation.json')
        assert system.load_config(tmp_path / 'estimation.json') == config

    def test_cfg_without_seed(self, system, tmp_path):
        config = EstimationConfig(method='8point')
        system.save_config(config, tmp_path / 'sub' / 'estimation.cfg')
        loaded = system.load_config(tmp_path / 'sub' / 'estimation.cfg')
        assert loaded.seed is None
        assert loaded.method == '8point'

    def test_handwritten_cfg(self, system, tmp_path):
        (tmp_path / 'estimation.cfg').write_text(
            "[PATHS]\nData-Path: /data/scene\n\n"
            "[Files]\nPoints: matches.dat\n\n"
            "[Estimation]\nMethod: ransac\nThreshold: 0.8\nMax-Iters: not-a-number\n")
        config = system.load_config(tmp_path / 'estimation.cfg')

        assert config.data_path == '/data/scene'
        assert config.points_file == 'matches.dat'
        assert config.threshold == 0.8
        assert config.max_iters == 2000
        assert config.confidence == 0.99

    def test_missing_file(self, system, tmp_path):
        with pytest.raises(FileNotFoundError):
            system.load_config(tmp_path / 'nothing.cfg')

    def test_unsupported_format(self, system, config, tmp_path):
        (tmp_path / 'estimation.txt').write_text('')
        with pytest.raises(ValueError):
            system.load_config(tmp_path / 'estimation.txt')
        with pytest.raises(ValueError):
            system.save_config(config, tmp_path / 'estimation.yaml')


class TestCorrespondences:
    def test_cartesian_file(self, system, clean_scene, tmp_path):
        pts1, pts2, _, _ = clean_scene
        np.savetxt(tmp_path / 'points.dat', np.hstack((pts1, pts2)))
        m1, m2 = system.load_correspondences(EstimationConfig(data_path=str(tmp_path)))

        assert np.allclose(m1, pts1)
        assert np.allclose(m2, pts2)

    def test_homogeneous_csv_file(self, system, clean_scene, tmp_path):
        pts1, pts2, _, _ = clean_scene
        ones = np.ones((pts1.shape[0], 1))
        np.savetxt(tmp_path / 'matches.csv', np.hstack((pts1, ones, pts2, ones)), delimiter=',')
        m1, m2 = system.load_correspondences(EstimationConfig(data_path=str(tmp_path), points_file='matches.csv'))

        assert m1.shape == (30, 3)
        assert np.allclose(m2[:, :2], pts2)

    def test_tab_separated_file(self, system, clean_scene, tmp_path):
        pts1, pts2, _, _ = clean_scene
        np.savetxt(tmp_path / 'points.dat', np.hstack((pts1, pts2)), delimiter='\t')
        m1, _ = system.load_correspondences(EstimationConfig(data_path=str(tmp_path)))
        assert np.allclose(m1, pts1)

    def test_wrong_column_count(self, system, tmp_path):
        np.savetxt(tmp_path / 'points.dat', np.zeros((10, 5)))
        with pytest.raises(ValueError):
            system.load_correspondences(EstimationConfig(data_path=str(tmp_path)))

    def test_missing_points_file(self, system, tmp_path):
        with pytest.raises(FileNotFoundError):
            system.load_correspondences(EstimationConfig(data_path=str(tmp_path)))

    def test_no_config(self, system):
        with pytest.raises(ValueError):
            system.load_correspondences()


class TestEstimateAndSave:
    def test_estimate_and_save(self, system, contaminated_scene, tmp_path):
        pts1, pts2, _, is_inlier = contaminated_scene
        config = EstimationConfig(data_path=str(tmp_path), threshold=1.0, seed=3)

        result = system.estimate(config, pts1, pts2)
        assert result.success
        assert result.method is FMMethod.RANSAC
        assert np.array_equal(result.mask, is_inlier)

        output_path = system.save_results(config, result)

        assert output_path == tmp_path / 'Results'
        assert np.allclose(np.loadtxt(output_path / 'F.dat'), result.F)
        assert np.array_equal(np.loadtxt(output_path / 'inliers.dat').astype(bool), is_inlier)
        assert system.load_config(output_path / 'config.cfg') == config

        summary = json.loads((output_path / 'summary.json').read_text())
        assert summary['success'] is True
        assert summary['method'] == 'ransac'
        assert summary['num_inliers'] == 40

    def test_seed_makes_runs_repeatable(self, system, rng):
        from FundamentalCfgAndIO.synthetic_scene import generate_synthetic_data

        pts1, pts2, _, _ = generate_synthetic_data(40, 10, noise_level=0.5, rng=rng)
        config = EstimationConfig(threshold=1.0, seed=11)

        first = system.estimate(config, pts1, pts2)
        second = system.estimate(config, pts1, pts2)

        assert first.num_iters == second.num_iters
        assert np.array_equal(first.F, second.F)

    def test_save_failure(self, system, tmp_path):
        config = EstimationConfig()
        pts = np.zeros((5, 2))
        result = system.estimate(config, pts, pts)

        output_path = system.save_results(config, result, output_folder=str(tmp_path / 'failed'))

        assert not (output_path / 'F.dat').exists()
        summary = json.loads((output_path / 'summary.json').read_text())
        assert summary['success'] is False
        assert 'at least 7' in summary['error']
