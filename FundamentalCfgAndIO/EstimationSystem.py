"""
Fundamental Matrix Estimation System
====================================

File driven front end of the estimator:
- EstimationConfig holds the estimation parameters and file locations
- .cfg (INI) and .json configuration files
- points.dat correspondence files (x0 y0 x1 y1, or homogeneous x0 y0 w0 x1 y1 w1 per line)
- F.dat / inliers.dat / summary.json results

Usage:
    from FundamentalCfgAndIO.EstimationSystem import EstimationSystem

    system = EstimationSystem()
    config = system.load_config('path/to/estimation.cfg')
    m1, m2 = system.load_correspondences(config)
    result = system.estimate(config, m1, m2)
    system.save_results(config, result)
"""

import configparser
import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np

from FundamentalCore.estimate_fundamental import (
    DEFAULT_CONFIDENCE,
    DEFAULT_MAX_ITERS,
    DEFAULT_THRESHOLD,
    FMMethod,
    FundamentalResult,
    estimate_fundamental,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@dataclass
class EstimationConfig:
    """Configuration of one fundamental matrix estimation."""

    # Paths
    data_path: str = ""

    # Files
    points_file: str = "points.dat"
    results_folder: str = "Results"

    # Estimation
    method: str = FMMethod.RANSAC.value
    threshold: float = DEFAULT_THRESHOLD
    confidence: float = DEFAULT_CONFIDENCE
    max_iters: int = DEFAULT_MAX_ITERS
    seed: Optional[int] = None

    def __post_init__(self):
        """Validate the method name."""
        method = self.method.lower() if isinstance(self.method, str) else self.method
        self.method = FMMethod(method).value


# (section, key) of every field in .cfg files
CFG_KEYS = {
    'data_path': ('PATHS', 'Data-Path'),
    'points_file': ('Files', 'Points'),
    'results_folder': ('Files', 'Results-Folder'),
    'method': ('Estimation', 'Method'),
    'threshold': ('Estimation', 'Threshold'),
    'confidence': ('Estimation', 'Confidence'),
    'max_iters': ('Estimation', 'Max-Iters'),
    'seed': ('Estimation', 'Seed'),
}

CFG_TYPES = {'threshold': float, 'confidence': float, 'max_iters': int, 'seed': int}


class EstimationSystem:
    """
    Main estimation system class: configuration, correspondence files and results.
    """

    def __init__(self):
        """Initialize the estimation system."""
        self.current_config = None
        logger.info("EstimationSystem initialized")

    def load_config(self, filepath: Union[str, Path]) -> EstimationConfig:
        """Load configuration from a .cfg (INI) or .json file."""
        filepath = Path(filepath)

        if filepath.suffix not in ('.cfg', '.json'):
            raise ValueError(f"Unsupported file format: {filepath.suffix}. Use .cfg or .json")
        if not filepath.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        if filepath.suffix == '.json':
            with open(filepath, 'r') as f:
                config = EstimationConfig(**json.load(f))
        else:
            config = self._load_from_cfg(filepath)

        self.current_config = config
        logger.info(f"Loaded config: {filepath.name} ({config.method})")
        return config

    def _load_from_cfg(self, filepath: Path) -> EstimationConfig:
        """Missing keys keep their defaults, so do malformed numbers."""
        parser = configparser.ConfigParser()
        parser.read(filepath)

        values = {}
        for name, (section, key) in CFG_KEYS.items():
            raw = parser.get(section, key, fallback='').strip()
            if not raw:
                continue
            try:
                values[name] = CFG_TYPES.get(name, str)(raw)
            except ValueError:
                logger.warning(f"{filepath.name}: ignoring [{section}] {key} = {raw}")

        return EstimationConfig(**values)

    def save_config(self, config: EstimationConfig, filepath: Union[str, Path]) -> None:
        """Save configuration; the suffix (.cfg or .json) picks the format."""
        filepath = Path(filepath)
        if filepath.suffix not in ('.cfg', '.json'):
            raise ValueError(f"Unsupported file format: {filepath.suffix}. Use .cfg or .json")

        filepath.parent.mkdir(parents=True, exist_ok=True)

        with open(filepath, 'w') as f:
            if filepath.suffix == '.json':
                json.dump(asdict(config), f, indent=2)
            else:
                cfg = configparser.ConfigParser()
                cfg.optionxform = str  # keep the key case
                for name, (section, key) in CFG_KEYS.items():
                    value = getattr(config, name)
                    if value is None or value == '':
                        continue
                    if not cfg.has_section(section):
                        cfg.add_section(section)
                    cfg.set(section, key, str(value))
                cfg.write(f)

        logger.info(f"Saved config to {filepath}")

    def load_correspondences(self, config: Optional[EstimationConfig] = None) -> Tuple[np.ndarray, np.ndarray]:
        """
        Load point correspondences from the config's points file.

        Each line holds one correspondence, either 'x0 y0 x1 y1' or the homogeneous
        'x0 y0 w0 x1 y1 w1'.

        Returns:
            (m1, m2): the points of the first and of the second image, (N, 2) or (N, 3) arrays.
        """
        if config is None:
            if self.current_config is None:
                raise ValueError("No configuration loaded. Call load_config() first.")
            config = self.current_config

        u = np.atleast_2d(self._load_data_file(Path(config.data_path) / config.points_file))

        if u.shape[1] == 4:
            m1, m2 = u[:, 0:2], u[:, 2:4]
        elif u.shape[1] == 6:
            m1, m2 = u[:, 0:3], u[:, 3:6]
        else:
            raise ValueError(f"Expected 4 or 6 columns of correspondences, got {u.shape[1]}")

        logger.info(f"Loaded {u.shape[0]} correspondences from {config.points_file}")
        return m1, m2

    def _load_data_file(self, filepath: Path) -> np.ndarray:
        """Whitespace (spaces or tabs) or comma separated columns."""
        if not filepath.exists():
            raise FileNotFoundError(f"Data file not found: {filepath}")

        with open(filepath, 'r') as f:
            text = f.read()

        return np.loadtxt(filepath, delimiter=',' if ',' in text else None)

    def estimate(self, config: EstimationConfig, m1: np.ndarray, m2: np.ndarray) -> FundamentalResult:
        """Run the estimator with the parameters of config."""
        rng = np.random.default_rng(config.seed)
        result = estimate_fundamental(m1, m2, config.method, config.threshold, config.confidence,
                                      config.max_iters, rng=rng)

        if result.success:
            inliers = int(np.sum(result.mask)) if result.mask is not None else m1.shape[0]
            logger.info(f"Estimated F with {result.method.value}: {inliers} of {m1.shape[0]} correspondences used, "
                        f"{result.num_iters} iterations")
        return result

    def save_results(self, config: EstimationConfig, result: FundamentalResult,
                     output_folder: Optional[str] = None) -> Path:
        """Save the estimated matrix, the inlier mask, the configuration and a summary."""
        output_folder = output_folder or config.results_folder
        if config.data_path:
            output_path = Path(config.data_path) / output_folder
        else:
            output_path = Path(output_folder)

        output_path.mkdir(parents=True, exist_ok=True)

        logger.info(f"Saving results to: {output_path}")

        self.save_config(config, output_path / 'config.cfg')

        if result.success:
            np.savetxt(output_path / 'F.dat', result.F, fmt='%.12e')
        if result.mask is not None:
            np.savetxt(output_path / 'inliers.dat', result.mask.astype(int), fmt='%d')

        summary = {
            'success': result.success,
            'method': result.method.value if result.method else None,
            'num_iters': result.num_iters,
            'max_iters_reached': result.max_iters_reached,
            'num_inliers': int(np.sum(result.mask)) if result.mask is not None else None,
            'num_candidates': len(result.candidates),
            'error': str(result.error) if result.error else None,
        }
        with open(output_path / 'summary.json', 'w') as f:
            json.dump(summary, f, indent=2)

        return output_path

