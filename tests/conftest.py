import numpy as np
import pytest

from FundamentalCfgAndIO.synthetic_scene import generate_synthetic_data


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def clean_scene(rng):
    """30 exact correspondences, no noise and no outliers."""
    return generate_synthetic_data(num_points=30, rng=rng)


@pytest.fixture
def contaminated_scene(rng):
    """40 exact correspondences followed by 10 outliers."""
    return generate_synthetic_data(num_points=40, num_outliers=10, rng=rng)


@pytest.fixture
def collinear_points(rng):
    """20 correspondences lying on y = 2x + 1 in both images."""
    x0 = rng.uniform(0, 640, 20)
    x1 = rng.uniform(0, 640, 20)
    return np.column_stack([x0, 2 * x0 + 1]), np.column_stack([x1, 2 * x1 + 1])


@pytest.fixture
def same_up_to_scale():
    def check(A, B, atol=1e-8):
        A = A / np.linalg.norm(A)
        B = B / np.linalg.norm(B)
        # fix the sign on the largest entry
        k = np.argmax(np.abs(A))
        A = A * np.sign(A.flat[k])
        B = B * np.sign(B.flat[k])
        return np.allclose(A, B, atol=atol)
    return check
