"""
Shared test fixtures and synthetic return generators for pytest.

Provides:
- Return matrices with exactly prescribed sample mean and covariance
- Degenerate series (constant rows, identical columns)
- Mock settings for avoiding environment dependencies
"""

from typing import Optional, Sequence
from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest


# =============================================================================
# Synthetic Return Generators
# =============================================================================


def make_returns_with_moments(
    means: Sequence[float],
    covariance: np.ndarray,
    n_obs: int = 250,
    seed: int = 7,
) -> np.ndarray:
    """
    Create a T x N return matrix whose sample mean and sample covariance
    (ddof=1) equal `means` and `covariance` up to rounding.

    Random draws are centered and whitened to identity sample covariance,
    then colored with the Cholesky factor of the target.
    """
    means = np.asarray(means, dtype=float)
    covariance = np.asarray(covariance, dtype=float)
    n_assets = means.shape[0]

    rng = np.random.default_rng(seed)
    z = rng.standard_normal((n_obs, n_assets))
    z -= z.mean(axis=0)
    whitening = np.linalg.cholesky(np.atleast_2d(np.cov(z, rowvar=False, ddof=1)))
    z = z @ np.linalg.inv(whitening).T

    return z @ np.linalg.cholesky(covariance).T + means


def make_random_returns(
    n_obs: int = 250,
    n_assets: int = 4,
    seed: int = 11,
    columns: Optional[Sequence[str]] = None,
) -> pd.DataFrame:
    """Daily-like returns with distinct drifts and volatilities."""
    rng = np.random.default_rng(seed)
    drift = np.linspace(0.0002, 0.0012, n_assets)
    vol = np.linspace(0.008, 0.025, n_assets)
    data = drift + rng.standard_normal((n_obs, n_assets)) * vol
    columns = list(columns) if columns else [f"A{i}" for i in range(n_assets)]
    index = pd.date_range("2024-01-01", periods=n_obs, freq="B")
    return pd.DataFrame(data, index=index, columns=columns)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def scenario_a_returns():
    """Two uncorrelated assets: means [0.01, 0.02], variances [0.04, 0.09]."""
    return make_returns_with_moments([0.01, 0.02], np.diag([0.04, 0.09]))


@pytest.fixture
def random_returns():
    """Four assets of daily-like returns as a DataFrame."""
    return make_random_returns()


@pytest.fixture
def constant_returns():
    """Every row identical: zero variance for every asset."""
    return np.tile([0.01, 0.02, -0.005], (30, 1))


@pytest.fixture
def identical_series_returns():
    """Two assets with identical return series: exactly singular covariance."""
    rng = np.random.default_rng(3)
    series = 0.001 + 0.02 * rng.standard_normal(120)
    return np.column_stack([series, series])


@pytest.fixture
def tangency_problem():
    """
    Well-conditioned 3-asset problem whose tangency portfolio is known.

    With mu = Sigma w* / (w*' Sigma w*), the Sharpe-optimal budget portfolio
    is w* and its excess return is exactly 1, so both formulations share
    the same optimum.
    """
    target = np.array([0.2, 0.3, 0.5])
    returns = make_random_returns(n_obs=300, n_assets=3, seed=5).to_numpy()
    cov = np.cov(returns, rowvar=False, ddof=1)
    expected = cov @ target / (target @ cov @ target)
    return returns, expected, target


@pytest.fixture
def mock_settings(tmp_path):
    """
    Mock settings to avoid environment variable dependencies.
    Returns a MagicMock with optimizer defaults.
    """
    settings = MagicMock()
    settings.optimizer_method = "nonlinear"
    settings.optimizer_lower_bound = -1.0
    settings.optimizer_upper_bound = 1.0
    settings.risk_free_rate = 0.0
    settings.weight_sum_tolerance = 1e-6
    settings.qp_auto_scale = True
    settings.log_level = "INFO"
    settings.log_file = str(tmp_path / "logs" / "quantalloc.log")
    return settings


@pytest.fixture
def patch_get_settings(mock_settings):
    """Patch get_settings() where the CLI and service look it up."""
    with patch("quantalloc.main.get_settings", return_value=mock_settings):
        yield mock_settings


@pytest.fixture
def returns_with_moments():
    """Factory fixture exposing make_returns_with_moments."""
    return make_returns_with_moments
