"""
Moment estimators for portfolio optimization.

Derives the sample covariance matrix and mean-return vector from a T x N
matrix of historical returns (rows are observations, columns are assets).

Covariance uses the unbiased T - 1 normalization. This scales absolute risk
by T / (T - 1) relative to the population estimate but leaves the optimal
weights unchanged.
"""

from typing import Optional, Tuple

import numpy as np
import pandas as pd

from quantalloc._typing import Float64Array, ReturnsLike, VectorLike
from quantalloc.core.errors import InvalidInputError


MIN_OBSERVATIONS = 2

# Portfolio variance at or below this fraction of the largest asset variance
# is treated as zero
DEGENERATE_VARIANCE_RTOL = 1e-12


def as_returns_matrix(returns: ReturnsLike) -> Float64Array:
    """
    Convert historical returns to a validated float64 matrix.

    Args:
        returns: T x N returns (DataFrame, ndarray or nested sequence)

    Returns:
        T x N float64 array

    Raises:
        InvalidInputError: If not rectangular 2-D, fewer than 2 rows,
            no columns, or containing non-finite values
    """
    try:
        if isinstance(returns, pd.DataFrame):
            values = returns.to_numpy(dtype=np.float64)
        else:
            values = np.asarray(returns, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(
            f"historical returns must be a rectangular numeric matrix: {e}"
        ) from e

    if values.ndim != 2:
        raise InvalidInputError(
            "historical returns must be 2-D (observations x assets)",
            ndim=values.ndim,
        )
    n_obs, n_assets = values.shape
    if n_obs < MIN_OBSERVATIONS:
        raise InvalidInputError(
            f"at least {MIN_OBSERVATIONS} observations are required",
            observations=n_obs,
        )
    if n_assets < 1:
        raise InvalidInputError("historical returns have no asset columns")
    if not np.all(np.isfinite(values)):
        raise InvalidInputError(
            "historical returns contain NaN or infinite values",
            bad_entries=int(np.sum(~np.isfinite(values))),
        )

    return values


def as_expected_returns(expected_returns: VectorLike, n_assets: int) -> Float64Array:
    """Convert an expected-returns override to a float64 vector of length N."""
    try:
        values = np.asarray(expected_returns, dtype=np.float64).reshape(-1)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"expected_returns must be numeric: {e}") from e
    if values.shape[0] != n_assets:
        raise InvalidInputError(
            "expected_returns length must equal the number of assets",
            expected=n_assets,
            actual=values.shape[0],
        )
    if not np.all(np.isfinite(values)):
        raise InvalidInputError("expected_returns contain NaN or infinite values")
    return values


def _sample_covariance(values: Float64Array) -> Float64Array:
    cov = np.atleast_2d(np.cov(values, rowvar=False, ddof=1))
    # Roundoff in the column mean leaves ~1e-35 entries for constant series
    constant = np.ptp(values, axis=0) == 0
    cov[constant, :] = 0.0
    cov[:, constant] = 0.0
    return cov


def estimate_covariance(returns: ReturnsLike) -> Float64Array:
    """
    Sample covariance matrix (ddof=1).

    Always 2-D, including the single-asset case. Rows and columns of constant
    series are exactly zero, so all-constant input gives the zero matrix; no
    error is raised for that.
    """
    return _sample_covariance(as_returns_matrix(returns))


def estimate_mean_returns(returns: ReturnsLike) -> Float64Array:
    """Column-wise mean return."""
    values = as_returns_matrix(returns)
    return values.mean(axis=0)


def estimate_moments(
    returns: ReturnsLike,
    expected_returns: Optional[VectorLike] = None,
) -> Tuple[Float64Array, Float64Array]:
    """
    Estimate mean returns and covariance in one pass.

    Args:
        returns: T x N historical returns
        expected_returns: Optional override of the sample mean (length N)

    Returns:
        Tuple of (mean returns, covariance matrix)
    """
    values = as_returns_matrix(returns)
    cov = _sample_covariance(values)

    if expected_returns is None:
        mean = values.mean(axis=0)
    else:
        mean = as_expected_returns(expected_returns, values.shape[1])

    return mean, cov


def portfolio_sharpe_ratio(
    weights: VectorLike,
    mean_returns: VectorLike,
    covariance: Float64Array,
    risk_free_rate: float = 0.0,
) -> float:
    """
    Ex-ante Sharpe ratio of a weight vector.

    Returns NaN when the portfolio variance is degenerate.
    """
    w = np.asarray(weights, dtype=np.float64)
    mu = np.asarray(mean_returns, dtype=np.float64)
    excess = w @ mu - risk_free_rate
    variance = float(w @ covariance @ w)
    if is_degenerate_variance(variance, covariance):
        return float("nan")
    return float(excess / np.sqrt(variance))


def is_degenerate_variance(variance: float, covariance: Float64Array) -> bool:
    """
    Whether a portfolio variance is zero up to roundoff.

    Compared against the largest asset variance, so the test does not depend
    on the periodicity of the returns.
    """
    if not np.isfinite(variance):
        return True
    diag = np.diag(np.atleast_2d(covariance))
    scale = max(float(np.max(diag)) if diag.size else 0.0, np.finfo(np.float64).tiny)
    return variance <= DEGENERATE_VARIANCE_RTOL * scale
