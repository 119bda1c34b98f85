"""
Fallback policy shared by the Sharpe ratio optimizers.

An optimizer never hands back a vector with non-finite entries or of the
wrong length. Anything the solver returns that fails validation is replaced
by the equal-weight allocation, which always satisfies the budget constraint.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from loguru import logger

from quantalloc._typing import Float64Array, VectorLike
from quantalloc.portfolio.constraints import WeightBounds


def equal_weights(n_assets: int) -> Float64Array:
    """Uniform allocation, 1/N per asset."""
    return np.full(n_assets, 1.0 / n_assets)


@dataclass(frozen=True)
class FallbackPolicy:
    """
    Validates solver output and substitutes equal weights when it is unusable.

    Attributes:
        bounds: Box bounds the weights must respect
        sum_tolerance: Accepted deviation of the weight sum from 1
        bound_tolerance: Accepted violation of the box bounds
    """

    bounds: WeightBounds
    sum_tolerance: float = 1e-6
    bound_tolerance: float = 1e-8

    def rejection_reason(self, weights: Optional[VectorLike], n_assets: int) -> Optional[str]:
        """Why the candidate is unusable, or None if it is acceptable."""
        if weights is None:
            return "solver returned no weights"

        w = np.asarray(weights, dtype=np.float64).reshape(-1)
        if w.shape[0] != n_assets:
            return f"expected {n_assets} weights, got {w.shape[0]}"
        if not np.all(np.isfinite(w)):
            return "weights contain NaN or infinite values"

        total = float(w.sum())
        if abs(total - 1.0) > self.sum_tolerance:
            return f"weights sum to {total:.10g}, not 1"
        if not self.bounds.contains(w, self.bound_tolerance):
            return (
                f"weights outside bounds [{self.bounds.lower}, {self.bounds.upper}]"
            )
        return None

    def is_acceptable(self, weights: Optional[VectorLike], n_assets: int) -> bool:
        return self.rejection_reason(weights, n_assets) is None

    def resolve(
        self, weights: Optional[VectorLike], n_assets: int, source: str = "optimizer"
    ) -> Tuple[Float64Array, bool]:
        """
        Return (final weights, used_fallback).

        The returned array is a fresh copy.
        """
        reason = self.rejection_reason(weights, n_assets)
        if reason is None:
            return np.array(weights, dtype=np.float64).reshape(-1), False

        logger.warning(f"{source}: {reason}; falling back to equal weights")
        return equal_weights(n_assets), True
