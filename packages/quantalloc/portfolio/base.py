"""
Base class and value objects for portfolio optimizers.

Every solve builds an immutable ProblemContext and passes it explicitly to
the solver, so an optimizer instance holds nothing but its configuration and
can be shared between threads.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import numpy as np
from loguru import logger

from quantalloc._typing import Float64Array, ReturnsLike, VectorLike
from quantalloc.portfolio.constraints import WeightBounds
from quantalloc.portfolio.estimators import estimate_moments, portfolio_sharpe_ratio
from quantalloc.portfolio.fallback import FallbackPolicy, equal_weights


def _frozen(array: Float64Array) -> Float64Array:
    array = np.array(array, dtype=np.float64)
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class ProblemContext:
    """
    Inputs of a single optimization.

    Attributes:
        mean_returns: Expected return per asset
        excess_returns: mean_returns - risk_free_rate
        covariance: N x N covariance matrix
        risk_free_rate: Risk-free rate used for the excess returns
    """

    mean_returns: Float64Array
    excess_returns: Float64Array
    covariance: Float64Array
    risk_free_rate: float = 0.0

    @classmethod
    def build(
        cls,
        mean_returns: Float64Array,
        covariance: Float64Array,
        risk_free_rate: float = 0.0,
    ) -> "ProblemContext":
        return cls(
            mean_returns=_frozen(mean_returns),
            excess_returns=_frozen(np.asarray(mean_returns) - risk_free_rate),
            covariance=_frozen(covariance),
            risk_free_rate=float(risk_free_rate),
        )

    @property
    def n_assets(self) -> int:
        return self.covariance.shape[0]

    def initial_weights(self) -> Float64Array:
        return equal_weights(self.n_assets)


@dataclass(frozen=True)
class SolverOutput:
    """
    Raw solver answer before the fallback check.

    `rejection` is set when the solver's own failure policy discards the
    weights; the fallback then applies regardless of their values.
    """

    weights: Optional[Float64Array]
    success: bool
    message: str = ""
    iterations: int = 0
    rejection: Optional[str] = None


@dataclass(frozen=True)
class OptimizationResult:
    """
    Outcome of an optimization.

    Attributes:
        weights: Final weight vector (read-only)
        raw_weights: What the solver returned, None if nothing
        used_fallback: True when equal weights replaced the solver output
        success: Solver-reported convergence
        message: Solver status message
        iterations: Solver iteration count
        sharpe_ratio: Ex-ante Sharpe ratio of `weights`
    """

    weights: Float64Array
    raw_weights: Optional[Float64Array]
    used_fallback: bool
    success: bool
    message: str = ""
    iterations: int = 0
    sharpe_ratio: float = float("nan")
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weights": self.weights.tolist(),
            "used_fallback": self.used_fallback,
            "success": self.success,
            "message": self.message,
            "iterations": self.iterations,
            "sharpe_ratio": self.sharpe_ratio,
            **self.metadata,
        }


class PortfolioOptimizer(ABC):
    """
    Base class for maximum Sharpe ratio optimizers.

    Subclasses implement `_solve`; the template in `solve` takes care of input
    validation, moment estimation and the fallback policy.
    """

    name: str = "optimizer"

    def __init__(
        self,
        lower: float = -1.0,
        upper: float = 1.0,
        risk_free_rate: float = 0.0,
        sum_tolerance: float = 1e-6,
    ):
        """
        Args:
            lower: Lower bound applied to every weight
            upper: Upper bound applied to every weight
            risk_free_rate: Risk-free rate, same periodicity as the returns
            sum_tolerance: Accepted deviation of the weight sum from 1
        """
        self._bounds = WeightBounds(lower, upper)
        self._risk_free_rate = float(risk_free_rate)
        self._fallback = FallbackPolicy(self._bounds, sum_tolerance=sum_tolerance)

    @property
    def bounds(self) -> WeightBounds:
        return self._bounds

    @property
    def risk_free_rate(self) -> float:
        return self._risk_free_rate

    @property
    def fallback(self) -> FallbackPolicy:
        return self._fallback

    def optimize(
        self,
        historical_returns: ReturnsLike,
        expected_returns: Optional[VectorLike] = None,
    ) -> Float64Array:
        """
        Compute maximum Sharpe ratio weights.

        Args:
            historical_returns: T x N returns, T >= 2, N >= 1
            expected_returns: Optional length-N override of the sample mean

        Returns:
            Read-only weight vector of length N
        """
        return self.solve(historical_returns, expected_returns).weights

    def solve(
        self,
        historical_returns: ReturnsLike,
        expected_returns: Optional[VectorLike] = None,
    ) -> OptimizationResult:
        """Like `optimize`, returning the full OptimizationResult."""
        mean, cov = estimate_moments(historical_returns, expected_returns)
        context = ProblemContext.build(mean, cov, self._risk_free_rate)

        logger.debug(
            f"{self.name}: solving for {context.n_assets} assets, "
            f"bounds=[{self._bounds.lower}, {self._bounds.upper}], "
            f"risk_free_rate={self._risk_free_rate}"
        )
        output = self._solve(context)
        if not output.success:
            logger.debug(f"{self.name}: solver did not converge: {output.message}")

        if output.rejection is not None:
            logger.warning(
                f"{self.name}: {output.rejection}; falling back to equal weights"
            )
            weights, used_fallback = equal_weights(context.n_assets), True
        else:
            weights, used_fallback = self._fallback.resolve(
                output.weights, context.n_assets, source=self.name
            )

        return OptimizationResult(
            weights=_frozen(weights),
            raw_weights=None if output.weights is None else _frozen(output.weights),
            used_fallback=used_fallback,
            success=output.success,
            message=output.message,
            iterations=output.iterations,
            sharpe_ratio=portfolio_sharpe_ratio(
                weights, context.mean_returns, context.covariance, self._risk_free_rate
            ),
            metadata={"optimizer": self.name},
        )

    @abstractmethod
    def _solve(self, context: ProblemContext) -> SolverOutput:
        """Run the solver on a prepared problem."""

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(lower={self._bounds.lower}, "
            f"upper={self._bounds.upper}, risk_free_rate={self._risk_free_rate})"
        )
