"""
Portfolio optimization module.

Two formulations of maximum Sharpe ratio allocation:
- MaximumSharpeRatioOptimizer: direct nonlinear maximization (SLSQP,
  numerical gradient)
- MaximumSharpeRatioQPOptimizer: minimum variance QP with normalized excess
  return

Both share the moment estimators, the constraint builder and the
equal-weight fallback policy.
"""

from quantalloc.portfolio.estimators import (
    estimate_covariance,
    estimate_mean_returns,
    estimate_moments,
    is_degenerate_variance,
    portfolio_sharpe_ratio,
)
from quantalloc.portfolio.constraints import (
    Relation,
    LinearConstraint,
    ConstraintSet,
    WeightBounds,
    budget_constraint,
    return_normalization_constraint,
    to_scipy_constraints,
)
from quantalloc.portfolio.fallback import FallbackPolicy, equal_weights
from quantalloc.portfolio.base import (
    PortfolioOptimizer,
    ProblemContext,
    OptimizationResult,
)
from quantalloc.portfolio.max_sharpe import MaximumSharpeRatioOptimizer
from quantalloc.portfolio.max_sharpe_qp import (
    MaximumSharpeRatioQPOptimizer,
    diagonal_scale,
    reference_variance,
)
from quantalloc.portfolio.factory import create_optimizer

__all__ = [
    # Estimators
    "estimate_covariance",
    "estimate_mean_returns",
    "estimate_moments",
    "is_degenerate_variance",
    "portfolio_sharpe_ratio",
    # Constraints
    "Relation",
    "LinearConstraint",
    "ConstraintSet",
    "WeightBounds",
    "budget_constraint",
    "return_normalization_constraint",
    "to_scipy_constraints",
    # Fallback
    "FallbackPolicy",
    "equal_weights",
    # Optimizers
    "PortfolioOptimizer",
    "ProblemContext",
    "OptimizationResult",
    "MaximumSharpeRatioOptimizer",
    "MaximumSharpeRatioQPOptimizer",
    "diagonal_scale",
    "reference_variance",
    "create_optimizer",
]
