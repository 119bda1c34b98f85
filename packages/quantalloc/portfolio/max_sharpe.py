# Copyright 2024 QuantAlloc Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Maximum Sharpe ratio optimizer, direct nonlinear formulation.

Maximizes

    SR(w) = w' (mu - r_f) / sqrt(w' Sigma w)

subject to sum(w) = 1 and lower <= w_i <= upper, by minimizing -SR(w) with
SLSQP. The gradient is approximated by forward differences with a fixed
absolute step; no analytic gradient is supplied.

Usage:
    from quantalloc.portfolio.max_sharpe import MaximumSharpeRatioOptimizer

    optimizer = MaximumSharpeRatioOptimizer(lower=0.0, upper=0.4)
    weights = optimizer.optimize(returns_df)
"""

import numpy as np
from scipy.optimize import minimize

from quantalloc._typing import Float64Array
from quantalloc.portfolio.base import PortfolioOptimizer, ProblemContext, SolverOutput
from quantalloc.portfolio.constraints import (
    ConstraintSet,
    budget_constraint,
    to_scipy_constraints,
)
from quantalloc.portfolio.estimators import is_degenerate_variance


# Returned instead of a NaN/inf ratio so the optimizer steers away
# from degenerate regions
SENTINEL_OBJECTIVE = 1.0e300

# Finite-difference step for the numerical gradient
DIFF_STEP = 1.0e-6


def negative_sharpe_ratio(weights: Float64Array, context: ProblemContext) -> float:
    """
    Objective for the minimizer: -SR(w), or SENTINEL_OBJECTIVE if SR is not finite.

    Zero (up to roundoff) or negative portfolio variance yields the sentinel
    rather than an error.
    """
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        excess = weights @ context.excess_returns
        variance = weights @ context.covariance @ weights
        if is_degenerate_variance(variance, context.covariance):
            return SENTINEL_OBJECTIVE
        ratio = excess / np.sqrt(variance)

    if not np.isfinite(ratio):
        return SENTINEL_OBJECTIVE
    return float(-ratio)


class MaximumSharpeRatioOptimizer(PortfolioOptimizer):
    """
    Sharpe ratio maximization with SLSQP and numerical differentiation.

    Starts from equal weights. If the solver returns any NaN component, the
    equal-weight starting point is returned instead; the shared fallback
    policy then checks length, finiteness, budget and bounds.
    """

    name = "max_sharpe"

    def __init__(
        self,
        lower: float = -1.0,
        upper: float = 1.0,
        risk_free_rate: float = 0.0,
        sum_tolerance: float = 1e-6,
        diff_step: float = DIFF_STEP,
    ):
        super().__init__(lower, upper, risk_free_rate, sum_tolerance)
        self._diff_step = diff_step

    def build_constraints(self, context: ProblemContext) -> ConstraintSet:
        """Budget constraint only; the box is passed as solver bounds."""
        return ConstraintSet(context.n_assets, [budget_constraint(context.n_assets)])

    def _solve(self, context: ProblemContext) -> SolverOutput:
        x0 = context.initial_weights()
        constraints = self.build_constraints(context)

        result = minimize(
            negative_sharpe_ratio,
            x0,
            args=(context,),
            method="SLSQP",
            bounds=self.bounds.as_scipy(context.n_assets),
            constraints=to_scipy_constraints(constraints.matrix(), constraints.types()),
            options={"eps": self._diff_step},
        )

        weights = np.asarray(result.x, dtype=np.float64)
        rejection = None
        if np.isnan(weights.sum()):
            rejection = "solver returned NaN weights"

        return SolverOutput(
            weights=weights,
            success=bool(result.success),
            message=str(result.message),
            iterations=int(getattr(result, "nit", 0)),
            rejection=rejection,
        )
