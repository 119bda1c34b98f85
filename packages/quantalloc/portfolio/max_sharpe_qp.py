# Copyright 2024 QuantAlloc Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Maximum Sharpe ratio optimizer, quadratic program formulation.

Fixing the excess return of the portfolio turns Sharpe maximization into a
convex problem:

    minimize    w' Sigma w
    subject to  (mu - r_f)' w = 1
                sum(w) = 1
                lower <= w_i <= upper

The solution is returned as is, without rescaling to the budget. Both
equalities together are feasible only when the excess return of some
budget-feasible portfolio inside the box equals 1; otherwise the problem has
no solution and the equal-weight fallback applies.

The quadratic term uses the exact gradient 2 Sigma w and is normalized by the
variance of the equal-weight starting point. Variables can additionally be
rescaled by the inverse volatilities before solving (diagonal
preconditioning), which keeps SLSQP well conditioned when assets differ
widely in scale.
"""

from typing import Tuple

import numpy as np
from scipy.optimize import minimize

from quantalloc._typing import Float64Array
from quantalloc.portfolio.base import PortfolioOptimizer, ProblemContext, SolverOutput
from quantalloc.portfolio.constraints import (
    ConstraintSet,
    budget_constraint,
    return_normalization_constraint,
    to_scipy_constraints,
)


def diagonal_scale(covariance: Float64Array, reference: float = 1.0) -> Float64Array:
    """
    Per-variable scale d_i = sqrt(reference / Sigma_ii), 1 where the variance is zero.

    Solving for y with w = d * y gives Sigma / reference a unit diagonal in y.
    """
    diag = np.diag(covariance).astype(np.float64)
    scale = np.ones_like(diag)
    positive = diag > 0
    scale[positive] = np.sqrt(reference / diag[positive])
    return scale


def reference_variance(covariance: Float64Array, weights: Float64Array) -> float:
    """Variance of the starting portfolio, or 1 when it is not positive."""
    variance = float(weights @ covariance @ weights)
    if not np.isfinite(variance) or variance <= 0:
        return 1.0
    return variance


class MaximumSharpeRatioQPOptimizer(PortfolioOptimizer):
    """
    Sharpe ratio maximization as a bounded, linearly constrained QP.

    The solved vector is accepted only if it contains no NaN, sums to 1 within
    `sum_tolerance`, and satisfies the return normalization; any other outcome
    resolves to equal weights.
    """

    name = "max_sharpe_qp"

    def __init__(
        self,
        lower: float = -1.0,
        upper: float = 1.0,
        risk_free_rate: float = 0.0,
        sum_tolerance: float = 1e-6,
        auto_scale: bool = True,
    ):
        super().__init__(lower, upper, risk_free_rate, sum_tolerance)
        self._auto_scale = auto_scale

    @property
    def auto_scale(self) -> bool:
        return self._auto_scale

    def build_constraints(self, context: ProblemContext) -> ConstraintSet:
        """(mu - r_f)' w = 1 followed by sum(w) = 1."""
        return ConstraintSet(
            context.n_assets,
            [
                return_normalization_constraint(context.excess_returns),
                budget_constraint(context.n_assets),
            ],
        )

    def _scaled_problem(
        self, context: ProblemContext, matrix: Float64Array
    ) -> Tuple[Float64Array, Float64Array, Float64Array]:
        """
        Return (scale, scaled quadratic term, scaled constraint matrix).

        The quadratic term is divided by the variance of the starting
        portfolio so the objective is of order 1 there; SLSQP's stopping test
        on the objective is absolute.
        """
        reference = reference_variance(context.covariance, context.initial_weights())
        if self._auto_scale:
            scale = diagonal_scale(context.covariance, reference)
        else:
            scale = np.ones(context.n_assets)

        scaled_cov = context.covariance * np.outer(scale, scale) / reference
        scaled_matrix = matrix.copy()
        scaled_matrix[:, :-1] *= scale
        return scale, scaled_cov, scaled_matrix

    def _solve(self, context: ProblemContext) -> SolverOutput:
        n = context.n_assets
        x0 = context.initial_weights()
        constraints = self.build_constraints(context)
        tol = self.fallback.sum_tolerance

        if not constraints.equalities_consistent(tol=tol):
            return SolverOutput(
                weights=None,
                success=False,
                message="equality constraints are inconsistent",
                rejection="return normalization incompatible with the budget",
            )

        # SLSQP needs linearly independent equality rows
        solver_constraints = constraints.independent()
        scale, quad, matrix = self._scaled_problem(
            context, solver_constraints.matrix()
        )
        lower = np.full(n, self.bounds.lower) / scale
        upper = np.full(n, self.bounds.upper) / scale

        result = minimize(
            lambda y: float(y @ quad @ y),
            x0 / scale,
            jac=lambda y: 2.0 * quad @ y,
            method="SLSQP",
            bounds=list(zip(lower, upper)),
            constraints=to_scipy_constraints(matrix, solver_constraints.types()),
        )

        weights = np.asarray(result.x, dtype=np.float64) * scale
        wsum = weights.sum()

        # Both conditions are required: no NaN and a budget-feasible sum
        rejection = None
        if np.isnan(wsum) or abs(wsum - 1.0) > tol:
            rejection = f"solution rejected (sum={wsum:.10g})"
        elif not constraints.is_satisfied(weights, tol=tol):
            rejection = "return normalization infeasible within bounds"

        return SolverOutput(
            weights=weights,
            success=bool(result.success),
            message=str(result.message),
            iterations=int(getattr(result, "nit", 0)),
            rejection=rejection,
        )
