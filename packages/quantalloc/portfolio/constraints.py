"""
Linear constraints and weight bounds for the Sharpe ratio optimizers.

Constraints are built as domain objects (LinearConstraint, ConstraintSet) and
serialized to a dense matrix form shared by both solvers:

- each row of the matrix is [coefficients..., rhs]
- each relation is an integer code: 0 (==), 1 (>=), -1 (<=)

`to_scipy_constraints` is the only adapter from that form to the solver.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterator, List, Sequence, Tuple

import numpy as np
from scipy.optimize import Bounds

from quantalloc._typing import Float64Array, Int64Array, VectorLike
from quantalloc.core.errors import ConfigurationError, InvalidInputError


class Relation(IntEnum):
    """Relation between the constraint's linear form and its right-hand side."""

    EQUAL = 0
    GREATER_OR_EQUAL = 1
    LESS_OR_EQUAL = -1


@dataclass(frozen=True)
class LinearConstraint:
    """
    Linear constraint a' w (relation) b.

    Attributes:
        coefficients: Coefficient vector a, one entry per asset
        relation: Relation tag
        rhs: Right-hand side b
    """

    coefficients: Tuple[float, ...]
    relation: Relation
    rhs: float

    @classmethod
    def create(
        cls, coefficients: VectorLike, relation: Relation, rhs: float
    ) -> "LinearConstraint":
        """Create from any vector-like of coefficients."""
        coeffs = np.asarray(coefficients, dtype=np.float64).reshape(-1)
        return cls(tuple(float(c) for c in coeffs), Relation(relation), float(rhs))

    @property
    def size(self) -> int:
        return len(self.coefficients)

    def residual(self, weights: VectorLike) -> float:
        """a' w - b."""
        return float(np.dot(self.coefficients, weights) - self.rhs)

    def is_satisfied(self, weights: VectorLike, tol: float = 1e-9) -> bool:
        r = self.residual(weights)
        if self.relation is Relation.EQUAL:
            return abs(r) <= tol
        if self.relation is Relation.GREATER_OR_EQUAL:
            return r >= -tol
        return r <= tol


def budget_constraint(n_assets: int) -> LinearConstraint:
    """Fully invested: sum(w) == 1."""
    return LinearConstraint.create(np.ones(n_assets), Relation.EQUAL, 1.0)


def return_normalization_constraint(excess_returns: VectorLike) -> LinearConstraint:
    """Normalized excess return: (mu - r_f)' w == 1."""
    return LinearConstraint.create(excess_returns, Relation.EQUAL, 1.0)


class ConstraintSet:
    """
    Ordered, immutable collection of linear constraints over N assets.

    Order does not affect the solution but is kept fixed so the serialized
    matrix is deterministic.
    """

    def __init__(self, n_assets: int, constraints: Sequence[LinearConstraint] = ()):
        self.n_assets = n_assets
        for c in constraints:
            if c.size != n_assets:
                raise InvalidInputError(
                    "constraint size does not match the number of assets",
                    expected=n_assets,
                    actual=c.size,
                )
        self._constraints: Tuple[LinearConstraint, ...] = tuple(constraints)

    def add(self, constraint: LinearConstraint) -> "ConstraintSet":
        """Return a new set with the constraint appended."""
        return ConstraintSet(self.n_assets, self._constraints + (constraint,))

    def __iter__(self) -> Iterator[LinearConstraint]:
        return iter(self._constraints)

    def __len__(self) -> int:
        return len(self._constraints)

    def matrix(self) -> Float64Array:
        """Dense (K, N + 1) matrix, each row [coefficients..., rhs]."""
        if not self._constraints:
            return np.empty((0, self.n_assets + 1))
        return np.array(
            [list(c.coefficients) + [c.rhs] for c in self._constraints],
            dtype=np.float64,
        )

    def types(self) -> Int64Array:
        """Relation codes, one per row of `matrix()`."""
        return np.array([int(c.relation) for c in self._constraints], dtype=np.int64)

    def is_satisfied(self, weights: VectorLike, tol: float = 1e-9) -> bool:
        return all(c.is_satisfied(weights, tol) for c in self._constraints)

    def equalities(self) -> List[LinearConstraint]:
        return [c for c in self._constraints if c.relation is Relation.EQUAL]

    def equalities_consistent(self, tol: float = 1e-9) -> bool:
        """Whether the equality rows alone admit a solution (bounds ignored)."""
        rows = self.equalities()
        if not rows:
            return True
        a = np.array([c.coefficients for c in rows])
        b = np.array([c.rhs for c in rows])
        solution = np.linalg.lstsq(a, b, rcond=None)[0]
        return bool(np.allclose(a @ solution, b, rtol=0.0, atol=tol))

    def independent(self) -> "ConstraintSet":
        """
        Drop equality rows whose coefficients are linearly dependent on
        earlier equality rows. Only meaningful for a consistent set.
        """
        kept: List[LinearConstraint] = []
        basis: List[Tuple[float, ...]] = []
        for c in self._constraints:
            if c.relation is Relation.EQUAL:
                candidate = basis + [c.coefficients]
                if np.linalg.matrix_rank(np.array(candidate)) < len(candidate):
                    continue
                basis = candidate
            kept.append(c)
        return ConstraintSet(self.n_assets, kept)


@dataclass(frozen=True)
class WeightBounds:
    """
    Box bounds applied uniformly to every weight.

    Attributes:
        lower: Lower bound for each weight
        upper: Upper bound for each weight
    """

    lower: float = -1.0
    upper: float = 1.0

    def __post_init__(self):
        if self.lower > self.upper:
            raise ConfigurationError(
                "lower bound must not exceed upper bound",
                lower=self.lower,
                upper=self.upper,
            )

    def as_scipy(self, n_assets: int) -> Bounds:
        return Bounds(np.full(n_assets, self.lower), np.full(n_assets, self.upper))

    def contains(self, weights: VectorLike, tol: float = 1e-9) -> bool:
        w = np.asarray(weights, dtype=np.float64)
        return bool(np.all(w >= self.lower - tol) and np.all(w <= self.upper + tol))

    def admits_equal_weights(self, n_assets: int) -> bool:
        """Whether 1/N lies inside the bounds."""
        return self.lower <= 1.0 / n_assets <= self.upper


def to_scipy_constraints(matrix: Float64Array, types: Int64Array) -> List[Dict]:
    """
    Convert the dense constraint form into scipy.optimize.minimize constraints.

    Args:
        matrix: (K, N + 1) matrix of [coefficients..., rhs] rows
        types: (K,) relation codes

    Returns:
        List of constraint dicts, each with a constant Jacobian
    """
    matrix = np.atleast_2d(np.asarray(matrix, dtype=np.float64))
    types = np.asarray(types).reshape(-1)
    if matrix.shape[0] != types.shape[0]:
        raise InvalidInputError(
            "constraint matrix rows and relation codes differ in length",
            rows=matrix.shape[0],
            types=types.shape[0],
        )

    constraints = []
    for row, code in zip(matrix, types):
        a = row[:-1].copy()
        b = float(row[-1])
        relation = Relation(int(code))

        # scipy "ineq" means fun(w) >= 0
        if relation is Relation.EQUAL:
            constraints.append(_linear("eq", a, b))
        elif relation is Relation.GREATER_OR_EQUAL:
            constraints.append(_linear("ineq", a, b))
        elif relation is Relation.LESS_OR_EQUAL:
            constraints.append(_linear("ineq", -a, -b))

    return constraints


def _linear(kind: str, a: Float64Array, b: float) -> Dict:
    return {
        "type": kind,
        "fun": lambda w, a=a, b=b: a @ w - b,
        "jac": lambda w, a=a: a,
    }
