"""
Unit tests for the equal-weight fallback policy.

Tests verify:
- Equal weights are always budget-feasible
- Non-finite, wrong-length, off-budget and out-of-bounds vectors are replaced
- Acceptable vectors pass through unchanged
"""

import numpy as np
import pytest

from quantalloc.portfolio.constraints import WeightBounds
from quantalloc.portfolio.fallback import FallbackPolicy, equal_weights


@pytest.fixture
def policy():
    """FallbackPolicy with default bounds [-1, 1]."""
    return FallbackPolicy(WeightBounds())


class TestEqualWeights:
    @pytest.mark.parametrize("n_assets", [1, 2, 3, 7, 50])
    def test_feasible_under_default_bounds(self, policy, n_assets):
        weights = equal_weights(n_assets)

        assert weights.shape == (n_assets,)
        assert weights.sum() == pytest.approx(1.0, abs=1e-12)
        assert policy.is_acceptable(weights, n_assets)


class TestFallbackPolicy:
    def test_acceptable_weights_pass_through(self, policy):
        candidate = np.array([0.7, 0.5, -0.2])
        weights, used_fallback = policy.resolve(candidate, 3)

        assert used_fallback is False
        np.testing.assert_array_equal(weights, candidate)
        assert weights is not candidate

    def test_nan_replaced(self, policy):
        weights, used_fallback = policy.resolve(np.array([np.nan, 0.5, 0.5]), 3)

        assert used_fallback is True
        np.testing.assert_allclose(weights, [1 / 3] * 3)

    def test_infinite_rejected(self, policy):
        reason = policy.rejection_reason(np.array([np.inf, 0.0]), 2)

        assert "NaN or infinite" in reason

    def test_wrong_length_rejected(self, policy):
        reason = policy.rejection_reason(np.array([0.5, 0.5]), 3)

        assert reason == "expected 3 weights, got 2"

    def test_off_budget_rejected(self, policy):
        assert not policy.is_acceptable(np.array([0.5, 0.4]), 2)

    def test_out_of_bounds_rejected(self):
        policy = FallbackPolicy(WeightBounds(0.0, 0.6))

        assert not policy.is_acceptable(np.array([0.7, 0.3]), 2)
        assert policy.is_acceptable(np.array([0.6, 0.4]), 2)

    def test_none_rejected(self, policy):
        weights, used_fallback = policy.resolve(None, 4)

        assert used_fallback is True
        np.testing.assert_allclose(weights, [0.25] * 4)

    def test_sum_tolerance_is_configurable(self):
        loose = FallbackPolicy(WeightBounds(), sum_tolerance=1e-3)
        strict = FallbackPolicy(WeightBounds(), sum_tolerance=1e-9)
        candidate = np.array([0.5, 0.5 + 1e-5])

        assert loose.is_acceptable(candidate, 2)
        assert not strict.is_acceptable(candidate, 2)
