# Copyright 2024 QuantAlloc Contributors
# SPDX-License-Identifier: Apache-2.0

"""
QuantAlloc: Maximum Sharpe Ratio Portfolio Optimization.

Computes allocation weights that maximize the Sharpe ratio of a portfolio
from a history of asset returns, subject to a budget constraint and uniform
per-asset bounds.

Example
-------
>>> import numpy as np
>>> from quantalloc import MaximumSharpeRatioOptimizer
>>>
>>> returns = np.random.default_rng(0).normal(0.001, 0.02, size=(250, 4))
>>> weights = MaximumSharpeRatioOptimizer(lower=0.0, upper=1.0).optimize(returns)

Modules
-------
portfolio
    Moment estimators, constraints, fallback policy and the two optimizers.
messaging
    Packet models and handlers for publishing results downstream.
core
    Exception hierarchy and optimizer configuration.
config
    Environment-backed application settings.
"""

from __future__ import annotations


__version__ = "0.1.0"
__license__ = "Apache-2.0"


from quantalloc import config, core, messaging, portfolio

from quantalloc.core.errors import (
    QuantAllocError,
    InvalidInputError,
    ConfigurationError,
    MessagingError,
)
from quantalloc.core.config import OptimizerConfig
from quantalloc.portfolio import (
    MaximumSharpeRatioOptimizer,
    MaximumSharpeRatioQPOptimizer,
    OptimizationResult,
    PortfolioOptimizer,
    create_optimizer,
)

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Submodules
    "config",
    "core",
    "messaging",
    "portfolio",
    # Errors
    "QuantAllocError",
    "InvalidInputError",
    "ConfigurationError",
    "MessagingError",
    # Config
    "OptimizerConfig",
    # Optimizers
    "PortfolioOptimizer",
    "OptimizationResult",
    "MaximumSharpeRatioOptimizer",
    "MaximumSharpeRatioQPOptimizer",
    "create_optimizer",
]
