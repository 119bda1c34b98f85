"""Optimizer construction from configuration."""

from typing import Optional

from loguru import logger

from quantalloc.core.config import OptimizerConfig
from quantalloc.portfolio.base import PortfolioOptimizer
from quantalloc.portfolio.max_sharpe import MaximumSharpeRatioOptimizer
from quantalloc.portfolio.max_sharpe_qp import MaximumSharpeRatioQPOptimizer


def create_optimizer(config: Optional[OptimizerConfig] = None) -> PortfolioOptimizer:
    """
    Build the optimizer selected by `config.method`.

    Args:
        config: Optimizer configuration (defaults to OptimizerConfig())

    Returns:
        Configured PortfolioOptimizer

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config = config or OptimizerConfig()
    config.validate()

    if config.method == "qp":
        optimizer: PortfolioOptimizer = MaximumSharpeRatioQPOptimizer(
            lower=config.lower,
            upper=config.upper,
            risk_free_rate=config.risk_free_rate,
            sum_tolerance=config.sum_tolerance,
            auto_scale=config.auto_scale,
        )
    else:
        optimizer = MaximumSharpeRatioOptimizer(
            lower=config.lower,
            upper=config.upper,
            risk_free_rate=config.risk_free_rate,
            sum_tolerance=config.sum_tolerance,
        )

    logger.debug(f"Created {optimizer!r}")
    return optimizer
