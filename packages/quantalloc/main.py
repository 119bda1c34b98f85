# Copyright 2024 QuantAlloc Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Main entry point for QuantAlloc.

Runs a maximum Sharpe ratio optimization on a CSV of historical returns and
publishes the resulting weights.

Usage:
    quantalloc --returns returns.csv
    quantalloc --returns returns.csv --method qp --lower 0 --upper 0.5
    quantalloc --returns returns.csv --config configs/optimizer.yaml
"""

from __future__ import annotations

import argparse
import json
import math
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd
from loguru import logger

from quantalloc._typing import ReturnsLike, VectorLike
from quantalloc.config.settings import get_settings
from quantalloc.core.config import (
    OPTIMIZER_METHODS,
    OptimizerConfig,
    load_config_from_yaml,
    merge_configs,
)
from quantalloc.core.errors import QuantAllocError
from quantalloc.messaging.handler import MessagingHandler, QueueMessageHandler
from quantalloc.messaging.packets import PortfolioTargetsPacket
from quantalloc.portfolio.base import OptimizationResult, PortfolioOptimizer
from quantalloc.portfolio.factory import create_optimizer


class AllocationService:
    """
    Runs an optimizer and publishes its weights through a messaging handler.

    The handler only receives finished weight vectors; it has no influence on
    the optimization.
    """

    def __init__(
        self,
        optimizer: Optional[PortfolioOptimizer] = None,
        handler: Optional[MessagingHandler] = None,
    ):
        """
        Args:
            optimizer: Optimizer to run (defaults to the one in settings)
            handler: Where results are published (defaults to an in-process queue)
        """
        self.optimizer = optimizer or create_optimizer(
            OptimizerConfig.from_settings(get_settings())
        )
        self.handler = handler or QueueMessageHandler()
        self.handler.initialize()

    def allocate(
        self,
        returns: ReturnsLike,
        expected_returns: Optional[VectorLike] = None,
        assets: Optional[List[str]] = None,
    ) -> PortfolioTargetsPacket:
        """
        Optimize and publish.

        Args:
            returns: T x N historical returns; DataFrame columns become labels
            expected_returns: Optional length-N override of the sample mean
            assets: Asset labels, overriding DataFrame columns

        Returns:
            The published packet
        """
        if assets is None and isinstance(returns, pd.DataFrame):
            assets = [str(c) for c in returns.columns]

        result = self.optimizer.solve(returns, expected_returns)
        packet = self._to_packet(result, assets or [])

        logger.info(
            f"{self.optimizer.name}: {len(packet.weights)} weights, "
            f"fallback={packet.used_fallback}, sharpe={packet.sharpe_ratio}"
        )
        self.handler.send(packet)
        return packet

    def _to_packet(
        self, result: OptimizationResult, assets: List[str]
    ) -> PortfolioTargetsPacket:
        sharpe = result.sharpe_ratio
        return PortfolioTargetsPacket(
            optimizer=self.optimizer.name,
            assets=assets,
            weights=result.weights.tolist(),
            used_fallback=result.used_fallback,
            sharpe_ratio=None if math.isnan(sharpe) else sharpe,
        )

    def close(self) -> None:
        """Dispose the messaging handler."""
        self.handler.dispose()


def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """Configure logging."""
    logger.remove()

    level = "DEBUG" if verbose else get_settings().log_level
    format_str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> | "
        "<level>{message}</level>"
    )

    logger.add(sys.stderr, format=format_str, level=level, colorize=True)
    if log_file:
        logger.add(log_file, rotation="10 MB", level="DEBUG")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="QuantAlloc - maximum Sharpe ratio portfolio weights",
    )
    parser.add_argument(
        "--returns",
        type=Path,
        required=True,
        help="CSV of historical returns, one column per asset",
    )
    parser.add_argument(
        "--no-index",
        action="store_true",
        help="CSV has no leading index (date) column",
    )
    parser.add_argument("--config", type=Path, help="Optimizer YAML config")
    parser.add_argument("--method", choices=OPTIMIZER_METHODS)
    parser.add_argument("--lower", type=float, help="Lower weight bound")
    parser.add_argument("--upper", type=float, help="Upper weight bound")
    parser.add_argument("--risk-free-rate", type=float, dest="risk_free_rate")
    parser.add_argument(
        "--log-file", help="Also log to this file (defaults to LOG_FILE from settings)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> OptimizerConfig:
    """Settings, then YAML config, then command line overrides."""
    if args.config is not None:
        config = load_config_from_yaml(args.config)
    else:
        config = OptimizerConfig.from_settings(get_settings())

    return merge_configs(
        config,
        {
            "method": args.method,
            "lower": args.lower,
            "upper": args.upper,
            "risk_free_rate": args.risk_free_rate,
        },
    )


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file or get_settings().log_file)

    try:
        config = build_config(args)
        returns = pd.read_csv(args.returns, index_col=None if args.no_index else 0)
        service = AllocationService(create_optimizer(config))
    except (QuantAllocError, OSError, ValueError) as e:
        logger.error(f"Setup failed: {e}")
        return 1

    try:
        packet = service.allocate(returns)
    except QuantAllocError as e:
        logger.error(f"Optimization failed: {e}")
        return 1
    finally:
        service.close()

    print(json.dumps(packet.as_mapping(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
