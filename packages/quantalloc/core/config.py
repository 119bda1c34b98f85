"""
Configuration classes for QuantAlloc optimizers.

Provides typed, validated configuration for the maximum Sharpe ratio
optimizers. Supports loading from YAML files and from environment-backed
settings.

Usage:
    from quantalloc.core.config import OptimizerConfig, load_config_from_yaml

    # Default config
    config = OptimizerConfig()

    # From YAML
    config = load_config_from_yaml("configs/optimizer.yaml")

    # Validate
    config.validate()
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Union

import yaml

from quantalloc.core.errors import ConfigurationError

if TYPE_CHECKING:
    from quantalloc.config.settings import Settings


OPTIMIZER_METHODS = ("nonlinear", "qp")

FLOAT_FIELDS = ("lower", "upper", "risk_free_rate", "sum_tolerance")


@dataclass(frozen=True)
class OptimizerConfig:
    """
    Configuration for a maximum Sharpe ratio optimizer.

    Attributes:
        method: "nonlinear" (direct Sharpe maximization) or "qp"
            (minimum variance with normalized excess return)
        lower: Lower bound applied to every weight
        upper: Upper bound applied to every weight
        risk_free_rate: Risk-free rate, same periodicity as the returns
        sum_tolerance: Accepted deviation of the weight sum from 1
        auto_scale: Diagonal preconditioning before the QP solve
    """

    method: str = "nonlinear"
    lower: float = -1.0
    upper: float = 1.0
    risk_free_rate: float = 0.0
    sum_tolerance: float = 1e-6
    auto_scale: bool = True

    def validate(self) -> None:
        """Validate configuration values."""
        if self.method not in OPTIMIZER_METHODS:
            raise ConfigurationError(
                f"method must be one of {OPTIMIZER_METHODS}", value=self.method
            )
        if self.lower > self.upper:
            raise ConfigurationError(
                "lower must not exceed upper", lower=self.lower, upper=self.upper
            )
        if self.sum_tolerance < 0:
            raise ConfigurationError(
                "sum_tolerance must be non-negative", value=self.sum_tolerance
            )

    @classmethod
    def from_settings(cls, settings: "Settings") -> "OptimizerConfig":
        """Create from environment-backed application settings."""
        return cls(
            method=settings.optimizer_method,
            lower=settings.optimizer_lower_bound,
            upper=settings.optimizer_upper_bound,
            risk_free_rate=settings.risk_free_rate,
            sum_tolerance=settings.weight_sum_tolerance,
            auto_scale=settings.qp_auto_scale,
        )


def load_config_from_yaml(
    path: Union[str, Path],
    validate: bool = True,
) -> OptimizerConfig:
    """
    Load optimizer configuration from YAML file.

    Unknown keys are ignored. An empty file yields the default configuration.

    Args:
        path: Path to YAML file
        validate: Whether to validate after loading

    Returns:
        OptimizerConfig instance

    Raises:
        ConfigurationError: If file not found or invalid
    """
    path = Path(path)

    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}", path=str(path)
        )

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid YAML in configuration file: {e}", path=str(path)
        ) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping", path=str(path)
        )

    valid_fields = set(OptimizerConfig.__dataclass_fields__)
    filtered_data = {k: v for k, v in data.items() if k in valid_fields}

    for key in FLOAT_FIELDS:
        if key in filtered_data:
            try:
                filtered_data[key] = float(filtered_data[key])
            except (TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"{key} must be a number", path=str(path), value=filtered_data[key]
                ) from e

    try:
        config = OptimizerConfig(**filtered_data)
    except TypeError as e:
        raise ConfigurationError(str(e), path=str(path)) from e

    if validate:
        config.validate()

    return config


def save_config_to_yaml(config: OptimizerConfig, path: Union[str, Path]) -> None:
    """
    Save optimizer configuration to YAML file.

    Args:
        config: Configuration instance
        path: Path to save YAML file
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w") as f:
        yaml.dump(asdict(config), f, default_flow_style=False, sort_keys=False)


def merge_configs(base: OptimizerConfig, override: Dict[str, Any]) -> OptimizerConfig:
    """
    Merge override dictionary into base config.

    Keys whose value is None are skipped, so parsed CLI arguments can be
    passed through directly.

    Args:
        base: Base configuration
        override: Dictionary of overrides

    Returns:
        New configuration with overrides applied
    """
    base_dict = asdict(base)
    base_dict.update({k: v for k, v in override.items() if v is not None})
    return OptimizerConfig(**base_dict)
