"""
Core infrastructure module for QuantAlloc.

Contains foundational components:
- errors: Exception hierarchy for consistent error handling
- config: Optimizer configuration with YAML support
"""

from quantalloc.core.errors import (
    QuantAllocError,
    InvalidInputError,
    ConfigurationError,
    MessagingError,
)
from quantalloc.core.config import (
    OPTIMIZER_METHODS,
    OptimizerConfig,
    load_config_from_yaml,
    save_config_to_yaml,
    merge_configs,
)

__all__ = [
    # Errors
    "QuantAllocError",
    "InvalidInputError",
    "ConfigurationError",
    "MessagingError",
    # Config
    "OPTIMIZER_METHODS",
    "OptimizerConfig",
    "load_config_from_yaml",
    "save_config_to_yaml",
    "merge_configs",
]
