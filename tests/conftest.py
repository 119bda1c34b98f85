# Copyright 2024 QuantAlloc Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Root pytest configuration for QuantAlloc tests.

This conftest.py is automatically loaded by pytest and provides:
- Import path setup for the packages/ layout
- Markers for test categorization
- Common fixtures available to all test modules
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# Ensure packages/ is in path for imports when not installed
packages_path = Path(__file__).parent.parent / "packages"
if str(packages_path) not in sys.path:
    sys.path.insert(0, str(packages_path))


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks tests as integration tests")


# =============================================================================
# Common Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture(autouse=True)
def reset_random_seeds() -> None:
    """Reset random seeds before each test for reproducibility."""
    import numpy as np

    np.random.seed(42)
