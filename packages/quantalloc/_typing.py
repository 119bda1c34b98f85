# Copyright 2024 QuantAlloc Contributors
# SPDX-License-Identifier: Apache-2.0

"""
Type definitions and aliases for QuantAlloc.

Example
-------
>>> from quantalloc._typing import ReturnsLike, Float64Array
>>> def optimize(returns: ReturnsLike) -> Float64Array:
...     ...
"""

from __future__ import annotations

from typing import Sequence, TypeAlias, Union

import numpy as np
import pandas as pd
from numpy.typing import NDArray


# =============================================================================
# Array Types
# =============================================================================

Float64Array: TypeAlias = NDArray[np.float64]
Int64Array: TypeAlias = NDArray[np.int64]


# =============================================================================
# Input Types
# =============================================================================

# T x N matrix of per-asset returns (rows are observations)
ReturnsLike: TypeAlias = Union[pd.DataFrame, NDArray[np.floating], Sequence[Sequence[float]]]

# Length-N vector (expected returns, weights)
VectorLike: TypeAlias = Union[pd.Series, NDArray[np.floating], Sequence[float]]


__all__ = [
    "Float64Array",
    "Int64Array",
    "ReturnsLike",
    "VectorLike",
]
