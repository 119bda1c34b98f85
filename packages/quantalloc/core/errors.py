"""
Exception hierarchy for QuantAlloc.

Provides typed exceptions for consistent error handling across the library.
All QuantAlloc-specific exceptions inherit from QuantAllocError.

Numerical degeneracy (singular covariance, zero-variance portfolios) is never
reported through these exceptions: the optimizers resolve it to the
equal-weight fallback. These errors cover malformed inputs and configuration.

Usage:
    from quantalloc.core.errors import InvalidInputError

    if len(expected_returns) != n_assets:
        raise InvalidInputError(
            "expected_returns length mismatch",
            expected=n_assets,
            actual=len(expected_returns),
        )
"""

from typing import Any, Dict, Optional


class QuantAllocError(Exception):
    """
    Base exception for all QuantAlloc errors.

    Provides structured error information including error codes and context.
    """

    error_code: str = "QA000"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        **context: Any,
    ):
        """
        Initialize QuantAllocError.

        Args:
            message: Human-readable error message
            error_code: Optional specific error code (overrides class default)
            **context: Additional context key-value pairs for debugging
        """
        self.message = message
        self.error_code = error_code or self.__class__.error_code
        self.context: Dict[str, Any] = context

        full_message = f"[{self.error_code}] {message}"
        if context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in context.items())
            full_message += f" ({context_str})"

        super().__init__(full_message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
        }


class InvalidInputError(QuantAllocError):
    """
    Error related to optimizer inputs.

    Use for:
    - Return matrices that are not 2-D, too short or empty
    - Non-finite return observations
    - Expected returns whose length differs from the asset count
    """

    error_code: str = "QA200"


class ConfigurationError(QuantAllocError):
    """
    Error related to configuration.

    Use for:
    - Lower bound above upper bound
    - Negative tolerances
    - Unknown optimizer method
    - Config file parsing errors
    """

    error_code: str = "QA300"


class MessagingError(QuantAllocError):
    """
    Error related to publishing results downstream.

    Use for:
    - Sending before the handler is initialized
    - Sending after the handler is disposed
    """

    error_code: str = "QA500"


# Error code reference:
# QA000 - General/Unknown errors
# QA2xx - Input validation errors
# QA3xx - Configuration errors
# QA5xx - Messaging errors
