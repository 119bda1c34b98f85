"""
Application settings and configuration management.

Uses pydantic-settings for validation and environment variable loading.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Optimizer defaults
    optimizer_method: Literal["nonlinear", "qp"] = Field(
        default="nonlinear", description="Sharpe ratio formulation to solve"
    )
    optimizer_lower_bound: float = Field(
        default=-1.0, description="Lower bound applied to every weight"
    )
    optimizer_upper_bound: float = Field(
        default=1.0, description="Upper bound applied to every weight"
    )
    risk_free_rate: float = Field(
        default=0.0, description="Risk-free rate, same periodicity as the returns"
    )
    weight_sum_tolerance: float = Field(
        default=1e-6, description="Accepted deviation of the weight sum from 1"
    )
    qp_auto_scale: bool = Field(
        default=True, description="Diagonal preconditioning for the QP formulation"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/quantalloc.log", description="Log file path")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
