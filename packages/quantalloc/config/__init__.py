"""Configuration module for the allocation service."""

from quantalloc.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
