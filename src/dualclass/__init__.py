"""Dual Class - learn technical concepts through persona-specific metaphors."""

__version__ = "0.3.0"

from dualclass.core.config import DualClassConfig, config

__all__ = [
    "DualClassConfig",
    "config",
]
