"""Core utilities for leakybucket."""

from leakybucket.core.config import Settings, settings
from leakybucket.core.logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
]
