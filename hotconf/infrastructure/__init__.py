"""
Infrastructure layer: concrete configuration drivers and logging.
"""

from .drivers import register_builtin_drivers
from .logging import LoggingManager, setup_logging

__all__ = [
    "register_builtin_drivers",
    "LoggingManager",
    "setup_logging",
]
