"""
Logging infrastructure.

Centralized loguru configuration, and a configurable that applies logging
settings from a hot-reloaded configuration section.
"""

from .setup import InterceptHandler, LoggingConfig, LoggingManager, setup_logging

__all__ = [
    "setup_logging",
    "InterceptHandler",
    "LoggingConfig",
    "LoggingManager",
]
