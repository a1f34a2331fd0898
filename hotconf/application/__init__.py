"""
Application layer: orchestration of configuration sources and consumers.
"""

from .configurator import Configurator, ConfigurableItem
from .dispatcher import ChangeDispatcher

__all__ = [
    "Configurator",
    "ConfigurableItem",
    "ChangeDispatcher",
]
