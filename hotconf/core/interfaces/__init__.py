"""
Core interfaces defining the contracts between configuration sources,
the configurator and configuration consumers.
"""

from .lifecycle import CallbackConfigurable, IConfigurable
from .drivers import ChangeHandler, IConnector, IDriver, SourceEvent

__all__ = [
    "CallbackConfigurable",
    "IConfigurable",
    "ChangeHandler",
    "IConnector",
    "IDriver",
    "SourceEvent",
]
