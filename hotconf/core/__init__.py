"""
Core module containing the option store, its formats, the error taxonomy
and the driver contracts.

Nothing in this package depends on a concrete configuration backend.
"""

from .exceptions import (
    ErrorCode, HotconfError, ParseError, FatalError, SizeLimitError,
    DriverRegistrationError, FormatError, ConversionError,
    DriverNotFoundError, ConnectorError
)
from .interfaces import CallbackConfigurable, IConfigurable, IConnector, IDriver, SourceEvent
from .options import MISSING, Options
from .registry import DriverRegistry, default_registry

__all__ = [
    "ErrorCode",
    "HotconfError",
    "ParseError",
    "FatalError",
    "SizeLimitError",
    "DriverRegistrationError",
    "FormatError",
    "ConversionError",
    "DriverNotFoundError",
    "ConnectorError",
    "CallbackConfigurable",
    "IConfigurable",
    "IConnector",
    "IDriver",
    "SourceEvent",
    "MISSING",
    "Options",
    "DriverRegistry",
    "default_registry",
]
