"""
hotconf - hot-reloadable hierarchical configuration.

Options are loaded from a pluggable source (file, database, REST endpoint),
navigated with dotted paths, and pushed to registered components again every
time the source changes.
"""

__version__ = "1.0.0"
__author__ = "hotconf contributors"

from .application.configurator import Configurator
from .core.exceptions import (
    ConnectorError, ConversionError, DriverNotFoundError,
    DriverRegistrationError, FatalError, FormatError, HotconfError,
    ParseError, SizeLimitError
)
from .core.interfaces import CallbackConfigurable, IConfigurable, IConnector, IDriver, SourceEvent
from .core.options import MISSING, Options, from_file, from_reader, from_text, to_file, to_text
from .core.registry import DriverRegistry, default_registry, driver_for, drivers, register
from .infrastructure.drivers import register_builtin_drivers

__all__ = [
    "__version__",
    "Configurator",
    "Options",
    "MISSING",
    "from_file",
    "from_reader",
    "from_text",
    "to_file",
    "to_text",
    "CallbackConfigurable",
    "IConfigurable",
    "IConnector",
    "IDriver",
    "SourceEvent",
    "DriverRegistry",
    "default_registry",
    "register",
    "driver_for",
    "drivers",
    "register_builtin_drivers",
    "HotconfError",
    "ParseError",
    "FatalError",
    "SizeLimitError",
    "DriverRegistrationError",
    "FormatError",
    "ConversionError",
    "DriverNotFoundError",
    "ConnectorError",
]
