"""
Built-in configuration drivers.

Importing this package registers the ``file``, ``database`` and ``rest``
drivers with the default registry.
"""

from typing import Optional

from ...core.registry import DriverRegistry, default_registry
from .database import DatabaseConnector, DatabaseDriver, DatabaseDriverOptions
from .file import ConfigFileHandler, FileConnector, FileDriver, FileDriverOptions
from .rest import RestConnector, RestDriver, RestDriverOptions
from .scheduled import PollingConnector, create_trigger

FILE_DRIVER = "file"
DATABASE_DRIVER = "database"
REST_DRIVER = "rest"


def register_builtin_drivers(registry: Optional[DriverRegistry] = None) -> None:
    """Register the built-in drivers, skipping names already taken."""
    registry = registry if registry is not None else default_registry
    builtin = {
        FILE_DRIVER: FileDriver,
        DATABASE_DRIVER: DatabaseDriver,
        REST_DRIVER: RestDriver,
    }
    for name, driver_type in builtin.items():
        if name not in registry:
            registry.register(name, driver_type())


register_builtin_drivers()

__all__ = [
    "FILE_DRIVER",
    "DATABASE_DRIVER",
    "REST_DRIVER",
    "register_builtin_drivers",
    "ConfigFileHandler",
    "FileConnector",
    "FileDriver",
    "FileDriverOptions",
    "DatabaseConnector",
    "DatabaseDriver",
    "DatabaseDriverOptions",
    "RestConnector",
    "RestDriver",
    "RestDriverOptions",
    "PollingConnector",
    "create_trigger",
]
