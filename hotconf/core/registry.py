"""
Registry of configuration drivers.

Drivers are looked up by name when a configurator is created. The module
level ``default_registry`` is shared by the whole process and is populated
by importing the driver packages.
"""

import logging
from typing import Dict, List, Optional

from .exceptions import DriverRegistrationError
from .interfaces.drivers import IDriver
from .locks import ReadWriteLock

logger = logging.getLogger(__name__)


class DriverRegistry:
    """Name to driver mapping, safe for concurrent registration and lookup."""

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._drivers: Dict[str, IDriver] = {}

    def register(self, name: str, driver: IDriver) -> None:
        """
        Make a driver available under ``name``.

        Raises:
            DriverRegistrationError: If the driver is None or the name is
                already taken
        """
        if driver is None:
            raise DriverRegistrationError("Register driver is nil", name)

        with self._lock.write_locked():
            if name in self._drivers:
                raise DriverRegistrationError(
                    f"Register called twice for driver {name}", name)
            self._drivers[name] = driver

        logger.debug(f"Registered configuration driver: {name}")

    def driver_for(self, name: str) -> Optional[IDriver]:
        with self._lock.read_locked():
            return self._drivers.get(name)

    def drivers(self) -> List[str]:
        """Sorted names of the registered drivers."""
        with self._lock.read_locked():
            return sorted(self._drivers)

    def unregister_all(self) -> None:
        """Remove every driver. Intended for tests."""
        with self._lock.write_locked():
            self._drivers = {}

    def __contains__(self, name: object) -> bool:
        with self._lock.read_locked():
            return name in self._drivers


default_registry = DriverRegistry()


def register(name: str, driver: IDriver) -> None:
    default_registry.register(name, driver)


def driver_for(name: str) -> Optional[IDriver]:
    return default_registry.driver_for(name)


def drivers() -> List[str]:
    return default_registry.drivers()
