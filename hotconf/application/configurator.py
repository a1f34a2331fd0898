"""
Configurator: hot-reload orchestration.

A configurator owns one connector and the last configuration snapshot it
loaded. Components register for a section of the configuration and are
configured immediately, then again every time the source changes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from ..core.exceptions import ConnectorError, DriverNotFoundError
from ..core.interfaces.drivers import IConnector, SourceEvent
from ..core.interfaces.lifecycle import IConfigurable
from ..core.locks import ReadWriteLock
from ..core.options.node import Options
from ..core.registry import DriverRegistry, default_registry
from .dispatcher import ChangeDispatcher

logger = logging.getLogger(__name__)


@dataclass
class ConfigurableItem:
    """A registered configurable and the section it receives."""
    section: str
    configurable: IConfigurable


class Configurator:
    """
    Keeps registered components configured from one configuration source.

    All mutations of the snapshot and the registrations, including the calls
    into registered components, happen under an exclusive lock; ``get`` takes
    the shared lock. A component that blocks in ``configure`` therefore
    blocks readers and further reloads until it returns.
    """

    def __init__(
        self,
        driver: str,
        properties: Optional[Union[Options, Mapping[str, Any]]] = None,
        registry: Optional[DriverRegistry] = None,
        queue_size: int = 16
    ) -> None:
        """
        Connect to a configuration source and load the first snapshot.

        Args:
            driver: Registered driver name
            properties: Driver connection properties
            registry: Driver registry, the process wide one by default
            queue_size: Capacity of the change notification queue

        Raises:
            DriverNotFoundError: If no driver is registered under ``driver``
            ConnectorError: If connecting or the first load fails
        """
        registry = registry if registry is not None else default_registry
        drv = registry.driver_for(driver)
        if drv is None:
            raise DriverNotFoundError(driver)

        if isinstance(properties, Options):
            props = properties
        else:
            props = Options(dict(properties or {}))

        self._driver_name = driver
        self._lock = ReadWriteLock()
        self._items: List[ConfigurableItem] = []
        self._connector: Optional[IConnector] = None
        self._last: Optional[Options] = None
        self._dispatcher = ChangeDispatcher(
            self._source_changed,
            error_handler=self._report_source_error,
            queue_size=queue_size,
            name=f"hotconf-{driver}"
        )

        connector = drv.connect(self._dispatcher.notify, props)
        try:
            snapshot = connector.load()
            if snapshot is None:
                raise ConnectorError(f"Driver {driver} loaded no configuration")
        except BaseException:
            connector.close()
            raise

        self._connector = connector
        self._last = snapshot
        self._dispatcher.start()

        logger.info(f"Configurator connected using driver {driver}")

    @property
    def driver(self) -> str:
        return self._driver_name

    @property
    def valid(self) -> bool:
        """True while connected and holding a snapshot."""
        return self._connector is not None and self._last is not None

    @property
    def metrics(self) -> Dict[str, int]:
        return self._dispatcher.metrics

    def get(self, section: str = "") -> Options:
        """
        Get a section of the current snapshot.

        Never fails: returns an empty node when closed or when the section
        does not exist.
        """
        with self._lock.read_locked():
            if self._last is not None:
                return self._last.get(section)
            return Options()

    def register(self, section: str, configurable: IConfigurable) -> None:
        """
        Register a component for a configuration section.

        The component is configured with its section before this method
        returns, with ``first`` set. Registering the same component again is
        a no-op. If that first configuration raises, the registration is
        withdrawn and the exception propagates.
        """
        with self._lock.write_locked():
            if any(item.configurable is configurable for item in self._items):
                return

            item = ConfigurableItem(section, configurable)
            self._items.append(item)
            if self._last is None:
                return

            try:
                configurable.configure(self._last.get(section), True)
            except Exception:
                self._items.remove(item)
                raise

        logger.debug(f"Registered configurable {configurable!r} for section {section!r}")

    def configure(self) -> None:
        """Deliver the current snapshot to every registered component."""
        with self._lock.write_locked():
            self._configure_all()

    def load(self, reconfigure: bool = False) -> None:
        """
        Reload the snapshot from the source.

        The snapshot is replaced even when unchanged; registered components
        are configured again only when ``reconfigure`` is set.

        Raises:
            ConnectorError: If loading fails
        """
        with self._lock.write_locked():
            if self._connector is None:
                return

            snapshot = self._connector.load()
            if snapshot is None:
                raise ConnectorError(f"Driver {self._driver_name} loaded no configuration")
            self._last = snapshot
            if reconfigure:
                self._configure_all()

    def store(self) -> None:
        """Write the current snapshot back to the source; no-op once closed."""
        with self._lock.read_locked():
            if self._connector is not None and self._last is not None:
                self._connector.store(self._last)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until pending change notifications have been handled."""
        return self._dispatcher.wait_idle(timeout)

    def close(self) -> None:
        """
        Stop change handling and release the connector.

        Returns once the notification thread and the connector's detection
        task have exited. Calling close again does nothing.
        """
        self._dispatcher.stop()

        with self._lock.write_locked():
            connector = self._connector
            self._connector = None
            self._last = None

        if connector is not None:
            connector.close()
            logger.info(f"Configurator using driver {self._driver_name} closed")

    def __enter__(self) -> 'Configurator':
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _configure_all(self) -> None:
        if self._last is None:
            return

        for item in self._items:
            try:
                item.configurable.configure(self._last.get(item.section), False)
            except Exception as e:
                logger.error(
                    f"Error configuring {item.configurable!r} "
                    f"for section {item.section!r}: {e}")

    def _source_changed(self, event: SourceEvent) -> bool:
        """
        Reload after a source change and reconfigure on a real difference.

        Returns:
            True if the snapshot changed and was broadcast

        Raises:
            ConnectorError: If the reload fails or yields nothing
        """
        with self._lock.write_locked():
            connector = self._connector
            if connector is None:
                return False

            snapshot = connector.load()
            if snapshot is None:
                raise ConnectorError("loaded configuration returned None")

            if snapshot.equal_to(self._last):
                logger.debug(f"Source {event.name.lower()}, configuration unchanged")
                return False

            self._last = snapshot
            logger.info(f"Source {event.name.lower()}, reconfiguring {len(self._items)} component(s)")
            self._configure_all()
            return True

    def _report_source_error(self, event: SourceEvent, error: Exception) -> None:
        connector = self._connector
        if connector is not None:
            connector.report_error(error)
        else:
            logger.warning(f"Reload after {event.name.lower()} event failed: {error}")
