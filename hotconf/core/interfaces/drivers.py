"""
Driver and connector interfaces for configuration sources.

A driver is a stateless factory registered under a name. Connecting it to a
source produces a connector, which loads and stores whole configuration
snapshots and reports source changes through a callback.
"""

import logging
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Callable, Optional

from ..options.node import Options

logger = logging.getLogger(__name__)


class SourceEvent(IntEnum):
    """Kind of change detected on a configuration source."""
    REMOVED = 0
    MODIFIED = 1


ChangeHandler = Callable[[SourceEvent], None]
"""Callback a connector invokes when its source changed."""


class IConnector(ABC):
    """Live binding to one configuration source."""

    @abstractmethod
    def load(self) -> Options:
        """
        Load the current configuration snapshot.

        Raises:
            ConnectorError: If the source cannot be read
            FormatError: If the source content cannot be decoded
        """
        pass

    @abstractmethod
    def store(self, options: Options) -> None:
        """
        Store a configuration snapshot.

        Raises:
            ConnectorError: If the source cannot be written
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """
        Stop change detection and release the source.

        Must not return before the background detection task has exited.
        Calling close more than once is allowed.
        """
        pass

    def report_error(self, error: Exception) -> None:
        """Receive an error raised while handling a change notification."""
        logger.error(f"{type(self).__name__}: configuration reload failed: {error}")


class IDriver(ABC):
    """Factory of connectors for one kind of source."""

    @abstractmethod
    def connect(self, on_change: Optional[ChangeHandler], properties: Options) -> IConnector:
        """
        Connect to the source described by ``properties``.

        Args:
            on_change: Called when the source changes; change detection is
                disabled when None
            properties: Driver specific connection properties

        Returns:
            Connected connector

        Raises:
            ConnectorError: If the source cannot be opened
        """
        pass
