"""
Interfaces for components that receive configuration.
"""

from abc import ABC, abstractmethod
from typing import Callable

from ..options.node import Options


class IConfigurable(ABC):
    """Interface for components that can be configured."""

    @abstractmethod
    def configure(self, options: Options, first: bool) -> None:
        """
        Configure the component with its configuration section.

        Args:
            options: Configuration section the component was registered for
            first: True for the configuration delivered at registration,
                False for every later delivery after a reload

        Raises:
            Exception: If the configuration cannot be applied
        """
        pass


class CallbackConfigurable(IConfigurable):
    """Adapts a plain function to the IConfigurable interface."""

    def __init__(self, callback: Callable[[Options, bool], None]) -> None:
        self.callback = callback

    def configure(self, options: Options, first: bool) -> None:
        self.callback(options, first)

    def __repr__(self) -> str:
        name = getattr(self.callback, "__name__", repr(self.callback))
        return f"CallbackConfigurable({name})"
