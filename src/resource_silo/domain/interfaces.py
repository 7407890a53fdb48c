from abc import ABC, abstractmethod
from typing import Any, Hashable, Optional


class IContainer(ABC):
    """Abstract interface for resource container operations."""

    @abstractmethod
    def get(self, name: str, argument: Optional[Any] = None) -> Any:
        """Return the resource, initializing and caching it if needed.

        Args:
            name: The resource name.
            argument: Optional string discriminator.
        """

    @abstractmethod
    def fresh(self, name: str, argument: Optional[Any] = None) -> Any:
        """Create a new instance of the resource, bypassing the cache.

        Args:
            name: The resource name.
            argument: Optional string discriminator.
        """

    @abstractmethod
    def cached(self, name: str, argument: Optional[Any] = None) -> Any:
        """Return the cached resource or None, never initializing it.

        Args:
            name: The resource name.
            argument: Optional string discriminator.
        """

    @abstractmethod
    def ctl(self) -> Any:
        """Return the administrative facade bound to this container."""


class IGenerationProvider(ABC):
    """Abstract source of the token used to detect forks.

    Whenever the token changes between two container operations, the
    container assumes its cached state was duplicated and runs fork recovery.
    """

    @abstractmethod
    def current(self) -> Hashable:
        """Return the token identifying the current generation."""
