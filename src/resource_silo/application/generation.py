"""Application layer - Generation providers used for fork detection."""

import os
import threading
from typing import Hashable

from resource_silo.domain import IGenerationProvider


class ProcessGeneration(IGenerationProvider):
    """Generation token is the current process id.

    A container copied into a child process by ``os.fork()`` sees a new
    token on its first operation there.
    """

    def current(self) -> Hashable:
        return os.getpid()


class ThreadGeneration(IGenerationProvider):
    """Generation token is the identity of the calling thread.

    Treats every switch to another thread as a fork: non fork-safe
    resources are recreated for the thread that touches the container.
    """

    def current(self) -> Hashable:
        return threading.get_ident()


class EpochGeneration(IGenerationProvider):
    """Generation token is an explicit counter.

    Useful where no OS-level fork exists, or to simulate one in tests.

    Example:
        >>> epoch = EpochGeneration()
        >>> container = ResourceContainer(registry, generation=epoch)
        >>> epoch.advance()  # next container operation runs fork recovery
    """

    def __init__(self, start: int = 0) -> None:
        self._epoch = start

    def advance(self) -> int:
        """Move to the next generation and return it."""
        self._epoch += 1
        return self._epoch

    def current(self) -> Hashable:
        return self._epoch
