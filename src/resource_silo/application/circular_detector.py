"""Application layer - Circular dependency detection."""

from contextlib import contextmanager
from typing import Iterator, List, Set

from resource_silo.domain import CircularDependencyError


class CircularDependencyDetector:
    """Detects circular dependencies during resource initialization.

    Tracks the set of cache keys currently being resolved by a container.
    Re-entering a key that is already pending means the initializers form
    a cycle. The container serializes access, so a plain set is enough.

    Attributes:
        _pending: Keys currently being resolved.
    """

    def __init__(self) -> None:
        """Initialize the detector with an empty pending set."""
        self._pending: Set[str] = set()

    def push(self, key: str) -> None:
        """Mark a key as being resolved.

        Args:
            key: Printable cache key, e.g. ``"redis@session"``.

        Raises:
            CircularDependencyError: If the key is already pending.

        Example:
            >>> detector = CircularDependencyDetector()
            >>> detector.push("config")
            >>> detector.push("dbh")
            >>> detector.push("config")  # Raises CircularDependencyError
        """
        if key in self._pending:
            raise CircularDependencyError(key, self._pending)
        self._pending.add(key)

    def pop(self, key: str) -> None:
        """Forget a key once its resolution is over."""
        self._pending.discard(key)

    @contextmanager
    def track(self, key: str) -> Iterator[None]:
        """Keep a key pending for the duration of a ``with`` block.

        The key is released on every exit path, so a failed initializer
        leaves the pending set as it was before.
        """
        self.push(key)
        try:
            yield
        finally:
            self.pop(key)

    def pending(self) -> List[str]:
        """Return the keys currently pending, sorted."""
        return sorted(self._pending)

    def __contains__(self, key: object) -> bool:
        return key in self._pending

    def clear(self) -> None:
        """Clear the pending set.

        Useful for testing or error recovery.
        """
        self._pending.clear()
