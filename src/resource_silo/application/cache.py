import logging
from typing import Any, Dict, List

from resource_silo.domain import CleanupFailure, EvictionReason, ResourceSpec, make_key

logger = logging.getLogger(__name__)


class ResourceCache:
    """Two-level cache of initialized resources: name -> argument -> value.

    A stored None is a real value; presence is tested with ``has``.

    Attributes:
        _slots: Cached values keyed by resource name, then argument.
    """

    def __init__(self) -> None:
        self._slots: Dict[str, Dict[str, Any]] = {}

    def has(self, name: str, argument: str) -> bool:
        return argument in self._slots.get(name, {})

    def get(self, name: str, argument: str, default: Any = None) -> Any:
        return self._slots.get(name, {}).get(argument, default)

    def store(self, name: str, argument: str, value: Any) -> None:
        self._slots.setdefault(name, {})[argument] = value

    def names(self) -> List[str]:
        """Return names having at least one cached slot."""
        return [name for name, slots in self._slots.items() if slots]

    def detach(self, name: str) -> Dict[str, Any]:
        """Remove and return every cached slot of a resource."""
        return self._slots.pop(name, {})

    def clear(self) -> None:
        self._slots.clear()

    def __len__(self) -> int:
        return sum(len(slots) for slots in self._slots.values())


def release(spec: ResourceSpec, slots: Dict[str, Any], reason: EvictionReason) -> List[CleanupFailure]:
    """Run the cleanup matching ``reason`` on each detached value.

    Failures are logged and returned; remaining values are still processed.

    Args:
        spec: Specification of the evicted resource.
        slots: Detached argument -> value mapping.
        reason: Why the values are being evicted.

    Returns:
        One record per cleanup call that raised.
    """
    cleanup = spec.cleanup_for(reason)
    failures: List[CleanupFailure] = []
    if cleanup is None:
        return failures

    for argument, value in slots.items():
        try:
            cleanup(value)
        except Exception as e:
            logger.warning(
                "Cleanup of resource '%s' failed during %s",
                make_key(spec.name, argument),
                reason,
                exc_info=True,
            )
            failures.append(CleanupFailure(name=spec.name, argument=argument, reason=reason, error=e))
    return failures
