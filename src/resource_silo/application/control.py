import functools
import inspect
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Tuple

from resource_silo.application.spec_builder import constant
from resource_silo.domain import (
    CleanupFailure,
    EvictionReason,
    InvalidCacheValueError,
    ResourceSpec,
    UnknownResourceError,
)

if TYPE_CHECKING:
    from resource_silo.application.container import ResourceContainer

logger = logging.getLogger(__name__)


def as_initializer(value: Any) -> Callable[..., Any]:
    """Use functions as initializers as is, wrap anything else into a constant.

    Classes and callable objects (e.g. mocks) are treated as values.
    """
    if inspect.isroutine(value) or isinstance(value, functools.partial):
        return value
    return constant(value)


class ContainerControl:
    """Administrative facade of a ResourceContainer.

    Keeps lifecycle operations out of the resource namespace. Holds nothing
    but a reference to the container and is meant to be used for a single
    chain of calls, e.g. ``container.ctl().override(dbh=mock).lock()``.

    Attributes:
        _container: The container being administered.
    """

    def __init__(self, container: "ResourceContainer") -> None:
        self._container = container

    def _spec(self, name: Any, action: str) -> ResourceSpec:
        spec = self._container.registry.lookup(name)
        if spec is None:
            raise UnknownResourceError(name, action)
        return spec

    def override(self, **overrides: Any) -> "ContainerControl":
        """Replace resource initializers, e.g. with mocks in tests.

        Cached values of the overridden resources are evicted with their
        normal cleanup.

        Only plain functions, methods and ``functools.partial`` objects are
        called as initializers with (container, name, argument). Every other
        value is returned as is, including classes and callable instances
        such as ``unittest.mock.Mock``. To override with a callable object
        that builds the value, wrap it: ``dbh=lambda c, name, arg: factory(c, name, arg)``.

        Args:
            **overrides: Resource name to initializer or value.

        Raises:
            UnknownResourceError: If any name is not registered; nothing is changed then.

        Example:
            >>> container.ctl().override(config={"db": "sqlite://"}, dbh=lambda c, n, a: connect(c.get("config")))
        """
        container = self._container
        with container._lock:
            for name in overrides:
                self._spec(name, "override")
            container._check_generation()
            for name, init in overrides.items():
                container._evict(name, EvictionReason.OVERRIDE)
                container._overrides[name] = as_initializer(init)
                logger.debug("Overrode resource '%s'", name)
        return self

    def clear_overrides(self) -> "ContainerControl":
        """Evict the values of overridden resources and remove all overrides."""
        container = self._container
        with container._lock:
            container._check_generation()
            for name in list(container._overrides):
                container._evict(name, EvictionReason.OVERRIDE)
            container._overrides.clear()
        return self

    def lock(self) -> "ContainerControl":
        """Forbid initializing new resources.

        Cached, overridden and derived resources are still available.
        """
        with self._container._lock:
            self._container._locked = True
        return self

    def unlock(self) -> "ContainerControl":
        """Remove the lock set by ``lock``."""
        with self._container._lock:
            self._container._locked = False
        return self

    def _parse_cache_value(self, spec: ResourceSpec, value: Any) -> Optional[List[Tuple[str, Any]]]:
        if value is None:
            return None
        if spec.ignore_cache:
            raise InvalidCacheValueError(spec.name, value, "cannot be stored, the resource ignores the cache")
        if isinstance(value, Mapping):
            pairs = list(value.items())
        elif isinstance(value, (list, tuple)):
            if len(value) == 1:
                pairs = [("", value[0])]
            elif len(value) % 2 == 0:
                pairs = list(zip(value[::2], value[1::2]))
            else:
                raise InvalidCacheValueError(spec.name, value)
        else:
            raise InvalidCacheValueError(spec.name, value)
        return [(spec.normalize_argument(argument), item) for argument, item in pairs]

    def set_cache(self, **resources: Any) -> "ContainerControl":
        """Put values into the cache, or remove them, without running init.

        Accepted values per resource:
        - ``None``: forget every cached slot;
        - ``[value]``: set the slot without argument;
        - ``[arg1, value1, arg2, value2, ...]`` or ``{arg: value}``: set slots by argument.

        Values cannot be stored for ``ignore_cache`` resources.

        No cleanup runs for replaced or forgotten values. The whole call is
        validated before the cache is touched.

        Raises:
            UnknownResourceError: If a name is not registered.
            InvalidCacheValueError: If a value has none of the shapes above,
                or is given for an ``ignore_cache`` resource.
            ArgumentTypeError: If an argument is not a scalar.
            ArgumentValidationError: If an argument is rejected by the resource.

        Example:
            >>> container.ctl().set_cache(config=[{"debug": True}], redis={"session": fake_redis})
        """
        container = self._container
        with container._lock:
            staged: Dict[str, Optional[List[Tuple[str, Any]]]] = {}
            for name, value in resources.items():
                staged[name] = self._parse_cache_value(self._spec(name, "set"), value)

            container._check_generation()
            for name, pairs in staged.items():
                if pairs is None:
                    container._cache.detach(name)
                    continue
                for argument, item in pairs:
                    container._cache.store(name, argument, item)
        return self

    def preload(self) -> "ContainerControl":
        """Check the registry and initialize every resource flagged ``preload``.

        Useful when a service must fail at startup rather than while
        handling its first request.

        Raises:
            MissingDependencyError: If a declared dependency is not registered.
            UnloadableDependencyError: If a required module cannot be imported.
        """
        container = self._container
        with container._lock:
            container.registry.self_check()
            for name in container.registry.preload_list():
                container.get(name)
        return self

    def fresh(self, name: str, argument: Optional[Any] = None) -> Any:
        """Return a dedicated instance of a resource, see ``ResourceContainer.fresh``."""
        return self._container.fresh(name, argument)

    def cleanup(self) -> "ContainerControl":
        """Tear down every cached resource in ``cleanup_order``.

        Ties are broken by registration order. Cleanup failures are logged
        and recorded in ``container.cleanup_failures``. Afterwards the
        container refuses to initialize anything.
        """
        container = self._container
        with container._lock:
            container._check_generation()
            container._tearing_down = True

            specs = sorted(
                (self._spec(name, "clean up") for name in container._cache.names()),
                key=lambda spec: (spec.cleanup_order, spec.order),
            )
            logger.debug("Tearing down resources: %s", ", ".join(spec.name for spec in specs))
            for spec in specs:
                container._evict(spec.name, EvictionReason.TEARDOWN)
            container._cache.clear()
        return self

    def drain_cleanup_failures(self) -> List[CleanupFailure]:
        """Return the recorded cleanup failures and forget them.

        Example:
            >>> for failure in container.ctl().drain_cleanup_failures():
            ...     report(failure.name, failure.error)
        """
        container = self._container
        with container._lock:
            failures = list(container.cleanup_failures)
            container.cleanup_failures.clear()
        return failures
