import importlib
import logging
import os
import threading
import weakref
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional

from resource_silo.application.cache import ResourceCache, release
from resource_silo.application.circular_detector import CircularDependencyDetector
from resource_silo.application.control import ContainerControl
from resource_silo.application.generation import ProcessGeneration
from resource_silo.application.registry import Registry
from resource_silo.domain import (
    CleanupFailure,
    EvictionReason,
    IContainer,
    IGenerationProvider,
    LockedModeError,
    ResourceSpec,
    TeardownInProgressError,
    UnknownResourceError,
    make_key,
)

logger = logging.getLogger(__name__)

# Containers whose locks are re-created in a forked child.
_live_containers: "weakref.WeakSet[ResourceContainer]" = weakref.WeakSet()


def _reinit_after_fork() -> None:
    for container in list(_live_containers):
        container._reinit_locks()


if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=_reinit_after_fork)


class ResourceContainer(IContainer):
    """Lazy, fork-aware container of the resources declared in a registry.

    Resources are initialized on first access and cached per argument.
    All public operations, including the ones of the control facade, run
    under a single re-entrant lock so initializers may call back into the
    container for their own dependencies.

    Attributes:
        registry: The resource declarations this container serves.
        generation: Generation token observed at the last fork check.
        cleanup_failures: Cleanup calls that raised during eviction. The list is only
            appended to; long-running processes should drain it with
            ``ctl().drain_cleanup_failures()``.
        _generation_provider: Source of the current generation token.
        _cache: Initialized resources.
        _overrides: Replacement initializers keyed by resource name.
        _locked: Whether new non-derived resources are forbidden.
        _tearing_down: Whether full cleanup has started.
        _circular_detector: Keys being resolved on the current call chain.
        _lock: Serializes every operation on this container. Re-created in a
            forked child, where a thread holding it in the parent no longer exists.
    """

    def __init__(
        self,
        registry: Registry,
        overrides: Optional[Mapping[str, Any]] = None,
        *,
        generation: Optional[IGenerationProvider] = None,
    ) -> None:
        """Initialize the container.

        Args:
            registry: The resource declarations to serve.
            overrides: Initial overrides, passed to ``ctl().override``.
            generation: Fork detection strategy, defaults to process id.

        Example:
            >>> container = ResourceContainer(registry, {"dbh": sqlite_connection})
        """
        self.registry = registry
        self._generation_provider = generation or ProcessGeneration()
        self.generation: Hashable = self._generation_provider.current()
        self.cleanup_failures: List[CleanupFailure] = []
        self._cache = ResourceCache()
        self._overrides: Dict[str, Callable[..., Any]] = {}
        self._locked = False
        self._tearing_down = False
        self._circular_detector = CircularDependencyDetector()
        self._lock = threading.RLock()
        _live_containers.add(self)

        if overrides:
            self.ctl().override(**overrides)

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def tearing_down(self) -> bool:
        return self._tearing_down

    def ctl(self) -> ContainerControl:
        """Return the administrative facade bound to this container.

        Example:
            >>> container.ctl().override(dbh=mock_dbh).lock()
        """
        return ContainerControl(self)

    control = ctl

    def _spec(self, name: Any) -> ResourceSpec:
        spec = self.registry.lookup(name)
        if spec is None:
            raise UnknownResourceError(name)
        return spec

    def get(self, name: str, argument: Optional[Any] = None) -> Any:
        """Return a resource, initializing and caching it on first access.

        Args:
            name: The resource name.
            argument: Optional discriminator; None means the empty string.

        Returns:
            The cached value, or a new one for ``ignore_cache`` resources.

        Raises:
            UnknownResourceError: If the name is not registered.
            ArgumentTypeError: If the argument is not a scalar.
            ArgumentValidationError: If the argument is rejected.
            CircularDependencyError: If the resource is already being initialized.
            LockedModeError: If locked and the resource is neither derived nor overridden.
            TeardownInProgressError: If cleanup has started.

        Example:
            >>> container.get("dbh")
            >>> container.get("redis", "session")
        """
        with self._lock:
            spec = self._spec(name)
            argument = spec.normalize_argument(argument)
            self._check_generation()

            if spec.ignore_cache:
                return self._instantiate(spec, argument)
            if self._cache.has(spec.name, argument):
                return self._cache.get(spec.name, argument)

            value = self._instantiate(spec, argument)
            self._cache.store(spec.name, argument, value)
            return value

    def fresh(self, name: str, argument: Optional[Any] = None) -> Any:
        """Create a dedicated instance, never reading or writing the cache.

        Raises the same errors as ``get``.
        """
        with self._lock:
            spec = self._spec(name)
            argument = spec.normalize_argument(argument)
            self._check_generation()
            return self._instantiate(spec, argument)

    def cached(self, name: str, argument: Optional[Any] = None) -> Any:
        """Return the cached value or None, never initializing anything."""
        with self._lock:
            spec = self._spec(name)
            argument = spec.normalize_argument(argument)
            self._check_generation()
            return self._cache.get(spec.name, argument)

    def _instantiate(self, spec: ResourceSpec, argument: str) -> Any:
        with self._circular_detector.track(make_key(spec.name, argument)):
            override = self._overrides.get(spec.name)
            if self._locked and not spec.derived and override is None:
                raise LockedModeError(spec.name)
            if self._tearing_down:
                raise TeardownInProgressError(spec.name)

            if override is not None:
                value = override(self, spec.name, argument)
            else:
                for module in spec.require:
                    importlib.import_module(module)
                value = spec.init(self, spec.name, argument)

            if spec.post_init is not None:
                value = spec.post_init(value, self)

        logger.debug(
            "Initialized resource '%s'%s",
            make_key(spec.name, argument),
            " (overridden)" if override is not None else "",
        )
        return value

    def _reinit_locks(self) -> None:
        # Parent threads holding the lock or pending keys do not exist in the child.
        self._lock = threading.RLock()
        self._circular_detector.clear()

    def _check_generation(self) -> None:
        current = self._generation_provider.current()
        if current != self.generation:
            self._recover_from_fork(current)

    def _recover_from_fork(self, current: Hashable) -> None:
        # Detach first: a cleanup re-entering the container must not see these entries.
        detached = []
        for name in self._cache.names():
            spec = self._spec(name)
            if not spec.fork_safe:
                detached.append((spec, self._cache.detach(name)))

        logger.debug(
            "Generation changed from %r to %r, dropping %d resource(s)",
            self.generation,
            current,
            len(detached),
        )
        for spec, slots in detached:
            self.cleanup_failures.extend(release(spec, slots, EvictionReason.FORK))
        self.generation = current

    def _evict(self, name: str, reason: EvictionReason) -> None:
        slots = self._cache.detach(name)
        if slots:
            self.cleanup_failures.extend(release(self._spec(name), slots, reason))

    def __enter__(self) -> "ResourceContainer":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> bool:
        """Context manager exit - tear down every cached resource."""
        self.ctl().cleanup()
        return False
