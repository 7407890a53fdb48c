import importlib
import logging
from typing import Any, Callable, Dict, FrozenSet, Iterator, List, Optional, Tuple, TypeVar

from resource_silo.application.spec_builder import build_spec, validate_spec
from resource_silo.domain import (
    RESERVED_NAMES,
    DuplicateResourceError,
    InvalidSpecError,
    MissingDependencyError,
    ReservedNameError,
    ResourceSpec,
    UnloadableDependencyError,
    is_identifier,
)

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


class Registry:
    """Ordered collection of resource specifications.

    Built once at setup time and shared by any number of containers.
    Specifications are immutable and cannot be redefined once added.

    Attributes:
        _specs: Mapping of resource name to its specification, in registration order.
        _preload: Names of resources flagged for preloading.
        _reserved: Names that may not be used for resources.
    """

    def __init__(self, reserved: FrozenSet[str] = RESERVED_NAMES) -> None:
        """Initialize an empty registry.

        Args:
            reserved: Names that would shadow container operations.
        """
        self._specs: Dict[str, ResourceSpec] = {}
        self._preload: List[str] = []
        self._reserved = reserved

    def _check_name(self, name: Any) -> None:
        if not is_identifier(name):
            raise InvalidSpecError(name, None, "name must be an identifier")
        if name in self._specs:
            raise DuplicateResourceError(name)
        if name in self._reserved:
            raise ReservedNameError(name)

    def add(self, name: str, init: Optional[Callable[..., Any]] = None, **options: Any) -> ResourceSpec:
        """Declare a resource.

        Args:
            name: Resource identifier.
            init: Initializer receiving (container, name, argument).
            **options: Flags and callbacks, see ``spec_builder.KNOWN_OPTIONS``.

        Returns:
            The registered specification.

        Raises:
            DuplicateResourceError: If the name is already registered.
            ReservedNameError: If the name collides with a container operation.
            InvalidSpecError: If the declaration is malformed.

        Example:
            >>> registry = Registry()
            >>> registry.add("config_file", literal="/etc/myapp.yaml")
            >>> registry.add("config", lambda c, name, arg: load_yaml(c.get("config_file")))
            >>> registry.add("dbh", connect, dependencies=["config"], cleanup=lambda dbh: dbh.close())
        """
        self._check_name(name)
        return self.register(build_spec(name, init, **options))

    def resource(self, name: str, **options: Any) -> Callable[[F], F]:
        """Decorator form of ``add``: the decorated function becomes ``init``.

        Example:
            >>> @registry.resource("redis", argument=r"session|lock", cleanup=lambda r: r.close())
            ... def redis(container, name, namespace):
            ...     return Redis(namespace=namespace)
        """

        def decorator(init: F) -> F:
            self.add(name, init, **options)
            return init

        return decorator

    def register(self, spec: ResourceSpec) -> ResourceSpec:
        """Register a ready-made specification.

        The stored copy has its ``order`` set to the registration index.

        Raises:
            DuplicateResourceError: If the name is already registered.
            ReservedNameError: If the name collides with a container operation.
            InvalidSpecError: If the name is not an identifier, or the options do not fit together.
        """
        self._check_name(spec.name)
        validate_spec(spec)
        spec = spec.model_copy(update={"order": len(self._specs)})
        self._specs[spec.name] = spec
        if spec.preload:
            self._preload.append(spec.name)
        logger.debug("Registered resource '%s'", spec.name)
        return spec

    def lookup(self, name: Any) -> Optional[ResourceSpec]:
        """Return the specification for a name, or None if unknown."""
        if not isinstance(name, str):
            return None
        return self._specs.get(name)

    def names(self) -> Tuple[str, ...]:
        """Return all resource names in registration order."""
        return tuple(self._specs)

    def preload_list(self) -> Tuple[str, ...]:
        """Return names of resources flagged ``preload``, in registration order."""
        return tuple(self._preload)

    def self_check(self) -> None:
        """Verify declared dependencies and required modules.

        Raises:
            MissingDependencyError: If a declared dependency is not registered.
            UnloadableDependencyError: If a required module cannot be imported.
        """
        for spec in self._specs.values():
            for dependency in spec.dependencies or ():
                if dependency not in self._specs:
                    raise MissingDependencyError(spec.name, dependency)
            for module in spec.require:
                try:
                    importlib.import_module(module)
                except ImportError as e:
                    raise UnloadableDependencyError(spec.name, module, str(e)) from e

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[ResourceSpec]:
        return iter(self._specs.values())
