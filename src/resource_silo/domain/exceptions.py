from typing import Any, Iterable, List, Optional


class SiloException(Exception):
    """Base exception for resource-silo errors."""


class InvalidSpecError(SiloException):
    """Raised when a resource declaration is malformed.

    Attributes:
        name: The resource being declared.
        field: The offending option, if any.
        reason: What is wrong with it.
    """

    def __init__(self, name: Any, field: Optional[str], reason: str) -> None:
        self.name = name
        self.field = field
        self.reason = reason
        where = f"resource '{name}'" if field is None else f"resource '{name}', option '{field}'"
        super().__init__(f"Invalid specification for {where}: {reason}")


class DuplicateResourceError(SiloException):
    """Raised when a resource name is registered twice."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Attempt to redefine resource '{name}'")


class ReservedNameError(SiloException):
    """Raised when a resource name collides with a container operation."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Resource name '{name}' collides with a container method")


class MissingDependencyError(SiloException):
    """Raised by self-check when a declared dependency is not registered.

    Attributes:
        name: The resource declaring the dependency.
        dependency: The unregistered dependency name.
    """

    def __init__(self, name: str, dependency: str) -> None:
        self.name = name
        self.dependency = dependency
        super().__init__(f"Resource '{name}' depends on unknown resource '{dependency}'")


class UnloadableDependencyError(SiloException):
    """Raised by self-check when a required module cannot be imported.

    Attributes:
        name: The resource requiring the module.
        module: The module that failed to load.
        reason: Text of the underlying import error.
    """

    def __init__(self, name: str, module: str, reason: Optional[str] = None) -> None:
        self.name = name
        self.module = module
        self.reason = reason
        message = f"Resource '{name}' requires module '{module}' which cannot be loaded"
        if reason:
            message += f". Reason: {reason}"
        super().__init__(message)


class UnknownResourceError(SiloException):
    """Raised when accessing, overriding or seeding an unregistered resource."""

    def __init__(self, name: Any, action: str = "fetch") -> None:
        self.name = name
        self.action = action
        super().__init__(f"Attempt to {action} unknown resource '{name}'")


class ArgumentTypeError(SiloException):
    """Raised when a resource argument is not a scalar."""

    def __init__(self, name: str, argument: Any) -> None:
        self.name = name
        self.argument = argument
        super().__init__(
            f"Argument for resource '{name}' must be a string or a number, not {type(argument).__name__}"
        )


class ArgumentValidationError(SiloException):
    """Raised when the resource's validator rejects an argument."""

    def __init__(self, name: str, argument: str) -> None:
        self.name = name
        self.argument = argument
        super().__init__(f"Argument check failed for resource '{name}': '{argument}'")


class CircularDependencyError(SiloException):
    """Raised when a resource is requested while it is being initialized.

    Attributes:
        key: The printable cache key that was requested again.
        pending: Sorted list of every key pending at the time of failure.
    """

    def __init__(self, key: str, pending: Iterable[str]) -> None:
        self.key = key
        self.pending: List[str] = sorted(pending)
        super().__init__(f"Circular dependency detected for resource '{key}': {{{', '.join(self.pending)}}}")


class LockedModeError(SiloException):
    """Raised when initializing a resource while the container is locked."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Attempting to initialize resource '{name}' in locked mode")


class TeardownInProgressError(SiloException):
    """Raised when initializing a resource after container cleanup has begun."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Attempting to initialize resource '{name}' after cleanup has started")


class InvalidCacheValueError(SiloException):
    """Raised when set_cache receives a payload it cannot store."""

    def __init__(self, name: str, value: Any, reason: Optional[str] = None) -> None:
        self.name = name
        self.value = value
        if reason is None:
            shape = f"a scalar value '{value}'" if isinstance(value, (str, int, float)) else type(value).__name__
            reason = f"must be None, a list, or a dict, not {shape}"
        super().__init__(f"set_cache value for resource '{name}' {reason}")
