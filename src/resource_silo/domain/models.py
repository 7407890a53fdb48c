import re
from typing import TYPE_CHECKING, Any, Callable, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from resource_silo.domain.enums import EvictionReason
from resource_silo.domain.exceptions import ArgumentTypeError, ArgumentValidationError

if TYPE_CHECKING:
    from resource_silo.domain.interfaces import IContainer

IDENTIFIER = re.compile(r"[A-Za-z][A-Za-z0-9_]*")

# Public names of the container; a resource may not shadow any of them.
RESERVED_NAMES: FrozenSet[str] = frozenset(
    {
        "cached",
        "cleanup_failures",
        "control",
        "ctl",
        "fresh",
        "generation",
        "get",
        "locked",
        "registry",
        "tearing_down",
    }
)


def is_identifier(name: Any) -> bool:
    """Check whether a value is usable as a resource name."""
    return isinstance(name, str) and IDENTIFIER.fullmatch(name) is not None


def accepts_empty(argument: str) -> bool:
    """Default argument validator: the resource takes no argument."""
    return argument == ""


def make_key(name: str, argument: str) -> str:
    """Build the printable cache key used in pending sets and messages."""
    return f"{name}@{argument}" if argument else name


class ResourceSpec(BaseModel):
    """Immutable description of one resource kind.

    Attributes:
        name: Unique identifier within a registry.
        init: Initializer receiving (container, name, argument).
        argument: Predicate validating the string argument.
        cleanup: Called with the cached value on normal eviction.
        fork_cleanup: Called instead of cleanup when evicting after a fork.
        fork_safe: Keep the cached value across forks.
        cleanup_order: Lower values are torn down first.
        ignore_cache: Never cache, run init on every access.
        derived: May be instantiated while the container is locked.
        preload: Included in the preload pass.
        post_init: Receives (value, container) and returns the value to cache.
        dependencies: Declared dependency names, None if undeclared.
        require: Modules imported before init runs.
        order: Registration index, stamped by the registry.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Unique resource identifier.")
    init: Callable[["IContainer", str, str], Any] = Field(..., description="Resource initializer.")
    argument: Callable[[str], Any] = Field(default=accepts_empty, description="Argument validator.")
    cleanup: Optional[Callable[[Any], Any]] = Field(default=None, description="Normal cleanup function.")
    fork_cleanup: Optional[Callable[[Any], Any]] = Field(default=None, description="Cleanup used after a fork.")
    fork_safe: bool = Field(default=False, description="Whether the value survives a fork.")
    cleanup_order: float = Field(default=0, description="Teardown order, ascending.")
    ignore_cache: bool = Field(default=False, description="Whether to bypass the cache entirely.")
    derived: bool = Field(default=False, description="Whether the resource is exempt from lock.")
    preload: bool = Field(default=False, description="Whether to include in the preload pass.")
    post_init: Optional[Callable[[Any, "IContainer"], Any]] = Field(
        default=None, description="Validator/transformer applied to the initialized value."
    )
    dependencies: Optional[Tuple[str, ...]] = Field(default=None, description="Declared dependency names.")
    require: Tuple[str, ...] = Field(default=(), description="Modules to import before init.")
    order: int = Field(default=0, description="Registration index.")

    def accepts(self, argument: str) -> bool:
        """Run the argument validator."""
        return bool(self.argument(argument))

    def normalize_argument(self, argument: Any) -> str:
        """Turn a caller-supplied argument into a validated cache slot.

        Args:
            argument: None, a string, or a number.

        Returns:
            The argument as a string; None becomes the empty string.

        Raises:
            ArgumentTypeError: If the argument is not a scalar.
            ArgumentValidationError: If the validator rejects it.
        """
        if argument is None:
            argument = ""
        elif isinstance(argument, bool) or not isinstance(argument, (str, int, float)):
            raise ArgumentTypeError(self.name, argument)
        else:
            argument = str(argument)
        if not self.accepts(argument):
            raise ArgumentValidationError(self.name, argument)
        return argument

    def cleanup_for(self, reason: EvictionReason) -> Optional[Callable[[Any], Any]]:
        """Pick the cleanup function matching an eviction reason."""
        if reason == EvictionReason.FORK and self.fork_cleanup is not None:
            return self.fork_cleanup
        return self.cleanup


class LiteralValue(BaseModel):
    """Marks a class dependency that is passed to the constructor as is.

    Example:
        >>> registry.add("client", class_=Client, dependencies={"timeout": LiteralValue(value=3.5)})
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    value: Any = Field(..., description="The literal value.")


class CleanupFailure(BaseModel):
    """Record of a cleanup function that raised during eviction.

    Attributes:
        name: Resource whose cleanup failed.
        argument: Argument slot being evicted.
        reason: Why the value was being evicted.
        error: The exception raised by the cleanup function.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    argument: str
    reason: EvictionReason
    error: BaseException
