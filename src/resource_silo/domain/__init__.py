"""
Domain layer - Core models, errors and contracts.

This layer describes resources, the errors raised while managing them,
and the interfaces the application layer implements.
It has no dependencies on other layers.
"""

from .enums import EvictionReason
from .exceptions import (
    ArgumentTypeError,
    ArgumentValidationError,
    CircularDependencyError,
    DuplicateResourceError,
    InvalidCacheValueError,
    InvalidSpecError,
    LockedModeError,
    MissingDependencyError,
    ReservedNameError,
    SiloException,
    TeardownInProgressError,
    UnknownResourceError,
    UnloadableDependencyError,
)
from .interfaces import IContainer, IGenerationProvider
from .models import (
    RESERVED_NAMES,
    CleanupFailure,
    LiteralValue,
    ResourceSpec,
    accepts_empty,
    is_identifier,
    make_key,
)

# Rebuild Pydantic models to resolve forward references
ResourceSpec.model_rebuild()

__all__ = [
    # Enums
    "EvictionReason",
    # Exceptions
    "SiloException",
    "InvalidSpecError",
    "DuplicateResourceError",
    "ReservedNameError",
    "MissingDependencyError",
    "UnloadableDependencyError",
    "UnknownResourceError",
    "ArgumentTypeError",
    "ArgumentValidationError",
    "CircularDependencyError",
    "LockedModeError",
    "TeardownInProgressError",
    "InvalidCacheValueError",
    # Interfaces
    "IContainer",
    "IGenerationProvider",
    # Models
    "ResourceSpec",
    "LiteralValue",
    "CleanupFailure",
    "RESERVED_NAMES",
    "accepts_empty",
    "is_identifier",
    "make_key",
]
