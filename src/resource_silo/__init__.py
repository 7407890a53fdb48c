"""
resource-silo: Lazy, fork-aware resource container.

Public API exports for the resource-silo package.
"""

# Application exports
from resource_silo.application.container import ResourceContainer
from resource_silo.application.control import ContainerControl
from resource_silo.application.generation import EpochGeneration, ProcessGeneration, ThreadGeneration
from resource_silo.application.registry import Registry

# Domain exports
from resource_silo.domain.enums import EvictionReason
from resource_silo.domain.exceptions import (
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
from resource_silo.domain.models import CleanupFailure, LiteralValue, ResourceSpec

__version__ = "0.1.0"

__all__ = [
    # Container
    "Registry",
    "ResourceContainer",
    "ContainerControl",
    "ResourceSpec",
    "LiteralValue",
    "CleanupFailure",
    # Generation providers
    "ProcessGeneration",
    "ThreadGeneration",
    "EpochGeneration",
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
]
