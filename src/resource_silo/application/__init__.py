"""
Application layer - Use cases and orchestration.

This layer contains the registry, the container and its control facade.
It depends only on the Domain layer.
"""

from .cache import ResourceCache
from .circular_detector import CircularDependencyDetector
from .container import ResourceContainer
from .control import ContainerControl
from .generation import EpochGeneration, ProcessGeneration, ThreadGeneration
from .injector import ClassInjector
from .registry import Registry
from .spec_builder import build_spec, validate_spec

__all__ = [
    "ResourceContainer",
    "ContainerControl",
    "Registry",
    "ResourceCache",
    "CircularDependencyDetector",
    "ClassInjector",
    "ProcessGeneration",
    "ThreadGeneration",
    "EpochGeneration",
    "build_spec",
    "validate_spec",
]
