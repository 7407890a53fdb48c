"""
FastAPI integration module.

Provides helpers and utilities for integrating resource-silo with FastAPI.
"""

from .integration import (
    ContainerMiddleware,
    create_fastapi_dependency,
    create_request_dependency,
    silo_lifespan,
)

__all__ = [
    "create_fastapi_dependency",
    "create_request_dependency",
    "silo_lifespan",
    "ContainerMiddleware",
]
