from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from resource_silo.application import ResourceContainer


def create_fastapi_dependency(
    container: ResourceContainer, name: str, argument: Optional[str] = None
) -> Callable[[], Any]:
    """Create a FastAPI Depends() callable that fetches a resource.

    The value is cached by the container like any other ``get`` call,
    unless the resource is declared with ``ignore_cache``.

    Args:
        container: The container to fetch the resource from.
        name: The resource name.
        argument: Optional resource argument.

    Returns:
        A callable that FastAPI can use with Depends().

    Example:
        >>> get_dbh = create_fastapi_dependency(container, "dbh")
        >>>
        >>> @app.get("/users")
        >>> async def list_users(dbh=Depends(get_dbh)):
        ...     return dbh.execute("SELECT name FROM users").fetchall()
    """

    def dependency() -> Any:
        """Fetch the resource from the container."""
        return container.get(name, argument)

    return dependency


def create_request_dependency(name: str, argument: Optional[str] = None) -> Callable[[Request], Any]:
    """Create a FastAPI dependency fetching a resource from the request's container.

    Requires the ContainerMiddleware to be installed.

    Args:
        name: The resource name.
        argument: Optional resource argument.

    Returns:
        A callable that resolves from ``request.state.silo``.

    Example:
        >>> app.add_middleware(ContainerMiddleware, container=container)
        >>> get_redis = create_request_dependency("redis", "session")
    """

    def request_dependency(request: Request) -> Any:
        """Fetch the resource from the container attached to the request."""
        if not hasattr(request.state, "silo"):
            raise RuntimeError(
                "Request does not have a resource container. Did you forget to add ContainerMiddleware?"
            )
        container: ResourceContainer = request.state.silo
        return container.get(name, argument)

    return request_dependency


class ContainerMiddleware(BaseHTTPMiddleware):
    """Middleware exposing a resource container as ``request.state.silo``.

    Attributes:
        container: The container attached to every request.

    Example:
        >>> app = FastAPI()
        >>> app.add_middleware(ContainerMiddleware, container=container)
        >>>
        >>> @app.get("/")
        >>> async def root(request: Request):
        ...     return {"app": request.state.silo.get("app_name")}
    """

    def __init__(self, app: FastAPI, container: ResourceContainer):
        """Initialize the middleware.

        Args:
            app: The FastAPI/Starlette application.
            container: The container to expose.
        """
        super().__init__(app)
        self.container = container

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        """Attach the container to the request and execute the endpoint."""
        request.state.silo = self.container
        return await call_next(request)


def silo_lifespan(
    container: ResourceContainer, preload: bool = True
) -> Callable[[FastAPI], Any]:
    """Build a FastAPI ``lifespan`` handler managing the container.

    On startup the registry is self-checked and ``preload`` resources are
    initialized, so a broken database connection fails the deployment
    rather than the first request. On shutdown every cached resource is
    torn down in cleanup order.

    Args:
        container: The container to manage.
        preload: Whether to preload on startup.

    Example:
        >>> app = FastAPI(lifespan=silo_lifespan(container))
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if preload:
            container.ctl().preload()
        try:
            yield
        finally:
            container.ctl().cleanup()

    return lifespan
