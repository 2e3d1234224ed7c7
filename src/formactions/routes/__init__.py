"""Route registration for actions and their extracted loaders.

Public API::

    from formactions.routes import RouteRegistry

    registry = RouteRegistry()
    registry.register_handler("login", Path("server/actions/login.py"))
    registry.list_loader_names()
"""

from formactions.routes.registry import (
    DEFAULT_LOADER_PREFIX,
    LoaderEntry,
    RouteRegistration,
    RouteRegistry,
    handler_route_url,
    loader_route_url,
)

__all__ = [
    "DEFAULT_LOADER_PREFIX",
    "LoaderEntry",
    "RouteRegistration",
    "RouteRegistry",
    "handler_route_url",
    "loader_route_url",
]
