"""Route registry — in-memory map of action routes and extracted loaders.

Holds three pieces of state that must stay consistent:

- ``registrations``: append-only list of route registrations handed to the
  host (POST handlers and GET loaders), in insertion order,
- the loader entry map, keyed by action route,
- the ordered list of known loader names, published to downstream config.

The name list and the entry map always hold the same keys. Registrations
are never removed; a loader that disappears keeps its GET registration, and
coming back does not append a second one.

Not thread-safe: the pipeline mutates it from a single task.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from formactions._types import ActionRoute, RouteMethod, RoutePath

DEFAULT_LOADER_PREFIX = "__loaders__"


@dataclass(frozen=True, slots=True)
class RouteRegistration:
    """A route handed to the host framework.

    Attributes:
        method: HTTP method (``"get"`` or ``"post"``).
        path: URL path (e.g., ``/login``, ``/__loaders__/profile``).
        backing_file_path: File implementing the route.
        lazy: Whether the host should import the file on first request.

    """

    method: RouteMethod
    path: RoutePath
    backing_file_path: Path
    lazy: bool

    def to_dict(self) -> dict[str, object]:
        """JSON-friendly representation."""
        return {
            "method": self.method,
            "route": self.path,
            "handler": str(self.backing_file_path),
            "lazy": self.lazy,
        }


@dataclass(frozen=True, slots=True)
class LoaderEntry:
    """One extracted loader.

    Attributes:
        name: Loader name (equal to the action route).
        source_file_path: Action file the loader was extracted from.
        generated_file_path: Generated module exposing the loader.
        route_url: GET URL of the loader.

    """

    name: str
    source_file_path: Path
    generated_file_path: Path
    route_url: str


def handler_route_url(route: ActionRoute) -> RoutePath:
    """``login`` -> ``/login``."""
    return f"/{route}"


def loader_route_url(route: ActionRoute, prefix: str = DEFAULT_LOADER_PREFIX) -> RoutePath:
    """``profile`` -> ``/__loaders__/profile``."""
    return f"/{prefix}/{route}"


class RouteRegistry:
    """Registered handlers and loaders of one pipeline instance.

    Args:
        loader_prefix: URL prefix of loader GET routes.

    """

    __slots__ = ("_handler_files", "_loader_prefix", "_loader_registrations", "_loaders", "_registrations")

    def __init__(self, loader_prefix: str = DEFAULT_LOADER_PREFIX) -> None:
        self._loader_prefix = loader_prefix
        self._registrations: list[RouteRegistration] = []
        self._handler_files: set[Path] = set()
        self._loader_registrations: dict[str, RouteRegistration] = {}
        # Insertion-ordered; its keys are the published loader names
        self._loaders: dict[str, LoaderEntry] = {}

    @property
    def registrations(self) -> tuple[RouteRegistration, ...]:
        """All registrations, in insertion order."""
        return tuple(self._registrations)

    def register_handler(self, route: ActionRoute, file_path: Path) -> RouteRegistration:
        """Register the primary handler of an action as ``POST /<route>``."""
        registration = RouteRegistration(
            method="post",
            path=handler_route_url(route),
            backing_file_path=file_path,
            lazy=True,
        )
        self._registrations.append(registration)
        self._handler_files.add(file_path)
        return registration

    def has_handler_for(self, file_path: Path) -> bool:
        """Whether a handler registration is backed by *file_path*."""
        return file_path in self._handler_files

    def register_loader(self, route: ActionRoute, generated_path: Path, source_path: Path) -> LoaderEntry:
        """Register (or refresh) the loader of *route*.

        A new loader is appended to the name list; an existing one is
        overwritten in place and keeps its position.

        """
        url = loader_route_url(route, self._loader_prefix)
        entry = LoaderEntry(
            name=route,
            source_file_path=source_path,
            generated_file_path=generated_path,
            route_url=url,
        )
        self._loaders[route] = entry
        if route not in self._loader_registrations:
            registration = RouteRegistration(
                method="get", path=url, backing_file_path=generated_path, lazy=True,
            )
            self._loader_registrations[route] = registration
            self._registrations.append(registration)
        return entry

    def remove_loader(self, route: ActionRoute) -> bool:
        """Forget the loader of *route*. Returns True if one was registered."""
        return self._loaders.pop(route, None) is not None

    def get_loader(self, route: ActionRoute) -> LoaderEntry | None:
        return self._loaders.get(route)

    def has_loader(self, route: ActionRoute) -> bool:
        return route in self._loaders

    def list_loader_names(self) -> tuple[str, ...]:
        """Known loader names, in registration order."""
        return tuple(self._loaders)

    def entries(self) -> tuple[LoaderEntry, ...]:
        """Known loader entries, in registration order."""
        return tuple(self._loaders.values())

    def __len__(self) -> int:
        return len(self._registrations)
