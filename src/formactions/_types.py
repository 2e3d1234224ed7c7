"""Shared type definitions for formactions."""

from typing import Literal, TypeAlias

# Action route identifier (e.g., "login", "account/profile")
ActionRoute: TypeAlias = str

# Route URL path (e.g., "/login", "/__loaders__/profile")
RoutePath: TypeAlias = str

# HTTP method of a route registration
RouteMethod: TypeAlias = Literal["get", "post"]

# Kind of filesystem change delivered to the incremental updater
FileEventKind: TypeAlias = Literal["add", "change", "delete"]

# Mode of operation
RunMode: TypeAlias = Literal["scan", "watch"]
