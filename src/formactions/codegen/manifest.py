"""Route manifest — the published configuration of a pipeline run.

Written next to the declaration stub after every render so host code and
client tooling can read the registered routes and known loader names
without importing the pipeline::

    {
      "handlers": [{"method": "post", "route": "/login", ...}, ...],
      "serverLoaders": ["profile", "search"]
    }
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from formactions.extract.extractor import write_atomic

if TYPE_CHECKING:
    from pathlib import Path

    from formactions.routes.registry import RouteRegistry


def build_manifest(registry: RouteRegistry) -> dict[str, Any]:
    """Snapshot *registry* as a JSON-compatible dict."""
    return {
        "handlers": [r.to_dict() for r in registry.registrations],
        "serverLoaders": list(registry.list_loader_names()),
    }


def write_manifest(registry: RouteRegistry, path: Path) -> Path:
    """Write the manifest of *registry* to *path*."""
    write_atomic(path, json.dumps(build_manifest(registry), indent=2) + "\n")
    return path
