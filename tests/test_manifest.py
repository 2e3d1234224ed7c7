"""Tests for formactions.codegen.manifest — the published route manifest."""

from __future__ import annotations

import json
from pathlib import Path

from formactions.codegen.manifest import build_manifest, write_manifest
from formactions.routes.registry import RouteRegistry


def populated() -> RouteRegistry:
    registry = RouteRegistry()
    registry.register_handler("login", Path("/src/login.py"))
    registry.register_loader("profile", Path("/gen/profile.py"), Path("/src/profile.py"))
    return registry


class TestManifest:
    """build_manifest() / write_manifest()."""

    def test_build(self) -> None:
        manifest = build_manifest(populated())
        assert [h["route"] for h in manifest["handlers"]] == ["/login", "/__loaders__/profile"]
        assert manifest["serverLoaders"] == ["profile"]

    def test_empty_registry(self) -> None:
        assert build_manifest(RouteRegistry()) == {"handlers": [], "serverLoaders": []}

    def test_write(self, tmp_path: Path) -> None:
        target = tmp_path / "build" / "form_actions.json"
        write_manifest(populated(), target)
        data = json.loads(target.read_text(encoding="utf-8"))
        assert data == build_manifest(populated())

    def test_removed_loader_keeps_handler_entry(self) -> None:
        registry = populated()
        registry.remove_loader("profile")
        manifest = build_manifest(registry)
        assert manifest["serverLoaders"] == []
        assert len(manifest["handlers"]) == 2
