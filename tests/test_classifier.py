"""Tests for formactions.actions.classifier — routes and export surfaces."""

from __future__ import annotations

from pathlib import Path

import pytest

from formactions._errors import ExtractionError, RouteParseError
from formactions.actions.classifier import (
    ActionRecord,
    classify_action,
    derive_route,
    load_action,
)
from formactions.config import FormActionsConfig

from .conftest import LOGIN, PROFILE, SEARCH, write_action


class TestDeriveRoute:
    """Route derivation from file position under the actions root."""

    def test_simple_file(self, tmp_path: Path) -> None:
        assert derive_route(tmp_path / "login.py", tmp_path) == "login"

    def test_nested_file(self, tmp_path: Path) -> None:
        assert derive_route(tmp_path / "a" / "b" / "name.py", tmp_path) == "a/b/name"

    def test_dotted_stem_keeps_inner_dots(self, tmp_path: Path) -> None:
        assert derive_route(tmp_path / "v1.2.py", tmp_path) == "v1.2"

    def test_outside_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RouteParseError, match="not under"):
            derive_route(Path("/elsewhere/login.py"), tmp_path / "actions")

    def test_wrong_suffix_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RouteParseError):
            derive_route(tmp_path / "README.md", tmp_path)

    def test_custom_suffix(self, tmp_path: Path) -> None:
        assert derive_route(tmp_path / "x.pyi", tmp_path, ".pyi") == "x"


class TestLoadAction:
    """load_action() — parsing and export surfaces."""

    def test_exports_public_bindings(self, tmp_path: Path) -> None:
        path = write_action(tmp_path, "a.py", (
            "import os\n"
            "from x import y as z\n"
            "_private = 1\n"
            "value = 2\n"
            "def handler(request):\n"
            "    inner = 3\n"
            "class Model:\n"
            "    field = 1\n"
        ))
        source = load_action(path)
        assert source.exports == frozenset({"os", "z", "value", "handler", "Model"})

    def test_literal_all_restricts_exports(self, tmp_path: Path) -> None:
        path = write_action(tmp_path, "a.py", (
            '__all__ = ["handler", "missing"]\n'
            "def handler(request): ...\n"
            "def loader(request): ...\n"
        ))
        assert load_action(path).exports == frozenset({"handler"})

    def test_conditional_bindings_count(self, tmp_path: Path) -> None:
        path = write_action(tmp_path, "a.py", (
            "try:\n"
            "    from fast import loader\n"
            "except ImportError:\n"
            "    def loader(request): ...\n"
        ))
        assert "loader" in load_action(path).exports

    def test_syntax_error_raises_extraction_error(self, tmp_path: Path) -> None:
        path = write_action(tmp_path, "bad.py", "def loader(:\n")
        with pytest.raises(ExtractionError, match="bad.py"):
            load_action(path)


class TestClassifyAction:
    """classify_action() — handler / loader flags."""

    def test_handler_only(self, config: FormActionsConfig) -> None:
        path = write_action(config.actions_path, "login.py", LOGIN)
        record = classify_action(path, config).record
        assert record == ActionRecord(route="login", file_path=path, has_handler=True, has_loader=False)

    def test_loader_only(self, config: FormActionsConfig) -> None:
        path = write_action(config.actions_path, "profile.py", PROFILE)
        record = classify_action(path, config).record
        assert record.has_handler is False
        assert record.has_loader is True

    def test_both(self, config: FormActionsConfig) -> None:
        path = write_action(config.actions_path, "search.py", SEARCH)
        record = classify_action(path, config).record
        assert record.has_handler and record.has_loader

    def test_nested_route(self, config: FormActionsConfig) -> None:
        path = write_action(config.actions_path, "account/settings.py", LOGIN)
        assert classify_action(path, config).record.route == "account/settings"

    def test_custom_export_names(self, tmp_path: Path) -> None:
        config = FormActionsConfig(root=tmp_path, handler_export="action", loader_export="load")
        path = write_action(config.actions_path, "x.py", "def action(r): ...\ndef load(r): ...\n")
        record = classify_action(path, config).record
        assert record.has_handler and record.has_loader

    def test_source_is_kept(self, config: FormActionsConfig) -> None:
        path = write_action(config.actions_path, "profile.py", PROFILE)
        classified = classify_action(path, config)
        assert classified.source.text == PROFILE
        assert classified.source.path == path

    def test_record_is_frozen(self, config: FormActionsConfig) -> None:
        path = write_action(config.actions_path, "login.py", LOGIN)
        record = classify_action(path, config).record
        with pytest.raises(AttributeError):
            record.route = "other"  # type: ignore[misc]
