"""Tests for formactions.codegen.declarations — the loader type stub."""

from __future__ import annotations

import ast
from pathlib import Path

import pytest

from formactions.codegen.declarations import (
    ANY,
    ReturnType,
    alias_name,
    infer_return_type,
    render_declarations,
    write_declarations,
)
from formactions.extract.extractor import GENERATED_BANNER
from formactions.routes.registry import LoaderEntry


def entry(name: str, root: Path = Path("/gen")) -> LoaderEntry:
    return LoaderEntry(
        name=name,
        source_file_path=Path(f"/src/{name}.py"),
        generated_file_path=root / f"{name}.py",
        route_url=f"/__loaders__/{name}",
    )


# ---------------------------------------------------------------------------
# Return type inference
# ---------------------------------------------------------------------------


class TestInferReturnType:
    """infer_return_type() over generated loader modules."""

    def test_async_annotation_as_written(self) -> None:
        rt = infer_return_type("async def handler(r) -> dict[str, int]:\n    ...\n")
        assert rt == ReturnType("dict[str, int]")

    def test_missing_annotation_is_any(self) -> None:
        assert infer_return_type("async def handler(r):\n    ...\n") == ANY

    def test_missing_export_is_any(self) -> None:
        assert infer_return_type("def other(r) -> int:\n    ...\n") == ANY

    def test_awaitable_unwrapped_for_sync_def(self) -> None:
        text = "from typing import Awaitable\n\ndef handler(r) -> Awaitable[int]:\n    ...\n"
        assert infer_return_type(text) == ReturnType("int")

    def test_coroutine_unwrapped(self) -> None:
        text = "import typing\n\ndef handler(r) -> typing.Coroutine[None, None, str]:\n    ...\n"
        assert infer_return_type(text) == ReturnType("str")

    def test_imported_names_are_reimported(self) -> None:
        text = "from app.models import User\n\nasync def handler(r) -> list[User]:\n    ...\n"
        assert infer_return_type(text) == ReturnType(
            "list[User]", ("from app.models import User",),
        )

    def test_local_class_is_any(self) -> None:
        text = "class Profile:\n    pass\n\nasync def handler(r) -> Profile:\n    ...\n"
        assert infer_return_type(text) == ANY

    def test_relative_import_is_any(self) -> None:
        text = "from .models import User\n\nasync def handler(r) -> User:\n    ...\n"
        assert infer_return_type(text) == ANY

    def test_string_annotation_parsed(self) -> None:
        assert infer_return_type("async def handler(r) -> 'list[int]':\n    ...\n") == ReturnType("list[int]")

    def test_wrapped_assignment_followed(self) -> None:
        text = (
            "from app.cache import cached\n\n"
            "async def fetch(r) -> bytes:\n    ...\n\n"
            "handler = cached(fetch)\n"
        )
        assert infer_return_type(text) == ReturnType("bytes")

    def test_syntax_error_is_any(self) -> None:
        assert infer_return_type("def handler(:\n") == ANY


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


class TestAliasName:
    """alias_name()."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("profile", "LoaderProfile"),
            ("account/profile", "LoaderAccountProfile"),
            ("user-settings", "LoaderUserSettings"),
            ("v2_search", "LoaderV2Search"),
        ],
    )
    def test_alias(self, name: str, expected: str) -> None:
        assert alias_name(name) == expected


class TestRenderDeclarations:
    """render_declarations() output."""

    def test_two_loaders(self) -> None:
        text = render_declarations(
            [entry("profile"), entry("search")],
            {"search": ReturnType("list[str]")},
        )
        assert text.startswith(GENERATED_BANNER)
        assert 'type LoaderUrl = Literal["/__loaders__/profile", "/__loaders__/search"]' in text
        assert 'type LoaderName = Literal["profile", "search"]' in text
        assert "type LoaderProfile = Any" in text
        assert "type LoaderSearch = list[str]" in text
        assert '    "profile": LoaderProfile,' in text
        assert '    "search": LoaderSearch,' in text

    def test_generated_path_comment(self) -> None:
        text = render_declarations([entry("profile")], {})
        assert "# /gen/profile.py\ntype LoaderProfile = Any" in text

    def test_empty_set_renders_never(self) -> None:
        text = render_declarations([], {})
        assert "type LoaderUrl = Never" in text
        assert "type LoaderName = Never" in text
        assert 'Loaders = TypedDict("Loaders", {})' in text

    def test_imports_are_sorted_and_deduplicated(self) -> None:
        rt = ReturnType("User", ("from app.models import User",))
        text = render_declarations(
            [entry("a"), entry("b")],
            {"a": rt, "b": ReturnType("Item", ("from app.items import Item",))},
        )
        first = text.index("from app.items import Item")
        second = text.index("from app.models import User")
        assert first < second
        assert text.count("from app.models import User") == 1

    def test_alias_collisions_get_suffix(self) -> None:
        text = render_declarations([entry("a-b"), entry("a_b")], {})
        assert "type LoaderAB = Any" in text
        assert "type LoaderAB2 = Any" in text

    def test_order_follows_entries(self) -> None:
        text = render_declarations([entry("zeta"), entry("alpha")], {})
        assert 'Literal["zeta", "alpha"]' in text

    def test_idempotent(self) -> None:
        entries = [entry("profile"), entry("search")]
        assert render_declarations(entries, {}) == render_declarations(entries, {})

    @pytest.mark.parametrize("names", [[], ["profile"], ["profile", "account/settings"]])
    def test_output_is_valid_python(self, names: list[str]) -> None:
        ast.parse(render_declarations([entry(n) for n in names], {}))


class TestImportClashes:
    """Loaders importing different objects under the same name."""

    def test_second_binding_is_aliased(self) -> None:
        text = render_declarations(
            [entry("users"), entry("orders")],
            {
                "users": ReturnType("list[Item]", ("from app.users import Item",)),
                "orders": ReturnType("list[Item]", ("from app.orders import Item",)),
            },
        )
        assert "from app.users import Item\n" in text
        assert "from app.orders import Item as Item_2\n" in text
        assert "type LoaderUsers = list[Item]" in text
        assert "type LoaderOrders = list[Item_2]" in text
        ast.parse(text)

    def test_identical_import_is_shared(self) -> None:
        rt = ReturnType("Item", ("from app.users import Item",))
        text = render_declarations([entry("a"), entry("b")], {"a": rt, "b": rt})
        assert "Item_2" not in text
        assert "type LoaderA = Item" in text
        assert "type LoaderB = Item" in text

    def test_typing_import_not_repeated(self) -> None:
        text = render_declarations(
            [entry("a")], {"a": ReturnType("Any", ("from typing import Any",))},
        )
        assert text.count("import Any") == 1
        assert "type LoaderA = Any" in text

    def test_name_clashing_with_stub_alias(self) -> None:
        text = render_declarations(
            [entry("profile")],
            {"profile": ReturnType("LoaderProfile", ("from app.types import LoaderProfile",))},
        )
        assert "from app.types import LoaderProfile as LoaderProfile_2" in text
        assert "type LoaderProfile = LoaderProfile_2" in text

    def test_dotted_module_clash_falls_back_to_any(self) -> None:
        text = render_declarations(
            [entry("a"), entry("b")],
            {
                "a": ReturnType("app.Item", ("from pkg import app",)),
                "b": ReturnType("app.models.Item", ("import app.models",)),
            },
        )
        assert "from pkg import app" in text
        assert "import app.models" not in text
        assert "type LoaderA = app.Item" in text
        assert "type LoaderB = Any" in text


class TestWriteDeclarations:
    """write_declarations() reads generated loaders and writes the stub."""

    def test_writes_stub(self, tmp_path: Path) -> None:
        gen = tmp_path / "gen"
        gen.mkdir()
        (gen / "profile.py").write_text("async def handler(r) -> dict[str, str]:\n    ...\n")
        target = tmp_path / "types" / "loaders.pyi"
        out = write_declarations([entry("profile", gen)], target)
        assert out == target
        assert "type LoaderProfile = dict[str, str]" in target.read_text(encoding="utf-8")

    def test_missing_generated_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            write_declarations([entry("ghost", tmp_path)], tmp_path / "out.pyi")
