"""Declaration stub — type information for every known loader.

Renders a ``.pyi`` module describing the loaders the pipeline extracted::

    type LoaderUrl = Literal["/__loaders__/profile", "/__loaders__/search"]
    type LoaderName = Literal["profile", "search"]

    type LoaderProfile = dict[str, str]
    type LoaderSearch = list[SearchHit]

    Loaders = TypedDict("Loaders", {"profile": LoaderProfile, "search": LoaderSearch})

Each ``Loader<Name>`` alias is the return type of the generated module's
``handler``: an ``async def`` return annotation as written, with
``Awaitable[T]`` / ``Coroutine[..., T]`` unwrapped for plain functions.
Names the annotation uses are re-imported when the generated module got them
from an absolute import; anything else falls back to ``Any``.

The aliases inline the return type instead of referring to the generated
module's export: ``server/.loader`` is not an importable package, so the
stub only names each generated file in a comment above its alias.

Imports from different loaders share one namespace. When two loaders bind
the same name to different objects (``app.users.Item`` and
``app.orders.Item``), the later one is imported under a numbered alias
(``Item_2``) and its type expression is rewritten to match.

Rendering is pure: the same entries and return types always give the same
text.
"""

from __future__ import annotations

import ast
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from formactions.extract.extractor import GENERATED_BANNER, write_atomic
from formactions.extract.scope import BUILTIN_NAMES, alias_binding

if TYPE_CHECKING:
    from formactions.routes.registry import LoaderEntry

_AWAITABLE_WRAPPERS: frozenset[str] = frozenset({"Awaitable", "Coroutine"})
_WORD = re.compile(r"[0-9A-Za-z]+")

_TYPING_NAMES: tuple[str, ...] = ("Any", "Literal", "Never", "TypedDict")
_TYPING_IMPORT = f"from typing import {', '.join(_TYPING_NAMES)}"
_TYPING_STATEMENTS: frozenset[str] = frozenset(f"from typing import {name}" for name in _TYPING_NAMES)


@dataclass(frozen=True, slots=True)
class ReturnType:
    """Return type of a loader, as stub source.

    Attributes:
        expression: Type expression (e.g., ``dict[str, Profile]``).
        imports: Import statements the expression needs.

    """

    expression: str
    imports: tuple[str, ...] = ()


ANY = ReturnType("Any")


def infer_return_type(text: str, export: str = "handler") -> ReturnType:
    """Infer the return type of *export* in the module source *text*.

    Follows one level of indirection for ``handler = wrap(fetch)`` and
    ``handler = fetch`` so decorated-by-call loaders keep their type.

    """
    try:
        tree = ast.parse(text)
    except SyntaxError:
        return ANY

    functions: dict[str, ast.FunctionDef | ast.AsyncFunctionDef] = {}
    assigned: dict[str, ast.expr] = {}
    imports: dict[str, str] = {}
    for stmt in tree.body:
        if isinstance(stmt, (ast.FunctionDef, ast.AsyncFunctionDef)):
            functions[stmt.name] = stmt
            assigned.pop(stmt.name, None)
        elif isinstance(stmt, ast.Assign) and len(stmt.targets) == 1 and isinstance(stmt.targets[0], ast.Name):
            assigned[stmt.targets[0].id] = stmt.value
            functions.pop(stmt.targets[0].id, None)
        elif isinstance(stmt, ast.Import):
            for alias in stmt.names:
                imports[alias_binding(alias)] = ast.unparse(ast.Import(names=[alias]))
        elif isinstance(stmt, ast.ImportFrom) and stmt.level == 0 and stmt.module != "__future__":
            for alias in stmt.names:
                if alias.name != "*":
                    imports[alias_binding(alias)] = ast.unparse(
                        ast.ImportFrom(module=stmt.module, names=[alias], level=0)
                    )

    function = functions.get(export)
    if function is None and export in assigned:
        value = assigned[export]
        if isinstance(value, ast.Call) and value.args:
            value = value.args[0]
        if isinstance(value, ast.Name):
            function = functions.get(value.id)
    if function is None or function.returns is None:
        return ANY

    annotation = _as_expression(function.returns)
    if annotation is None:
        return ANY
    if isinstance(function, ast.FunctionDef):
        annotation = _unwrap_awaitable(annotation)

    needed: set[str] = set()
    for node in ast.walk(annotation):
        if isinstance(node, ast.Name):
            if node.id in imports:
                needed.add(imports[node.id])
            elif node.id not in BUILTIN_NAMES:
                return ANY
    return ReturnType(expression=ast.unparse(annotation), imports=tuple(sorted(needed)))


def _as_expression(node: ast.expr) -> ast.expr | None:
    """Parse string annotations; pass other expressions through."""
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        try:
            return ast.parse(node.value, mode="eval").body
        except SyntaxError:
            return None
    return node


def _unwrap_awaitable(node: ast.expr) -> ast.expr:
    if not isinstance(node, ast.Subscript):
        return node
    base = node.value
    name = base.attr if isinstance(base, ast.Attribute) else getattr(base, "id", None)
    if name not in _AWAITABLE_WRAPPERS:
        return node
    inner = node.slice
    if isinstance(inner, ast.Tuple) and inner.elts:
        return inner.elts[-1]
    return inner


def alias_name(loader_name: str) -> str:
    """``account/profile`` -> ``LoaderAccountProfile``."""
    words = _WORD.findall(loader_name)
    return "Loader" + "".join(w[:1].upper() + w[1:] for w in words)


def render_declarations(
    entries: Sequence[LoaderEntry],
    return_types: Mapping[str, ReturnType],
) -> str:
    """Render the declaration stub for *entries* (in the given order).

    Args:
        entries: Known loaders, in registration order.
        return_types: Return type per loader name; missing names become ``Any``.

    """
    aliases: dict[str, str] = {}
    used: set[str] = set()
    for entry in entries:
        candidate = base = alias_name(entry.name)
        counter = 2
        while candidate in used:
            candidate = f"{base}{counter}"
            counter += 1
        used.add(candidate)
        aliases[entry.name] = candidate

    # Stub-level names, each owned by the statement that binds it
    owners: dict[str, str] = {name: "" for name in BUILTIN_NAMES}
    owners.update({name: f"from typing import {name}" for name in _TYPING_NAMES})
    owners.update({name: "" for name in (*used, "LoaderUrl", "LoaderName", "Loaders")})
    resolved = {
        entry.name: _claim_imports(return_types.get(entry.name, ANY), owners)
        for entry in entries
    }
    imports = sorted({
        statement
        for return_type in resolved.values()
        for statement in return_type.imports
        if statement not in _TYPING_STATEMENTS
    })

    lines = [
        GENERATED_BANNER.rstrip("\n"),
        "",
        _TYPING_IMPORT,
    ]
    if imports:
        lines.append("")
        lines.extend(imports)
    lines.append("")
    lines.append(f"type LoaderUrl = {_literal_union(e.route_url for e in entries)}")
    lines.append("")
    lines.append(f"type LoaderName = {_literal_union(e.name for e in entries)}")
    lines.append("")
    for entry in entries:
        lines.append(f"# {entry.generated_file_path.as_posix()}")
        lines.append(f"type {aliases[entry.name]} = {resolved[entry.name].expression}")
    if entries:
        lines.append("")
        lines.append('Loaders = TypedDict("Loaders", {')
        lines.extend(f"    {_quote(e.name)}: {aliases[e.name]}," for e in entries)
        lines.append("})")
    else:
        lines.append('Loaders = TypedDict("Loaders", {})')
    lines.append("")
    return "\n".join(lines)


def write_declarations(
    entries: Sequence[LoaderEntry],
    path: Path,
    *,
    export: str = "handler",
) -> Path:
    """Infer return types from the generated loaders and write the stub to *path*.

    Raises:
        OSError: If a generated loader cannot be read or the stub cannot be written.

    """
    return_types = {
        entry.name: infer_return_type(
            entry.generated_file_path.read_text(encoding="utf-8"), export,
        )
        for entry in entries
    }
    write_atomic(path, render_declarations(entries, return_types))
    return path


def _literal_union(values: Iterable[str]) -> str:
    quoted = [_quote(v) for v in values]
    if not quoted:
        return "Never"
    return f"Literal[{', '.join(quoted)}]"


def _quote(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _claim_imports(return_type: ReturnType, owners: dict[str, str]) -> ReturnType:
    """Bind the imports of *return_type* in the shared stub namespace.

    *owners* maps each bound name to the import statement that binds it and
    is updated in place. A name already bound by a different statement is
    re-imported under ``<name>_<n>`` and the expression is rewritten. Dotted
    ``import a.b`` cannot be aliased that way; such a loader becomes ``Any``.

    """
    renames: dict[str, str] = {}
    statements: list[str] = []
    for statement in return_type.imports:
        node = ast.parse(statement).body[0]
        if not isinstance(node, (ast.Import, ast.ImportFrom)) or len(node.names) != 1:
            return ANY
        alias = node.names[0]
        name = alias_binding(alias)
        if owners.get(name, statement) == statement:
            owners[name] = statement
            statements.append(statement)
            continue
        if alias.asname is None and "." in alias.name:
            return ANY
        counter = 2
        while True:
            candidate = f"{name}_{counter}"
            alias.asname = None if candidate == alias.name else candidate
            renamed = ast.unparse(node)
            if owners.get(candidate, renamed) == renamed:
                break
            counter += 1
        owners[candidate] = renamed
        statements.append(renamed)
        renames[name] = candidate

    if not renames:
        return ReturnType(return_type.expression, tuple(statements))
    tree = ast.parse(return_type.expression, mode="eval")
    for sub in ast.walk(tree):
        if isinstance(sub, ast.Name) and sub.id in renames:
            sub.id = renames[sub.id]
    return ReturnType(ast.unparse(tree.body), tuple(sorted(statements)))
