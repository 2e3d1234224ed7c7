"""Action classification — parse an action file's export surface.

An action file is a Python module under the actions root. Its route is the
file path relative to that root with the suffix stripped:

    server/actions/login.py            -> login
    server/actions/account/profile.py  -> account/profile

The module's export surface is the set of public names bound at module
level (restricted to ``__all__`` when the module defines one literally).
Two names matter:

    handler  — primary export, registered as POST /<route>
    loader   — loader export, extracted and registered as GET /__loaders__/<route>
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from formactions._errors import ExtractionError, RouteParseError
from formactions.extract.scope import module_bindings

if TYPE_CHECKING:
    from formactions.config import FormActionsConfig


@dataclass(frozen=True, slots=True)
class ActionRecord:
    """Classification result for one action file.

    Attributes:
        route: Route identifier derived from the file path (``a/b/name``).
        file_path: Absolute path to the action file.
        has_handler: Whether the module exports the primary handler.
        has_loader: Whether the module exports a loader.

    """

    route: str
    file_path: Path
    has_handler: bool
    has_loader: bool


@dataclass(frozen=True, slots=True)
class ActionSource:
    """A parsed action module.

    Attributes:
        path: Absolute path to the source file.
        text: Source text as read from disk.
        tree: Parsed module.
        exports: Names forming the module's export surface.

    """

    path: Path
    text: str
    tree: ast.Module
    exports: frozenset[str]


@dataclass(frozen=True, slots=True)
class ClassifiedAction:
    """An ActionRecord together with the source it was derived from."""

    record: ActionRecord
    source: ActionSource


def derive_route(path: Path, actions_root: Path, suffix: str = ".py") -> str:
    """Derive the action route from *path*'s position under *actions_root*.

    ``actions/login.py``        -> ``login``
    ``actions/a/b/name.py``     -> ``a/b/name``

    Raises:
        RouteParseError: If *path* is not a ``<suffix>`` file below *actions_root*.

    """
    try:
        relative = Path(path).relative_to(actions_root)
    except ValueError:
        msg = f"Could not parse action route from {path}: not under {actions_root}"
        raise RouteParseError(msg) from None

    if relative.suffix != suffix or not relative.stem:
        msg = f"Could not parse action route from {path}: expected a '{suffix}' file"
        raise RouteParseError(msg)

    return relative.with_suffix("").as_posix()


def load_action(path: Path) -> ActionSource:
    """Read and parse an action file.

    Raises:
        ExtractionError: If the file is not valid Python.
        OSError: If the file cannot be read.

    """
    text = path.read_text(encoding="utf-8")
    try:
        tree = ast.parse(text, filename=str(path))
    except SyntaxError as exc:
        msg = f"Could not parse action {path}: {exc.msg} (line {exc.lineno})"
        raise ExtractionError(msg) from exc
    return ActionSource(path=path, text=text, tree=tree, exports=_export_surface(tree))


def classify_action(path: Path, config: FormActionsConfig) -> ClassifiedAction:
    """Derive the route of *path* and classify its exports.

    Raises:
        RouteParseError: If the route cannot be derived.
        ExtractionError: If the file is not valid Python.

    """
    route = derive_route(path, config.actions_path, config.source_suffix)
    source = load_action(path)
    record = ActionRecord(
        route=route,
        file_path=path,
        has_handler=config.handler_export in source.exports,
        has_loader=config.loader_export in source.exports,
    )
    return ClassifiedAction(record=record, source=source)


def _export_surface(tree: ast.Module) -> frozenset[str]:
    """Public module-level names, filtered by a literal ``__all__`` if present."""
    bound = module_bindings(tree)
    declared = _literal_all(tree)
    if declared is not None:
        return frozenset(name for name in declared if name in bound)
    return frozenset(name for name in bound if not name.startswith("_"))


def _literal_all(tree: ast.Module) -> list[str] | None:
    """Return the names of a literal ``__all__ = [...]``, or None."""
    names: list[str] | None = None
    for stmt in tree.body:
        if isinstance(stmt, ast.Assign):
            targets = stmt.targets
            value = stmt.value
        elif isinstance(stmt, ast.AnnAssign) and stmt.value is not None:
            targets = [stmt.target]
            value = stmt.value
        else:
            continue
        if not any(isinstance(t, ast.Name) and t.id == "__all__" for t in targets):
            continue
        if isinstance(value, (ast.List, ast.Tuple)) and all(
            isinstance(elt, ast.Constant) and isinstance(elt.value, str)
            for elt in value.elts
        ):
            names = [elt.value for elt in value.elts]  # type: ignore[attr-defined]
        else:
            names = None
    return names
