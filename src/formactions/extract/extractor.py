"""Loader extraction — isolate one export of an action module.

Given an action module that binds ``loader``, produce a new module where:

1. ``loader`` is renamed to the primary export name (``handler``) at every
   module-level binding and reference,
2. the original ``handler`` and everything else not reachable from the
   promoted export is dropped,
3. retained ``import`` statements are pruned down to the names still used.

Reachability works on top-level statements. A statement is kept when it
binds a name the kept code reads, or when it mutates such a name in place
(``cache.maxsize = 10``, ``registry.add(...)``). ``from __future__`` imports
are always kept.

Retained statements are copied from the original text, with renames applied
as position edits, so their formatting and comments survive untouched. Only
pruned or renamed import statements are reprinted (via ``ast.unparse``).
"""

from __future__ import annotations

import ast
import io
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from formactions._errors import ExtractionError
from formactions.extract.scope import (
    BUILTIN_NAMES,
    StatementNames,
    alias_binding,
    analyze_statement,
    char_col,
)

if TYPE_CHECKING:
    from formactions.actions.classifier import ActionSource

GENERATED_BANNER = (
    "# This file is auto-generated by formactions. Do not modify it manually!\n"
)

# Header comments that belong to the file, never to its first statement
_FILE_HEADER = re.compile(r"^#!|^#.*coding[:=]")

# Blank lines kept between two retained statements
_MAX_GAP = 2


@dataclass(frozen=True, slots=True)
class _Statement:
    """A top-level statement with its name analysis and line span."""

    index: int
    node: ast.stmt
    names: StatementNames
    first_line: int
    last_line: int


def extract_loader(
    source: ActionSource,
    *,
    primary: str = "handler",
    loader: str = "loader",
) -> str:
    """Return the source of a module exposing only *loader*, renamed to *primary*.

    The result does not include the generated-file banner.

    Raises:
        ExtractionError: If *source* does not bind *loader*, or if the code
            kept alongside the loader uses *primary* (the rename would
            collide with it).

    """
    lines = source_lines(source.text)
    statements = [
        _Statement(
            index=i,
            node=stmt,
            names=analyze_statement(stmt, lines),
            first_line=_first_line(stmt),
            last_line=stmt.end_lineno or stmt.lineno,
        )
        for i, stmt in enumerate(source.tree.body)
    ]

    kept, needed = _reachable(statements, loader)
    if not kept:
        msg = f"{source.path}: no module-level '{loader}' to extract"
        raise ExtractionError(msg)

    if primary != loader:
        clashing = [
            s for s in statements
            if s.index in kept and (primary in s.names.referenced or primary in s.names.bound)
        ]
        if clashing:
            line = clashing[0].node.lineno
            msg = (
                f"{source.path}:{line}: '{loader}' cannot be promoted to '{primary}' "
                f"because the code it depends on also uses '{primary}'"
            )
            raise ExtractionError(msg)

    chunks: list[str] = []
    previous: _Statement | None = None
    for i, stmt in enumerate(statements):
        if stmt.index not in kept:
            continue
        neighbours = (
            statements[i - 1] if i > 0 else None,
            statements[i + 1] if i + 1 < len(statements) else None,
        )
        text, start_line = _render(stmt, lines, neighbours, needed, loader, primary)
        if previous is not None:
            gap = min(_blank_lines_above(lines, start_line, previous.last_line), _MAX_GAP)
            chunks.append("\n" * gap)
        chunks.append(text)
        previous = stmt

    return "".join(chunks)


def write_loader(
    source: ActionSource,
    route: str,
    loader_dir: Path,
    *,
    primary: str = "handler",
    loader: str = "loader",
    suffix: str = ".py",
) -> Path:
    """Extract the loader of *source* and write it to ``<loader_dir>/<route><suffix>``.

    The file is prefixed with :data:`GENERATED_BANNER` and replaced
    atomically, overwriting any previous version.

    Returns:
        Absolute path of the generated file.

    Raises:
        ExtractionError: If extraction fails.
        OSError: If the file cannot be written.

    """
    code = extract_loader(source, primary=primary, loader=loader)
    target = (loader_dir / f"{route}{suffix}").absolute()
    write_atomic(target, GENERATED_BANNER + code)
    return target


def source_lines(text: str) -> list[str]:
    """Split *text* into lines the way ``ast`` numbers them.

    Only ``\\n``, ``\\r\\n`` and ``\\r`` end a line. ``str.splitlines`` also
    breaks on form feeds and Unicode separators, which would shift every
    line after them.

    """
    return io.StringIO(text, newline="").readlines()


def write_atomic(target: Path, content: str) -> None:
    """Write *content* to *target* through a temp file and ``os.replace``."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as fh:
            fh.write(content)
        os.replace(tmp_name, target)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# Reachability
# ---------------------------------------------------------------------------


def _reachable(statements: list[_Statement], root: str) -> tuple[set[int], set[str]]:
    """Statement indices reachable from the bindings of *root*, and the names they need."""
    binders: dict[str, list[int]] = {}
    mutators: dict[str, list[int]] = {}
    star_imports: list[int] = []
    for stmt in statements:
        if _is_future_import(stmt.node):
            continue
        for name in stmt.names.bound:
            binders.setdefault(name, []).append(stmt.index)
        if not stmt.names.bound:
            target = _mutated_name(stmt.node)
            if target is not None:
                mutators.setdefault(target, []).append(stmt.index)
        if isinstance(stmt.node, ast.ImportFrom) and any(a.name == "*" for a in stmt.node.names):
            star_imports.append(stmt.index)

    by_index = {s.index: s for s in statements}
    kept: set[int] = set()
    needed: set[str] = set()
    pending = [root]
    while pending:
        name = pending.pop()
        if name in needed:
            continue
        needed.add(name)
        candidates = binders.get(name, []) + mutators.get(name, [])
        if not candidates and name not in BUILTIN_NAMES and name != root:
            candidates = star_imports
        for index in candidates:
            if index in kept:
                continue
            kept.add(index)
            pending.extend(by_index[index].names.referenced)

    if not binders.get(root):
        return set(), needed

    kept.update(s.index for s in statements if _is_future_import(s.node))
    return kept, needed


def _is_future_import(node: ast.stmt) -> bool:
    return isinstance(node, ast.ImportFrom) and node.module == "__future__"


def _mutated_name(node: ast.stmt) -> str | None:
    """The module name a binding-free statement mutates in place, if any."""
    if isinstance(node, ast.Assign):
        targets = node.targets
    elif isinstance(node, (ast.AugAssign, ast.AnnAssign)):
        targets = [node.target]
    elif isinstance(node, ast.Expr) and isinstance(node.value, ast.Call):
        targets = [node.value.func] if isinstance(node.value.func, ast.Attribute) else []
    else:
        return None
    for target in targets:
        base = target
        while isinstance(base, (ast.Attribute, ast.Subscript)):
            base = base.value
        if base is not target and isinstance(base, ast.Name):
            return base.id
    return None


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _first_line(node: ast.stmt) -> int:
    decorators = getattr(node, "decorator_list", None)
    if decorators:
        return min(d.lineno for d in decorators)
    return node.lineno


def _render(
    stmt: _Statement,
    lines: list[str],
    neighbours: tuple[_Statement | None, _Statement | None],
    needed: set[str],
    loader: str,
    primary: str,
) -> tuple[str, int]:
    """Source text of one retained statement and the line it starts on."""
    before, after = neighbours
    owns_lines = (
        (before is None or before.last_line < stmt.first_line)
        and (after is None or after.first_line > stmt.last_line)
    )

    reprinted = _reprinted_import(stmt.node, needed, loader, primary)

    if not owns_lines:
        # Shares a line with another statement (``a = 1; b = 2``): slice exactly
        if reprinted is not None:
            return reprinted + "\n", stmt.first_line
        return _slice_statement(stmt, lines, loader, primary) + "\n", stmt.first_line

    start = _leading_comment_start(lines, stmt.first_line, before.last_line if before else 0)
    comments = "".join(lines[start - 1:stmt.first_line - 1])
    if reprinted is not None:
        return comments + reprinted + "\n", start

    body = _apply_renames(lines[stmt.first_line - 1:stmt.last_line], stmt, loader, primary)
    text = comments + "".join(body)
    if not text.endswith("\n"):
        text += "\n"
    return text, start


def _slice_statement(stmt: _Statement, lines: list[str], loader: str, primary: str) -> str:
    node = stmt.node
    segment = lines[stmt.first_line - 1:stmt.last_line]
    start_col = char_col(segment[0], node.col_offset)
    end_col = char_col(segment[-1], node.end_col_offset or 0)
    original_last = segment[-1]
    segment = _apply_renames(segment, stmt, loader, primary)
    # Renames on the last line shift its end column
    end_col += len(segment[-1]) - len(original_last)
    if len(segment) == 1:
        return segment[0][start_col:end_col]
    return segment[0][start_col:] + "".join(segment[1:-1]) + segment[-1][:end_col]


def _apply_renames(segment: list[str], stmt: _Statement, loader: str, primary: str) -> list[str]:
    """Rewrite every module-level occurrence of *loader* in *segment*."""
    result = list(segment)
    if loader == primary:
        return result
    sites = sorted(
        (s for s in stmt.names.sites if s.name == loader),
        key=lambda s: (s.lineno, s.col),
        reverse=True,
    )
    for site in sites:
        offset = site.lineno - stmt.first_line
        if not 0 <= offset < len(result):
            continue
        line = result[offset]
        if line[site.col:site.end_col] != loader:
            continue
        result[offset] = line[:site.col] + primary + line[site.end_col:]
    return result


def _reprinted_import(node: ast.stmt, needed: set[str], loader: str, primary: str) -> str | None:
    """Reprint an import that needs pruning or renaming; None if it is kept verbatim.

    ``from m import loader`` cannot be renamed in place (that would import a
    different name), so it becomes ``from m import loader as handler``.

    """
    if not isinstance(node, (ast.Import, ast.ImportFrom)) or _is_future_import(node):
        return None
    if any(alias.name == "*" for alias in node.names):
        return None
    keep = [alias for alias in node.names if alias_binding(alias) in needed]
    renames = primary != loader and any(alias_binding(a) == loader for a in keep)
    if len(keep) == len(node.names) and not renames:
        return None

    aliases: list[ast.alias] = []
    for alias in keep:
        asname = alias.asname
        if renames and alias_binding(alias) == loader:
            if asname is None and "." in alias.name:
                msg = f"line {node.lineno}: cannot rename '{loader}' bound by 'import {alias.name}'"
                raise ExtractionError(msg)
            asname = primary
        aliases.append(ast.alias(name=alias.name, asname=None if asname == alias.name else asname))

    if isinstance(node, ast.Import):
        return ast.unparse(ast.Import(names=aliases))
    return ast.unparse(ast.ImportFrom(module=node.module, names=aliases, level=node.level))


def _leading_comment_start(lines: list[str], first_line: int, floor: int) -> int:
    """First line of the comment block directly above *first_line*."""
    start = first_line
    while start - 1 > floor:
        candidate = lines[start - 2].strip()
        if not candidate.startswith("#") or _FILE_HEADER.match(candidate):
            break
        start -= 1
    return start


def _blank_lines_above(lines: list[str], start_line: int, floor: int) -> int:
    count = 0
    line = start_line - 1
    while line > floor and not lines[line - 1].strip():
        count += 1
        line -= 1
    return count
