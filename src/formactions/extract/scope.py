"""Module-scope name analysis for top-level statements.

For each top-level statement we need three things:

- the module-level names it binds,
- the module-level names it reads (including free names inside function
  and class bodies, decorators, defaults and annotations),
- the source position of every module-level occurrence, so a name can be
  rewritten in place without reprinting the statement.

Python scoping rules are followed closely enough for dead-code elimination:
names local to a function, lambda or comprehension are not module
references, ``global`` declarations are honoured, and class bodies are not
visible from the functions nested inside them.
"""

from __future__ import annotations

import ast
import builtins
import re
from dataclasses import dataclass, field

BUILTIN_NAMES: frozenset[str] = frozenset(dir(builtins))

_DEF_HEADER = re.compile(r"(?:async\s+)?def\s+")
_CLASS_HEADER = re.compile(r"class\s+")

_COMPREHENSIONS = (ast.ListComp, ast.SetComp, ast.DictComp, ast.GeneratorExp)


@dataclass(frozen=True, slots=True)
class NameSite:
    """One module-level occurrence of a name in the source text.

    Columns are character offsets into the (1-based) source line, not the
    UTF-8 byte offsets ``ast`` reports.

    """

    name: str
    lineno: int
    col: int
    end_col: int
    binding: bool


@dataclass(frozen=True, slots=True)
class StatementNames:
    """Module-level names bound and referenced by one top-level statement."""

    bound: frozenset[str]
    referenced: frozenset[str]
    sites: tuple[NameSite, ...]


@dataclass(slots=True)
class _Frame:
    kind: str
    locals: set[str]
    declared_global: set[str] = field(default_factory=set)


def bound_names(nodes: list[ast.AST]) -> tuple[set[str], set[str]]:
    """Names bound directly in a scope body, and names declared ``global`` there.

    Does not descend into nested functions, classes, lambdas or
    comprehensions, but counts the names of nested ``def`` and ``class``
    statements.

    """
    bound: set[str] = set()
    declared_global: set[str] = set()
    stack: list[ast.AST] = list(nodes)
    while stack:
        node = stack.pop()
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            bound.add(node.name)
            continue
        if isinstance(node, (ast.Lambda, *_COMPREHENSIONS)):
            continue
        if isinstance(node, ast.Name) and isinstance(node.ctx, (ast.Store, ast.Del)):
            bound.add(node.id)
        elif isinstance(node, (ast.Import, ast.ImportFrom)):
            for alias in node.names:
                if alias.name != "*":
                    bound.add(alias_binding(alias))
        elif isinstance(node, ast.ExceptHandler) and node.name:
            bound.add(node.name)
        elif isinstance(node, ast.Global):
            declared_global.update(node.names)
        elif isinstance(node, ast.Nonlocal):
            bound.update(node.names)
        elif isinstance(node, (ast.MatchAs, ast.MatchStar)) and node.name:
            bound.add(node.name)
        elif isinstance(node, ast.MatchMapping) and node.rest:
            bound.add(node.rest)
        stack.extend(ast.iter_child_nodes(node))
    return bound - declared_global, declared_global


def module_bindings(tree: ast.Module) -> frozenset[str]:
    """All names bound at module level by *tree*."""
    bound, _ = bound_names(list(tree.body))
    return frozenset(bound)


def alias_binding(alias: ast.alias) -> str:
    """The name an import alias binds (``import a.b`` binds ``a``)."""
    if alias.asname:
        return alias.asname
    return alias.name.split(".", maxsplit=1)[0]


def analyze_statement(stmt: ast.stmt, lines: list[str]) -> StatementNames:
    """Collect module-level bindings, references and name sites of *stmt*.

    Args:
        stmt: A top-level statement of a parsed module.
        lines: The module source split into lines (with or without endings).

    """
    collector = _GlobalNameCollector(lines)
    collector.visit(stmt)
    bound = frozenset(collector.bound)
    return StatementNames(
        bound=bound,
        referenced=frozenset(collector.referenced),
        sites=tuple(collector.sites),
    )


def char_col(line: str, byte_col: int) -> int:
    """Convert an ``ast`` UTF-8 byte column to a character column."""
    return len(line.encode("utf-8")[:byte_col].decode("utf-8", errors="ignore"))


class _GlobalNameCollector(ast.NodeVisitor):
    """Walk one top-level statement, tracking scopes to find module names."""

    def __init__(self, lines: list[str]) -> None:
        self._lines = lines
        self._frames: list[_Frame] = []
        self.bound: set[str] = set()
        self.referenced: set[str] = set()
        self.sites: list[NameSite] = []

    # ----- scope resolution -----

    def _is_global(self, name: str) -> bool:
        for depth, frame in enumerate(reversed(self._frames)):
            # Class bodies are only visible to code directly inside them
            if frame.kind == "class" and depth > 0:
                continue
            if name in frame.declared_global:
                return True
            if name in frame.locals:
                return False
        return True

    def _line(self, lineno: int) -> str:
        return self._lines[lineno - 1] if 0 < lineno <= len(self._lines) else ""

    def _record(self, name: str, *, binding: bool, lineno: int | None = None,
                col: int | None = None) -> None:
        if not self._is_global(name):
            return
        if binding:
            self.bound.add(name)
        else:
            self.referenced.add(name)
        if lineno is not None and col is not None:
            self.sites.append(NameSite(
                name=name, lineno=lineno, col=col, end_col=col + len(name), binding=binding,
            ))

    def _header_site(self, node: ast.FunctionDef | ast.AsyncFunctionDef | ast.ClassDef,
                     pattern: re.Pattern[str]) -> int | None:
        """Character column of a def/class name on its header line."""
        line = self._line(node.lineno)
        start = char_col(line, node.col_offset)
        match = pattern.match(line, start)
        if match is None or not line.startswith(node.name, match.end()):
            return None
        return match.end()

    def _push(self, kind: str, local_names: set[str], declared_global: set[str] | None = None) -> None:
        self._frames.append(_Frame(kind=kind, locals=local_names,
                                   declared_global=declared_global or set()))

    def _pop(self) -> None:
        self._frames.pop()

    # ----- visitors -----

    def visit_Name(self, node: ast.Name) -> None:
        line = self._line(node.lineno)
        self._record(
            node.id,
            binding=isinstance(node.ctx, (ast.Store, ast.Del)),
            lineno=node.lineno,
            col=char_col(line, node.col_offset),
        )

    def visit_Import(self, node: ast.Import | ast.ImportFrom) -> None:
        for alias in node.names:
            if alias.name == "*":
                continue
            name = alias_binding(alias)
            line = self._line(alias.lineno)
            if alias.asname:
                col = char_col(line, alias.end_col_offset or 0) - len(alias.asname)
            else:
                col = char_col(line, alias.col_offset)
            self._record(name, binding=True, lineno=alias.lineno, col=col)

    visit_ImportFrom = visit_Import

    def visit_Global(self, node: ast.Global) -> None:
        # ``global x`` has no Name nodes; find each name after the keyword
        last = node.end_lineno or node.lineno
        lineno = node.lineno
        pos = char_col(self._line(lineno), node.col_offset) + len("global")
        for name in node.names:
            pattern = re.compile(rf"(?<!\w){re.escape(name)}(?!\w)")
            while lineno <= last:
                line = self._line(lineno)
                end = char_col(line, node.end_col_offset or 0) if lineno == last else len(line)
                match = pattern.search(line, pos, end)
                if match is not None:
                    self.sites.append(NameSite(
                        name=name, lineno=lineno, col=match.start(), end_col=match.end(), binding=True,
                    ))
                    pos = match.end()
                    break
                lineno += 1
                pos = 0

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.type is not None:
            self.visit(node.type)
        if node.name:
            self._record(node.name, binding=True)
        for stmt in node.body:
            self.visit(stmt)

    def visit_MatchAs(self, node: ast.MatchAs) -> None:
        if node.pattern is not None:
            self.visit(node.pattern)
        if node.name:
            self._record(node.name, binding=True)

    def visit_MatchStar(self, node: ast.MatchStar) -> None:
        if node.name:
            self._record(node.name, binding=True)

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        for key in node.keys:
            self.visit(key)
        for pattern in node.patterns:
            self.visit(pattern)
        if node.rest:
            self._record(node.rest, binding=True)

    def _visit_arguments(self, args: ast.arguments) -> None:
        """Visit defaults and annotations, which evaluate in the enclosing scope."""
        for default in (*args.defaults, *args.kw_defaults):
            if default is not None:
                self.visit(default)
        for arg in (*args.posonlyargs, *args.args, *args.kwonlyargs, args.vararg, args.kwarg):
            if arg is not None and arg.annotation is not None:
                self.visit(arg.annotation)

    @staticmethod
    def _param_names(args: ast.arguments) -> set[str]:
        names = {a.arg for a in (*args.posonlyargs, *args.args, *args.kwonlyargs)}
        if args.vararg is not None:
            names.add(args.vararg.arg)
        if args.kwarg is not None:
            names.add(args.kwarg.arg)
        return names

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        type_params = {p.name for p in getattr(node, "type_params", ())}
        self._push("function", type_params)
        self._visit_arguments(node.args)
        if node.returns is not None:
            self.visit(node.returns)
        self._pop()
        self._record(node.name, binding=True, lineno=node.lineno,
                     col=self._header_site(node, _DEF_HEADER))

        local_names, declared_global = bound_names(list(node.body))
        local_names |= self._param_names(node.args)
        local_names -= declared_global
        self._push("function", local_names, declared_global)
        for stmt in node.body:
            self.visit(stmt)
        self._pop()

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda) -> None:
        self._visit_arguments(node.args)
        self._push("function", self._param_names(node.args))
        self.visit(node.body)
        self._pop()

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        for decorator in node.decorator_list:
            self.visit(decorator)
        for base in node.bases:
            self.visit(base)
        for keyword in node.keywords:
            self.visit(keyword.value)
        self._record(node.name, binding=True, lineno=node.lineno,
                     col=self._header_site(node, _CLASS_HEADER))

        local_names, declared_global = bound_names(list(node.body))
        self._push("class", local_names - declared_global, declared_global)
        for stmt in node.body:
            self.visit(stmt)
        self._pop()

    def _visit_comprehension(self, node: ast.ListComp | ast.SetComp | ast.DictComp | ast.GeneratorExp) -> None:
        # The first iterable is evaluated in the enclosing scope
        self.visit(node.generators[0].iter)
        targets: set[str] = set()
        for generator in node.generators:
            for sub in ast.walk(generator.target):
                if isinstance(sub, ast.Name):
                    targets.add(sub.id)
        self._push("comprehension", targets)
        for index, generator in enumerate(node.generators):
            self.visit(generator.target)
            if index > 0:
                self.visit(generator.iter)
            for condition in generator.ifs:
                self.visit(condition)
        if isinstance(node, ast.DictComp):
            self.visit(node.key)
            self.visit(node.value)
        else:
            self.visit(node.elt)
        self._pop()

    visit_ListComp = _visit_comprehension
    visit_SetComp = _visit_comprehension
    visit_DictComp = _visit_comprehension
    visit_GeneratorExp = _visit_comprehension
