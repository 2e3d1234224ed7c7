"""Loader extraction — isolate the loader export of an action into its own module.

Public API::

    from formactions.extract import write_loader

    generated = write_loader(source, "profile", config.loader_path)
"""

from formactions.extract.extractor import (
    GENERATED_BANNER,
    extract_loader,
    source_lines,
    write_atomic,
    write_loader,
)
from formactions.extract.scope import NameSite, StatementNames, analyze_statement, module_bindings

__all__ = [
    "GENERATED_BANNER",
    "NameSite",
    "StatementNames",
    "analyze_statement",
    "extract_loader",
    "module_bindings",
    "source_lines",
    "write_atomic",
    "write_loader",
]
