"""Generated artifacts — loader declaration stub and route manifest."""

from formactions.codegen.declarations import (
    ANY,
    ReturnType,
    alias_name,
    infer_return_type,
    render_declarations,
    write_declarations,
)
from formactions.codegen.manifest import build_manifest, write_manifest

__all__ = [
    "ANY",
    "ReturnType",
    "alias_name",
    "build_manifest",
    "infer_return_type",
    "render_declarations",
    "write_declarations",
    "write_manifest",
]
