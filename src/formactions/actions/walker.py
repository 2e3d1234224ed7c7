"""Lazy, depth-first file enumeration under the actions root."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

# Interpreter byproducts that are never action sources
_SKIP_DIRS: frozenset[str] = frozenset({"__pycache__"})


def walk_files(directory: Path) -> Iterator[Path]:
    """Yield absolute paths of every file below *directory*, depth-first.

    Directories are traversed, not yielded. Entries are visited in sorted
    name order so that two scans of the same tree produce the same sequence.
    Symlinked directories are followed; cycles are not detected.

    Raises:
        OSError: If a directory cannot be listed.

    """
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        path = Path(entry.path).absolute()
        if entry.is_dir():
            if entry.name in _SKIP_DIRS:
                continue
            yield from walk_files(path)
        else:
            yield path
