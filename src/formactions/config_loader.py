"""Load FormActionsConfig from formactions.yaml / formactions.toml / pyproject.toml.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from formactions._errors import ConfigError
from formactions.config import FormActionsConfig

_KNOWN_KEYS: frozenset[str] = frozenset({
    "actions_dir",
    "loader_dir",
    "build_dir",
    "types_file",
    "manifest_file",
    "loader_prefix",
    "source_suffix",
    "handler_export",
    "loader_export",
    "prune_stale_loaders",
    "debounce_ms",
})


def load_config(root: Path, **overrides: object) -> FormActionsConfig:
    """Load FormActionsConfig from root, optionally merging a config file.

    Looks for formactions.yaml, formactions.yml, formactions.toml, then a
    ``[tool.formactions]`` table in pyproject.toml. The first one found is
    used. Overrides take precedence; ``None`` overrides are ignored so CLI
    flags that were not given fall through to the file.
    """
    file_config = _read_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}
    return FormActionsConfig(root=Path(root), **merged)


def _read_config(root: Path) -> dict[str, object]:
    """Read config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("formactions.yaml", "formactions.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "formactions.toml"
    if toml_path.is_file():
        return _flatten_section(_parse_toml(toml_path))
    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        tool = _parse_toml(pyproject).get("tool")
        if isinstance(tool, dict):
            return _flatten_section(tool)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Could not read {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path}: expected a mapping at the top level, got {type(data).__name__}"
        raise ConfigError(msg)
    return _flatten_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse a TOML file."""
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        msg = f"Could not read {path}: {exc}"
        raise ConfigError(msg) from exc


def _flatten_section(data: dict[str, object]) -> dict[str, object]:
    """Extract formactions.* keys (and known top-level keys) into config kwargs."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k in _KNOWN_KEYS:
            result[k] = v
    section = data.get("formactions")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _KNOWN_KEYS:
                result[k] = v
    return result
