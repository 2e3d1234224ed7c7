"""formactions configuration.

FormActionsConfig is the central configuration object, frozen after creation.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from formactions._errors import ConfigError


@dataclass(frozen=True, slots=True)
class FormActionsConfig:
    """Configuration for a formactions pipeline.

    Attributes:
        root: Path to the project root (contains server/actions/).
              Always resolved to an absolute path on construction.
        actions_dir: Directory containing action sources, relative to root.
        loader_dir: Pipeline-owned directory for extracted loaders. Deleted and
            recreated on every full scan; never put hand-written files here.
        build_dir: Build output directory for the declaration stub and manifest.
        types_file: Declaration stub location, relative to ``build_dir``.
        manifest_file: Published route manifest, relative to ``build_dir``.
        loader_prefix: URL prefix of loader GET routes.
        source_suffix: File suffix of action sources.
        handler_export: Name of the primary (POST) export.
        loader_export: Name of the loader (GET) export.
        prune_stale_loaders: Delete a loader's generated file when the loader
            is removed by an incremental update.
        debounce_ms: Watcher debounce window in milliseconds.

    """

    root: Path = field(default_factory=Path.cwd)
    actions_dir: str = "server/actions"
    loader_dir: str = "server/.loader"
    build_dir: str = ".formactions"
    types_file: str = "types/form_action_loaders.pyi"
    manifest_file: str = "form_actions.json"
    loader_prefix: str = "__loaders__"
    source_suffix: str = ".py"
    handler_export: str = "handler"
    loader_export: str = "loader"
    prune_stale_loaders: bool = False
    debounce_ms: int = 300

    def __post_init__(self) -> None:
        # Resolve root to absolute so that watchfiles (which returns
        # absolute paths) can be compared via Path.relative_to().
        if not self.root.is_absolute():
            object.__setattr__(self, "root", self.root.resolve())

        # loader_dir is deleted on every full scan
        loader = Path(os.path.normpath(self.loader_path))
        actions = Path(os.path.normpath(self.actions_path))
        root = Path(os.path.normpath(self.root))
        if (
            root.is_relative_to(loader)
            or actions.is_relative_to(loader)
            or loader.is_relative_to(actions)
        ):
            msg = (
                f"loader_dir {self.loader_dir!r} is cleared on every scan and must not "
                f"overlap the project root or actions_dir {self.actions_dir!r}"
            )
            raise ConfigError(msg)

    @property
    def actions_path(self) -> Path:
        """Absolute path to the actions directory."""
        return self.root / self.actions_dir

    @property
    def loader_path(self) -> Path:
        """Absolute path to the generated loader directory."""
        return self.root / self.loader_dir

    @property
    def build_path(self) -> Path:
        """Absolute path to the build output directory."""
        build = Path(self.build_dir)
        if build.is_absolute():
            return build
        return self.root / build

    @property
    def types_path(self) -> Path:
        """Absolute path to the declaration stub."""
        return self.build_path / self.types_file

    @property
    def manifest_path(self) -> Path:
        """Absolute path to the published route manifest."""
        return self.build_path / self.manifest_file
