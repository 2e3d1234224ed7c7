"""Pipeline state — the registry and artifact steps shared by scans and updates.

One ``PipelineState`` is owned by each pipeline instance and passed by
reference to the full scan and the incremental updater. Nothing here is
module-global, so independent pipelines (and tests) never share routes.

Each step is synchronous and does its own file I/O; callers run them off
the event loop one at a time.
"""

from __future__ import annotations

import shutil
import sys
import time
from typing import TYPE_CHECKING

from formactions.codegen.declarations import write_declarations
from formactions.codegen.manifest import write_manifest
from formactions.extract.extractor import write_loader
from formactions.routes.registry import RouteRegistry

if TYPE_CHECKING:
    from pathlib import Path

    from formactions.actions.classifier import ActionRecord, ClassifiedAction
    from formactions.config import FormActionsConfig
    from formactions.observability.collector import PipelineCollector
    from formactions.routes.registry import LoaderEntry, RouteRegistration


class PipelineState:
    """Registry plus the steps that keep generated artifacts in sync with it.

    Args:
        config: Resolved configuration.
        collector: Optional event collector for observability.

    """

    __slots__ = ("_collector", "_config", "_registry")

    def __init__(
        self,
        config: FormActionsConfig,
        collector: PipelineCollector | None = None,
    ) -> None:
        self._config = config
        self._collector = collector
        self._registry = RouteRegistry(config.loader_prefix)

    @property
    def config(self) -> FormActionsConfig:
        return self._config

    @property
    def registry(self) -> RouteRegistry:
        return self._registry

    @property
    def collector(self) -> PipelineCollector | None:
        return self._collector

    def reset(self) -> None:
        """Start over with an empty registry (full scans rebuild everything)."""
        self._registry = RouteRegistry(self._config.loader_prefix)

    def prepare_directories(self) -> None:
        """Recreate the loader directory and make sure the actions directory exists.

        Destructive: everything under the loader directory is deleted.

        """
        loader_path = self._config.loader_path
        if loader_path.exists():
            shutil.rmtree(loader_path)
        loader_path.mkdir(parents=True)
        (loader_path / ".gitignore").write_text("*", encoding="utf-8")
        self._config.actions_path.mkdir(parents=True, exist_ok=True)

    def register_handler(self, record: ActionRecord) -> RouteRegistration:
        """Register the POST handler of *record*."""
        registration = self._registry.register_handler(record.route, record.file_path)
        print(f"  [form-actions] handler added: {registration.path}", file=sys.stderr)
        if self._collector is not None:
            self._collector.record_handler(record.route, str(record.file_path), registration.path)
        return registration

    def extract(self, classified: ClassifiedAction) -> LoaderEntry:
        """Write the loader module of *classified* and register it.

        Raises:
            ExtractionError: If the loader cannot be isolated.
            OSError: If the generated module cannot be written.

        """
        record = classified.record
        t0 = time.perf_counter()
        generated = write_loader(
            classified.source,
            record.route,
            self._config.loader_path,
            primary=self._config.handler_export,
            loader=self._config.loader_export,
            suffix=self._config.source_suffix,
        )
        entry = self._registry.register_loader(record.route, generated, record.file_path)
        ms = (time.perf_counter() - t0) * 1000
        print(
            f"  [form-actions] loader '{record.route}' extracted at {entry.route_url}",
            file=sys.stderr,
        )
        if self._collector is not None:
            self._collector.record_extraction(
                record.route, str(record.file_path), str(generated), extract_ms=ms,
            )
        return entry

    def remove_loader(self, route: str, trigger: Path) -> bool:
        """Drop the loader of *route*. Returns True if the loader set changed.

        The generated module stays on disk unless ``prune_stale_loaders`` is
        set; the next full scan clears it either way.

        """
        entry = self._registry.get_loader(route)
        if entry is None:
            return False
        self._registry.remove_loader(route)
        pruned = False
        if self._config.prune_stale_loaders:
            entry.generated_file_path.unlink(missing_ok=True)
            pruned = True
        names = ", ".join(self._registry.list_loader_names())
        print(f"  [form-actions] loader removed: '{route}' [{names}]", file=sys.stderr)
        if self._collector is not None:
            self._collector.record_removal(route, str(trigger), pruned=pruned)
        return True

    def render_artifacts(self, trigger: str) -> Path:
        """Regenerate the declaration stub and the route manifest."""
        t0 = time.perf_counter()
        entries = self._registry.entries()
        path = write_declarations(entries, self._config.types_path, export=self._config.handler_export)
        write_manifest(self._registry, self._config.manifest_path)
        ms = (time.perf_counter() - t0) * 1000
        if self._collector is not None:
            self._collector.record_declarations(
                str(path), loader_count=len(entries), trigger=trigger, render_ms=ms,
            )
        return path
