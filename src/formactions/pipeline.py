"""Pipeline entry points — full scan and incremental updates.

Host integrations call two methods and nothing else:

    pipeline = FormActionsPipeline(config)
    result = await pipeline.run_full_scan()          # at configuration time
    outcome = await pipeline.handle_file_event(ev)   # on every file change

Both are serialised through one ``asyncio.Lock``: extraction of loader N
never starts before loader N-1 is written, and an update never interleaves
with a scan. File work runs in a worker thread via ``asyncio.to_thread`` so
the event loop only suspends at I/O boundaries.

A full scan is strict: any route, extraction or I/O error propagates and
fails the build. Incremental updates log and swallow per-file failures.
"""

from __future__ import annotations

import asyncio
import sys
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from formactions.actions.classifier import classify_action
from formactions.actions.walker import walk_files
from formactions.reactive.updater import IncrementalUpdater
from formactions.state import PipelineState

if TYPE_CHECKING:
    from formactions.actions.classifier import ActionRecord
    from formactions.config import FormActionsConfig
    from formactions.observability.collector import PipelineCollector
    from formactions.reactive.updater import UpdateOutcome
    from formactions.reactive.watcher import ActionWatcher, FileEvent
    from formactions.routes.registry import RouteRegistration, RouteRegistry


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Summary of a full scan.

    Attributes:
        records: Classification of every action file, in walk order.
        registrations: Route registrations, in insertion order.
        loader_names: Known loader names, in registration order.
        duration_ms: Wall time of the scan in milliseconds.

    """

    records: tuple[ActionRecord, ...]
    registrations: tuple[RouteRegistration, ...]
    loader_names: tuple[str, ...]
    duration_ms: float


class FormActionsPipeline:
    """Owns the pipeline state and exposes its two entry points.

    Args:
        config: Resolved configuration.
        collector: Optional event collector for observability.

    """

    def __init__(
        self,
        config: FormActionsConfig,
        collector: PipelineCollector | None = None,
    ) -> None:
        self._state = PipelineState(config, collector)
        self._updater = IncrementalUpdater(self._state)
        self._lock = asyncio.Lock()

    @property
    def config(self) -> FormActionsConfig:
        return self._state.config

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def registry(self) -> RouteRegistry:
        """The live registry (replaced on every full scan)."""
        return self._state.registry

    @property
    def updater(self) -> IncrementalUpdater:
        return self._updater

    async def run_full_scan(self) -> ScanResult:
        """Walk the actions directory and rebuild every route and artifact.

        Raises:
            RouteParseError: If a file under the actions root has no route.
            ExtractionError: If an action cannot be parsed or its loader isolated.
            OSError: On any filesystem failure.

        """
        async with self._lock:
            t0 = time.perf_counter()
            state = self._state
            state.reset()
            await asyncio.to_thread(state.prepare_directories)

            records: list[ActionRecord] = []
            files = walk_files(state.config.actions_path)
            while (path := await asyncio.to_thread(next, files, None)) is not None:
                classified = await asyncio.to_thread(classify_action, path, state.config)
                record = classified.record
                if record.has_handler:
                    state.register_handler(record)
                if record.has_loader:
                    await asyncio.to_thread(state.extract, classified)
                records.append(record)

            await asyncio.to_thread(state.render_artifacts, "scan")
            names = state.registry.list_loader_names()
            print(
                f"  [form-actions] loaders added to the config: {', '.join(names)}",
                file=sys.stderr,
            )
            return ScanResult(
                records=tuple(records),
                registrations=state.registry.registrations,
                loader_names=names,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

    async def handle_file_event(self, event: FileEvent) -> UpdateOutcome:
        """Apply one filesystem event. Per-file failures are logged, not raised."""
        async with self._lock:
            return await asyncio.to_thread(self._updater.handle, event)

    async def watch(self, watcher: ActionWatcher) -> None:
        """Feed every event from *watcher* through :meth:`handle_file_event`."""
        watcher.start()
        try:
            async for event in watcher.changes():
                await self.handle_file_event(event)
        finally:
            watcher.stop()
