"""Action watcher — turns filesystem changes into pipeline file events.

Watches the actions directory with watchfiles in a background thread and
bridges batches of changes to an asyncio queue consumed by the pipeline.

Coalescing policy: watchfiles already debounces (``debounce_ms``, 300 by
default) and groups changes into batches. Within a batch each path yields
exactly one event, decided by what is on disk once the batch arrives, so
the last write wins. Events for different paths keep a stable (sorted)
order; nothing is cancelled across batches.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from watchfiles import Change

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    from formactions._types import FileEventKind
    from formactions.config import FormActionsConfig


@dataclass(frozen=True, slots=True)
class FileEvent:
    """A filesystem change delivered to the incremental updater.

    Attributes:
        kind: Type of filesystem change.
        path: Absolute path to the changed file.

    """

    kind: FileEventKind
    path: Path


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, FileEventKind] = {
    Change.added: "add",
    Change.modified: "change",
    Change.deleted: "delete",
}


def coalesce_changes(
    raw_changes: Iterable[tuple[Change, str]],
    actions_root: Path,
) -> list[FileEvent]:
    """Collapse one watchfiles batch into at most one event per path.

    Paths outside *actions_root* are dropped. When a path changed more than
    once in the batch, its current state on disk decides the kind.

    """
    by_path: dict[Path, set[Change]] = {}
    for change, path_str in raw_changes:
        path = Path(path_str)
        if not path.is_relative_to(actions_root):
            continue
        by_path.setdefault(path, set()).add(change)

    events: list[FileEvent] = []
    for path in sorted(by_path):
        changes = by_path[path]
        if len(changes) == 1:
            kind = _CHANGE_KIND_MAP.get(next(iter(changes)), "change")
        elif not path.exists():
            kind = "delete"
        elif Change.added in changes:
            kind = "add"
        else:
            kind = "change"
        events.append(FileEvent(kind=kind, path=path))
    return events


class ActionWatcher:
    """Watches the actions directory and queues FileEvents.

    The watcher runs watchfiles in a background thread and hands events to
    the event loop that called :meth:`start`.

    """

    def __init__(self, config: FormActionsConfig) -> None:
        self._config = config
        self._queue: asyncio.Queue[FileEvent] = asyncio.Queue()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_running(self) -> bool:
        """Whether the watcher background thread is active."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start watching for file changes in a background thread.

        Must be called from a running event loop.

        """
        if self.is_running:
            return

        self._loop = asyncio.get_running_loop()
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._watch_loop,
            name="formactions-watcher",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        """Signal the watcher to stop and wait for the thread to finish."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5.0)
            self._thread = None

    async def changes(self) -> AsyncIterator[FileEvent]:
        """Async iterator that yields FileEvent objects as they occur.

        Blocks until a change is available or the watcher is stopped.

        """
        while self.is_running or not self._queue.empty():
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=0.5)
                yield event
            except TimeoutError:
                if not self.is_running:
                    break

    def _watch_loop(self) -> None:
        """Background thread: run watchfiles and push events to the queue."""
        from watchfiles import watch

        actions_path = self._config.actions_path

        for raw_changes in watch(
            actions_path,
            stop_event=self._stop_event,
            debounce=self._config.debounce_ms,
            step=100,
        ):
            for event in coalesce_changes(raw_changes, actions_path):
                if self._loop is not None:
                    self._loop.call_soon_threadsafe(self._queue.put_nowait, event)
