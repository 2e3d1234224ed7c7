"""Incremental updater — keep routes and loaders in sync with single file changes.

Runs the classify -> register -> extract -> declare sequence for one file
event instead of rescanning the whole actions directory:

    1. Paths outside the actions directory are ignored.
    2. The route is derived from the path. If that fails, the error is
       logged and a best-effort removal is made: the route is guessed from
       the relative path without its suffix, and the loader of that route
       is only dropped when its action file is this path or no longer
       exists. A stray ``profile.json`` never removes a live ``profile.py``.
    3. A file that no longer exists loses its loader (the generated module
       is left in place unless ``prune_stale_loaders`` is set).
    4. Otherwise the file is reclassified: a handler is registered if the
       file exports one and has no registration yet, a loader is
       re-extracted (or removed if the export disappeared), and the
       declaration stub is regenerated when the loader set or a loader's
       content changed. Files without a handler export are not registered
       as POST routes, so loader-only modules never gain a dead handler.

Every failure is caught at the event boundary, logged with the event kind
and path, and recorded; the updater always returns to ``idle``.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, TypeAlias

from formactions._errors import RouteParseError
from formactions.actions.classifier import classify_action, derive_route

if TYPE_CHECKING:
    from pathlib import Path

    from formactions.reactive.watcher import FileEvent
    from formactions.state import PipelineState

UpdaterStatus: TypeAlias = Literal["idle", "processing"]
UpdateAction: TypeAlias = Literal["ignored", "removed", "updated", "unchanged", "failed"]


@dataclass(frozen=True, slots=True)
class UpdateOutcome:
    """What one file event did.

    Attributes:
        event: The processed event.
        action: Summary of the effect on the registry.
        route: Derived action route, or None if derivation failed.
        declarations_changed: Whether the declaration stub was regenerated.
        error: Error message when ``action == "failed"``.

    """

    event: FileEvent
    action: UpdateAction
    route: str | None = None
    declarations_changed: bool = False
    error: str | None = None


class IncrementalUpdater:
    """Applies file events to a PipelineState, one at a time.

    Args:
        state: Shared pipeline state (registry and artifact steps).

    """

    def __init__(self, state: PipelineState) -> None:
        self._state = state
        self._status: UpdaterStatus = "idle"
        self._current: FileEvent | None = None

    @property
    def status(self) -> UpdaterStatus:
        return self._status

    @property
    def current(self) -> FileEvent | None:
        """The event being processed, if any."""
        return self._current

    def handle(self, event: FileEvent) -> UpdateOutcome:
        """Process one file event. Never raises for per-file failures."""
        path = event.path.absolute()
        if not path.is_relative_to(self._state.config.actions_path):
            return UpdateOutcome(event=event, action="ignored")

        self._status = "processing"
        self._current = event
        print(f"  [form-actions] changed @{event.kind}: {path}", file=sys.stderr)
        try:
            return self._process(event, path)
        except Exception as exc:
            print(
                f"  [form-actions] error while handling '{event.kind}' on {path}: {exc}",
                file=sys.stderr,
            )
            if self._state.collector is not None:
                self._state.collector.record_failure(event.kind, str(path), exc)
            return UpdateOutcome(event=event, action="failed", error=str(exc))
        finally:
            self._status = "idle"
            self._current = None

    def _process(self, event: FileEvent, path: Path) -> UpdateOutcome:
        config = self._state.config
        registry = self._state.registry

        try:
            route = derive_route(path, config.actions_path, config.source_suffix)
        except RouteParseError as exc:
            print(f"  [form-actions] {exc}", file=sys.stderr)
            if self._state.collector is not None:
                self._state.collector.record_failure(event.kind, str(path), exc)
            changed = self._remove_guessed(path)
            return UpdateOutcome(
                event=event, action="failed", declarations_changed=changed, error=str(exc),
            )

        if not path.is_file():
            changed = self._remove(route, path)
            return UpdateOutcome(
                event=event,
                action="removed" if changed else "unchanged",
                route=route,
                declarations_changed=changed,
            )

        classified = classify_action(path, config)
        record = classified.record

        if record.has_handler and not registry.has_handler_for(path):
            self._state.register_handler(record)

        if record.has_loader:
            self._state.extract(classified)
            self._state.render_artifacts("update")
            return UpdateOutcome(
                event=event, action="updated", route=route, declarations_changed=True,
            )

        if registry.has_loader(route):
            changed = self._remove(route, path)
            return UpdateOutcome(
                event=event, action="removed", route=route, declarations_changed=changed,
            )

        return UpdateOutcome(event=event, action="unchanged", route=route)

    def _remove_guessed(self, path: Path) -> bool:
        """Best-effort removal for a path whose route could not be derived."""
        relative = path.relative_to(self._state.config.actions_path)
        guess = relative.with_suffix("").as_posix()
        entry = self._state.registry.get_loader(guess)
        if entry is None:
            return False
        if entry.source_file_path != path and entry.source_file_path.is_file():
            return False
        return self._remove(guess, path)

    def _remove(self, route: str, path: Path) -> bool:
        """Remove the loader of *route* and regenerate declarations if it existed."""
        if not self._state.remove_loader(route, path):
            return False
        self._state.render_artifacts("update")
        return True
