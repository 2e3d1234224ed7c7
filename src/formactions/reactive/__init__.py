"""Reactive layer — incremental updates driven by filesystem changes.

Connects watchfiles batches to the incremental updater without rescanning
the actions directory.
"""

from formactions.reactive.updater import IncrementalUpdater, UpdateOutcome
from formactions.reactive.watcher import ActionWatcher, FileEvent, coalesce_changes

__all__ = [
    "ActionWatcher",
    "FileEvent",
    "IncrementalUpdater",
    "UpdateOutcome",
    "coalesce_changes",
]
