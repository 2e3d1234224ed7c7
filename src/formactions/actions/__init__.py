"""Action discovery — walk the actions root and classify each file.

Public API::

    from formactions.actions import classify_action, walk_files

    for path in walk_files(config.actions_path):
        classified = classify_action(path, config)
"""

from formactions.actions.classifier import (
    ActionRecord,
    ActionSource,
    ClassifiedAction,
    classify_action,
    derive_route,
    load_action,
)
from formactions.actions.walker import walk_files

__all__ = [
    "ActionRecord",
    "ActionSource",
    "ClassifiedAction",
    "classify_action",
    "derive_route",
    "load_action",
    "walk_files",
]
