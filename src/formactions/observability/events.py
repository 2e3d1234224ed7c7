"""Pipeline event model.

Every step of a full scan or incremental update that changes generated
state emits one event. All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal, TypeAlias


# ---------------------------------------------------------------------------
# Registration events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class HandlerRegistered:
    """An action's primary handler was registered.

    Attributes:
        route: Action route.
        path: Action file path.
        url: Registered URL path.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    route: str
    path: str
    url: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class LoaderExtracted:
    """A loader was extracted into its generated module.

    Attributes:
        route: Action route (also the loader name).
        source: Action file the loader came from.
        target: Generated module path.
        extract_ms: Time spent extracting and writing in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    route: str
    source: str
    target: str
    extract_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class LoaderRemoved:
    """A loader was dropped from the registry.

    Attributes:
        route: Loader name.
        path: File path that triggered the removal.
        pruned: Whether the generated module was deleted as well.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    route: str
    path: str
    pruned: bool
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Artifact events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DeclarationsRendered:
    """The declaration stub was regenerated.

    Attributes:
        path: Stub path.
        loader_count: Number of loaders described.
        trigger: What caused the render.
        render_ms: Time spent rendering in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    loader_count: int
    trigger: Literal["scan", "update"]
    render_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class WatchFailed:
    """An incremental update failed and was skipped.

    Attributes:
        kind: File event kind.
        path: File event path.
        error: Exception class name.
        message: Exception message.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: str
    path: str
    error: str
    message: str
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

PipelineEvent: TypeAlias = (
    HandlerRegistered
    | LoaderExtracted
    | LoaderRemoved
    | DeclarationsRendered
    | WatchFailed
)


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
