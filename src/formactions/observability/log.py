"""Event log — what the pipeline did during one session.

Holds the most recent ``PipelineEvent`` objects in arrival order. The CLI
reads it back when a watch session ends to report how many updates ran and
which of them failed.

Thread Safety:
    File work runs in worker threads (``asyncio.to_thread``), so appends
    and reads are guarded by a ``threading.Lock``.

"""

import threading
from collections import Counter, deque

from formactions.observability.events import PipelineEvent, WatchFailed


class EventLog:
    """Bounded, ordered event store.

    Args:
        max_events: Events kept before the oldest are dropped.

    """

    __slots__ = ("_events", "_lock")

    def __init__(self, max_events: int = 10_000) -> None:
        self._events: deque[PipelineEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def append(self, event: PipelineEvent) -> None:
        with self._lock:
            self._events.append(event)

    def events(self, event_type: type | None = None, *, route: str | None = None) -> list[PipelineEvent]:
        """Stored events, oldest first.

        Args:
            event_type: Only events of this class.
            route: Only events carrying this action route.

        """
        with self._lock:
            snapshot = list(self._events)
        return [
            event for event in snapshot
            if (event_type is None or isinstance(event, event_type))
            and (route is None or getattr(event, "route", None) == route)
        ]

    def failures(self) -> list[WatchFailed]:
        """Failed incremental updates, oldest first."""
        with self._lock:
            return [event for event in self._events if isinstance(event, WatchFailed)]

    def counts(self) -> Counter[str]:
        """Number of stored events per event class name."""
        with self._lock:
            return Counter(type(event).__name__ for event in self._events)

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
