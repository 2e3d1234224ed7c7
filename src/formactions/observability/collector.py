"""Pipeline collector — typed recording helpers over an EventLog.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from formactions.observability.events import (
    DeclarationsRendered,
    HandlerRegistered,
    LoaderExtracted,
    LoaderRemoved,
    WatchFailed,
    now_ns,
)
from formactions.observability.log import EventLog


class PipelineCollector:
    """Records pipeline events into an EventLog.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    # ----- Registration events -----

    def record_handler(self, route: str, path: str, url: str) -> None:
        """Record a handler registration."""
        self._log.append(
            HandlerRegistered(route=route, path=path, url=url, timestamp_ns=now_ns())
        )

    def record_extraction(
        self,
        route: str,
        source: str,
        target: str,
        *,
        extract_ms: float = 0.0,
    ) -> None:
        """Record a loader extraction."""
        self._log.append(
            LoaderExtracted(
                route=route,
                source=source,
                target=target,
                extract_ms=extract_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_removal(self, route: str, path: str, *, pruned: bool = False) -> None:
        """Record a loader removal."""
        self._log.append(
            LoaderRemoved(route=route, path=path, pruned=pruned, timestamp_ns=now_ns())
        )

    # ----- Artifact events -----

    def record_declarations(
        self,
        path: str,
        *,
        loader_count: int,
        trigger: str = "scan",
        render_ms: float = 0.0,
    ) -> None:
        """Record a declaration stub render."""
        self._log.append(
            DeclarationsRendered(
                path=path,
                loader_count=loader_count,
                trigger=trigger,  # type: ignore[arg-type]
                render_ms=render_ms,
                timestamp_ns=now_ns(),
            )
        )

    # ----- Failures -----

    def record_failure(self, kind: str, path: str, exc: BaseException) -> None:
        """Record a failed incremental update."""
        self._log.append(
            WatchFailed(
                kind=kind,
                path=path,
                error=type(exc).__name__,
                message=str(exc),
                timestamp_ns=now_ns(),
            )
        )
