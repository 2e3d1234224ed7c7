"""Pipeline observability — structured events for scans and incremental updates.

Quick Start:
    >>> from formactions.observability import PipelineCollector, EventLog
    >>> log = EventLog()
    >>> collector = PipelineCollector(log)
    >>> # Pass collector to FormActionsPipeline(config, collector=collector)

"""

from formactions.observability.collector import PipelineCollector
from formactions.observability.events import (
    DeclarationsRendered,
    HandlerRegistered,
    LoaderExtracted,
    LoaderRemoved,
    PipelineEvent,
    WatchFailed,
    now_ns,
)
from formactions.observability.log import EventLog

__all__ = [
    "DeclarationsRendered",
    "EventLog",
    "HandlerRegistered",
    "LoaderExtracted",
    "LoaderRemoved",
    "PipelineCollector",
    "PipelineEvent",
    "WatchFailed",
    "now_ns",
]
