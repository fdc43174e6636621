"""
Interfaces package exports.
"""

from .cache_backend import CacheBackend, DryRunCacheBackend
from .event_sink import (
    EventSink,
    FileOutcomeEvent,
    JsonlPrometheusEventSink,
    RunSummaryEvent,
)
from .metrics_exporter import MetricsExporter

__all__ = [
    "CacheBackend",
    "DryRunCacheBackend",
    "EventSink",
    "FileOutcomeEvent",
    "JsonlPrometheusEventSink",
    "RunSummaryEvent",
    "MetricsExporter",
]
