# EventSink port
from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Lock
from typing import TYPE_CHECKING, Any, ClassVar, Optional, Protocol

from .metrics_exporter import MetricsExporter

if TYPE_CHECKING:
    from ingest.stats import StatsSnapshot


@dataclass(frozen=True)
class FileOutcomeEvent:
    """One file resolved by a worker, in marking order."""

    event_type: ClassVar[str] = "file_outcome"

    run_id: str
    path: str
    slot_index: int
    status: str
    processed: int
    failed: int
    marked: bool
    error: str | None = None


@dataclass(frozen=True)
class RunSummaryEvent:
    event_type: ClassVar[str] = "load_summary"

    run_id: str
    pattern: str
    dry_run: bool
    duration_seconds: float
    files_found: int
    files_completed: int
    files_aborted: int
    files_failed: int
    files_cancelled: int
    lines_processed: int
    lines_failed: int
    records_written: int


class EventSink(Protocol):
    def record_file_outcome(self, event: FileOutcomeEvent) -> None: ...
    def record_run_summary(self, event: RunSummaryEvent) -> None: ...
    def export_metrics(
        self,
        *,
        snapshot: "StatsSnapshot",
        output_path: str,
        duration_seconds: float,
        lines_per_second: float,
        pattern: str,
        dry_run: bool,
        workers: int | None = None,
        device_types: Iterable[str] = (),
    ) -> None: ...


class JsonlPrometheusEventSink:
    """Appends run events to a JSONL file and writes Prometheus metrics."""

    def __init__(
        self,
        *,
        events_path: Optional[str] = None,
        lock: Optional[Lock] = None,
    ):
        self._events_path = (events_path or "").strip() or None
        self._lock = lock or Lock()
        self._metrics = MetricsExporter()

    def record_file_outcome(self, event: FileOutcomeEvent) -> None:
        self._append(event.event_type, asdict(event))

    def record_run_summary(self, event: RunSummaryEvent) -> None:
        self._append(event.event_type, asdict(event))

    def _append(self, event_type: str, payload: dict[str, Any]) -> None:
        if not self._events_path:
            return
        record = {
            "event_type": event_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            **payload,
        }
        path = Path(self._events_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        line = json.dumps(record, ensure_ascii=False) + "\n"
        with self._lock:
            with open(path, "a", encoding="utf-8") as handle:
                handle.write(line)

    def export_metrics(
        self,
        *,
        snapshot: "StatsSnapshot",
        output_path: str,
        duration_seconds: float,
        lines_per_second: float,
        pattern: str,
        dry_run: bool,
        workers: int | None = None,
        device_types: Iterable[str] = (),
    ) -> None:
        self._metrics.export_prometheus(
            snapshot=snapshot,
            output_path=output_path,
            duration_seconds=duration_seconds,
            lines_per_second=lines_per_second,
            pattern=pattern,
            dry_run=dry_run,
            workers=workers,
            device_types=device_types,
        )


__all__ = [
    "EventSink",
    "FileOutcomeEvent",
    "JsonlPrometheusEventSink",
    "RunSummaryEvent",
]
