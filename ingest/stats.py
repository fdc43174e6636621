"""
Run statistics shared by all load workers.

Writers record per device type, the file processor records per file and the
batch loop records one outcome per file. ``snapshot()`` hands out an
immutable copy for summaries and metric export.
"""
import uuid
from collections import Counter
from dataclasses import dataclass
from threading import Lock
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class StatsSnapshot:
    run_id: str
    files_by_status: Mapping[str, int]
    lines_processed: int
    lines_failed: int
    records_written: Mapping[str, int]
    write_retries: Mapping[str, int]
    write_failures: Mapping[str, int]
    unknown_devices: Mapping[str, int]
    file_seconds_count: int
    file_seconds_sum: float
    file_seconds_max: float
    failed_files: tuple[str, ...]

    def files(self, status: str) -> int:
        return self.files_by_status.get(status, 0)

    @property
    def total_records_written(self) -> int:
        return sum(self.records_written.values())


class LoadStats:
    def __init__(self, run_id: str | None = None):
        self._lock = Lock()
        self.run_id = run_id or uuid.uuid4().hex
        self._files: Counter[str] = Counter()
        self._lines_processed = 0
        self._lines_failed = 0
        self._written: Counter[str] = Counter()
        self._retries: Counter[str] = Counter()
        self._write_failures: Counter[str] = Counter()
        self._unknown: Counter[str] = Counter()
        self._file_seconds_count = 0
        self._file_seconds_sum = 0.0
        self._file_seconds_max = 0.0
        self._failed_files: list[str] = []

    # -- file level ---------------------------------------------------------

    def record_file_outcome(self, status: str, path: str, *, failed: bool = False) -> None:
        with self._lock:
            self._files[status] += 1
            if failed:
                self._failed_files.append(path)

    def record_file_lines(self, processed: int, failed: int, duration_seconds: float) -> None:
        with self._lock:
            self._lines_processed += processed
            self._lines_failed += failed
            self._file_seconds_count += 1
            self._file_seconds_sum += duration_seconds
            self._file_seconds_max = max(self._file_seconds_max, duration_seconds)

    # -- per device type ----------------------------------------------------

    def record_write(self, dev_type: str) -> None:
        with self._lock:
            self._written[dev_type] += 1

    def record_retry(self, dev_type: str) -> None:
        with self._lock:
            self._retries[dev_type] += 1

    def record_write_failure(self, dev_type: str) -> None:
        with self._lock:
            self._write_failures[dev_type] += 1

    def record_unknown_device(self, dev_type: str) -> None:
        with self._lock:
            self._unknown[dev_type] += 1

    def snapshot(self) -> StatsSnapshot:
        with self._lock:
            return StatsSnapshot(
                run_id=self.run_id,
                files_by_status=MappingProxyType(dict(self._files)),
                lines_processed=self._lines_processed,
                lines_failed=self._lines_failed,
                records_written=MappingProxyType(dict(self._written)),
                write_retries=MappingProxyType(dict(self._retries)),
                write_failures=MappingProxyType(dict(self._write_failures)),
                unknown_devices=MappingProxyType(dict(self._unknown)),
                file_seconds_count=self._file_seconds_count,
                file_seconds_sum=self._file_seconds_sum,
                file_seconds_max=self._file_seconds_max,
                failed_files=tuple(self._failed_files),
            )


__all__ = [
    "LoadStats",
    "StatsSnapshot",
]
