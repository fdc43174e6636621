"""
Per-file processing: stream a gzip log, parse and store every line, then
decide whether the file's error rate allows it to be marked as loaded.
"""
from __future__ import annotations

import gzip
import logging
import time
import zlib
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Optional

from appsload_exceptions import (
    AppsLoadError,
    DecompressionError,
    FileOpenError,
    ParseError,
)
from config.constant import NORMAL_ERR_RATE
from .parser import parse_appsinstalled
from .stats import LoadStats
from .writer import CacheWriter

STATUS_COMPLETED = "completed"
STATUS_ABORTED = "aborted"


@dataclass
class ErrorRateCounter:
    """Line tallies for one file; never shared between files or workers."""
    processed: int = 0
    failed: int = 0

    @property
    def error_rate(self) -> float:
        if self.processed == 0:
            return 0.0
        return self.failed / self.processed


@dataclass(frozen=True)
class FileResult:
    path: str
    status: str
    processed: int
    failed: int
    error_rate: float
    duration_seconds: float = 0.0

    @property
    def completed(self) -> bool:
        return self.status == STATUS_COMPLETED


class FileProcessor:
    """
    Runs one file through Open -> Streaming -> Completed | Aborted.

    Per-line errors are tallied and never escape. FileOpenError and
    DecompressionError propagate and abort only this file.
    """

    def __init__(
        self,
        writer: CacheWriter,
        *,
        error_rate_threshold: float = NORMAL_ERR_RATE,
        logger: Optional[logging.Logger] = None,
        stats: Optional[LoadStats] = None,
    ) -> None:
        self.writer = writer
        self.error_rate_threshold = float(error_rate_threshold)
        self.logger = logger or logging.getLogger(__name__)
        self.stats = stats if stats is not None else writer.stats

    def process(self, path: str) -> FileResult:
        fname = Path(path).name
        t_start = time.perf_counter()
        handle = self._open(path)
        self.logger.info("Start processing file %s", fname)

        counter = ErrorRateCounter()
        try:
            for line in self._iter_lines(handle, path):
                counter.processed += 1
                if not self._load_line(line):
                    counter.failed += 1
        finally:
            handle.close()
        duration = time.perf_counter() - t_start

        self.stats.record_file_lines(counter.processed, counter.failed, duration)

        if counter.processed == 0:
            self.logger.info("Done %s, file is empty", fname)
            return self._result(path, STATUS_COMPLETED, counter, duration)

        if counter.error_rate > self.error_rate_threshold:
            self.logger.error(
                "High error rate (%.4f > %.4f). Failed load %s",
                counter.error_rate,
                self.error_rate_threshold,
                path,
            )
            return self._result(path, STATUS_ABORTED, counter, duration)

        self.logger.info(
            "Done %s, processed: %d, errors: %d (%.2fs)",
            fname,
            counter.processed,
            counter.failed,
            duration,
        )
        return self._result(path, STATUS_COMPLETED, counter, duration)

    def _load_line(self, line: str) -> bool:
        try:
            record = parse_appsinstalled(line)
        except ParseError as error:
            self.logger.warning("%s for: %r", error, line.rstrip("\r\n"))
            return False

        try:
            return self.writer.write_record(record)
        except AppsLoadError as error:
            self.logger.warning("%s (key %s)", error, record.key)
            return False

    def _open(self, path: str) -> "_TextStream":
        try:
            raw = open(path, "rb")
        except OSError as error:
            raise FileOpenError(path, str(error)) from error
        try:
            gz = gzip.GzipFile(fileobj=raw, mode="rb")
            return _TextStream(gz, raw)
        except (OSError, EOFError, zlib.error) as error:
            raw.close()
            raise DecompressionError(path, str(error)) from error

    @staticmethod
    def _iter_lines(handle: "_TextStream", path: str) -> Iterator[str]:
        # gzip defers header and CRC checks until the stream is read
        try:
            yield from handle
        except (OSError, EOFError, zlib.error) as error:
            raise DecompressionError(path, str(error)) from error

    @staticmethod
    def _result(
        path: str,
        status: str,
        counter: ErrorRateCounter,
        duration: float,
    ) -> FileResult:
        return FileResult(
            path=path,
            status=status,
            processed=counter.processed,
            failed=counter.failed,
            error_rate=counter.error_rate,
            duration_seconds=duration,
        )


class _TextStream:
    """Decoded line iterator over a gzip stream that closes both layers."""

    def __init__(self, gz: gzip.GzipFile, raw: IO[bytes]):
        self._gz = gz
        self._raw = raw

    def __iter__(self) -> Iterator[str]:
        for raw_line in self._gz:
            yield raw_line.decode("utf-8", errors="replace")

    def close(self) -> None:
        try:
            self._gz.close()
        finally:
            self._raw.close()


__all__ = [
    "ErrorRateCounter",
    "FileProcessor",
    "FileResult",
    "STATUS_ABORTED",
    "STATUS_COMPLETED",
]
