#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Load utility functions.
This module provides:
- File discovery by glob pattern, skipping files already marked as loaded.
- A progress tracker class that supports both tqdm and simple logging.
"""

import glob
import logging
from pathlib import Path

from tqdm import tqdm

from .marker import is_marked


def _get_logger(logger: logging.Logger | None) -> logging.Logger:
    return logger or logging.getLogger(__name__)

# ============================================================================
# FILE DISCOVERY
# ============================================================================


def list_log_files(
    pattern: str,
    *,
    logger: logging.Logger | None = None,
) -> list[str]:
    """
    List input files matching ``pattern``, oldest first by name.

    Files whose name starts with the processed marker are skipped, as are
    directories matched by the pattern.
    """
    log = _get_logger(logger)
    files = []
    skipped_marked = 0
    for path in glob.glob(pattern):
        if is_marked(path):
            skipped_marked += 1
            continue
        if not Path(path).is_file():
            continue
        files.append(path)

    if skipped_marked:
        log.debug("Skipped %d already loaded files", skipped_marked)
    return sorted(files)

# ============================================================================
# PROGRESS TRACKING
# ============================================================================


class LoadProgressTracker:
    """
    Tracks and displays load progress, one update per file outcome.
    """

    def __init__(
        self,
        total_files: int,
        use_tqdm: bool = True,
        progress_log_interval: int = 10,
        *,
        logger: logging.Logger | None = None,
    ):
        self.total_files = total_files
        self.use_tqdm = use_tqdm
        self.progress_log_interval = max(1, progress_log_interval)
        self.pbar = None

        self.completed = 0
        self.aborted = 0
        self.failed = 0
        self.cancelled = 0
        self.lines = 0

        self.logger = _get_logger(logger)

        if use_tqdm:
            self.pbar = tqdm(
                total=total_files,
                desc="Loading files",
                unit="file",
                bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]"
            )

    def update(self, filename: str, lines: int = 0, status: str = "completed"):
        """
        Update progress for a single file.

        Args:
            filename: Name of file that finished
            lines: Number of lines read from it
            status: 'completed', 'aborted', 'failed' or 'cancelled'
        """
        if status == "completed":
            self.completed += 1
        elif status == "aborted":
            self.aborted += 1
        elif status == "cancelled":
            self.cancelled += 1
        else:
            self.failed += 1
        self.lines += lines

        if self.pbar:
            self.pbar.set_postfix({
                'OK': self.completed,
                'Abort': self.aborted,
                'Fail': self.failed,
                'Cancel': self.cancelled,
                'Lines': self.lines,
            })
            self.pbar.update(1)
        else:
            total = self.completed + self.aborted + self.failed + self.cancelled
            if total % self.progress_log_interval == 0 or total == self.total_files:
                self.logger.info(
                    "Progress: %d/%d files (%.1f%%) | Completed: %d | Aborted: %d | Failed: %d | Cancelled: %d | Lines: %d | Last: %s",
                    total,
                    self.total_files,
                    (total / self.total_files * 100) if self.total_files > 0 else 0,
                    self.completed,
                    self.aborted,
                    self.failed,
                    self.cancelled,
                    self.lines,
                    filename,
                )

    def close(self):
        if self.pbar:
            self.pbar.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


__all__ = [
    "LoadProgressTracker",
    "list_log_files",
]
