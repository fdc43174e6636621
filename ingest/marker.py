"""
Completion marking: rename loaded files so later runs skip them, strictly
in submission order.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

from config.constant import PROCESSED_FILE_PREFIX
from .worker_pool import (
    OUTCOME_ABORTED,
    OUTCOME_CANCELLED,
    OUTCOME_COMPLETED,
    CompletionSlot,
    FileOutcome,
)


def marked_path(path: str) -> str:
    head, fname = os.path.split(path)
    return os.path.join(head, PROCESSED_FILE_PREFIX + fname)


def is_marked(path: str) -> bool:
    return Path(path).name.startswith(PROCESSED_FILE_PREFIX)


def dot_rename(path: str, *, logger: Optional[logging.Logger] = None) -> str | None:
    """
    Rename ``path`` in place with a leading dot.
    Returns the new path, or None if the rename failed.
    """
    log = logger or logging.getLogger(__name__)
    target = marked_path(path)
    try:
        os.rename(path, target)
    except OSError as error:
        log.error("Error when renaming a file %s: %s", path, error)
        return None
    return target


Marker = Callable[[str], "str | None"]
OutcomeCallback = Callable[[FileOutcome], None]


class CompletionCoordinator:
    """
    Consumes completion slots in order (slot 0, then 1, ...), blocking on
    each one even if later files finish first, and marks completed files.

    ``run()`` can be called again after an interrupt; it resumes at the
    first slot not yet consumed.
    """

    def __init__(
        self,
        slots: Sequence[CompletionSlot],
        *,
        marker: Marker | None = None,
        on_outcome: OutcomeCallback | None = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._slots = list(slots)
        self._logger = logger or logging.getLogger(__name__)
        self._marker = marker or (lambda p: dot_rename(p, logger=self._logger))
        self._on_outcome = on_outcome
        self._next_index = 0
        self.outcomes: list[FileOutcome] = []
        self.marked: list[str] = []

    @property
    def pending(self) -> int:
        return len(self._slots) - self._next_index

    def run(self) -> list[FileOutcome]:
        while self._next_index < len(self._slots):
            outcome = self._slots[self._next_index].wait()
            self._handle(outcome)
            self.outcomes.append(outcome)
            self._next_index += 1
            if self._on_outcome is not None:
                self._on_outcome(outcome)
        return self.outcomes

    def _handle(self, outcome: FileOutcome) -> None:
        if outcome.status == OUTCOME_COMPLETED:
            if self._marker(outcome.path) is not None:
                self.marked.append(outcome.path)
            return

        if outcome.status == OUTCOME_ABORTED:
            self._logger.warning(
                "Not marking %s: error rate too high (%d/%d failed), left for re-run",
                outcome.path,
                outcome.failed,
                outcome.processed,
            )
        elif outcome.status == OUTCOME_CANCELLED:
            self._logger.warning("Not marking %s: cancelled before start",
                                 outcome.path)
        else:
            self._logger.warning("Not marking %s: %s", outcome.path,
                                 outcome.error or outcome.status)


__all__ = [
    "CompletionCoordinator",
    "dot_rename",
    "is_marked",
    "marked_path",
]
