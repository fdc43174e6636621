"""
Fixed-size worker pool for file loading.

Workers pull FileTasks from a bounded queue and resolve each task's
CompletionSlot exactly once. The caller keeps the slots in submission
order, so completion can be consumed in that order regardless of which
worker finishes first.
"""
from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from queue import Queue
from typing import Any, Optional

from appsload_exceptions import AppsLoadError
from config.constant import DEFAULT_LOAD_WORKERS, DEFAULT_TASK_QUEUE_SIZE

OUTCOME_COMPLETED = "completed"
OUTCOME_ABORTED = "aborted"
OUTCOME_FAILED = "failed"
OUTCOME_CANCELLED = "cancelled"


@dataclass(frozen=True)
class FileTask:
    clients: Mapping[str, Any]
    path: str
    slot_index: int


@dataclass(frozen=True)
class FileOutcome:
    path: str
    slot_index: int
    status: str
    processed: int = 0
    failed: int = 0
    error: str | None = None

    @property
    def completed(self) -> bool:
        return self.status == OUTCOME_COMPLETED


class CompletionSlot:
    """Single-use hand-off of one file's outcome from its worker to the coordinator."""

    def __init__(self, slot_index: int):
        self.slot_index = slot_index
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._outcome: FileOutcome | None = None

    def set(self, outcome: FileOutcome) -> None:
        with self._lock:
            if self._outcome is not None:
                raise RuntimeError(
                    f"Completion slot {self.slot_index} already resolved")
            self._outcome = outcome
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> FileOutcome:
        if not self._event.wait(timeout):
            raise TimeoutError(
                f"Completion slot {self.slot_index} not resolved in {timeout}s")
        assert self._outcome is not None
        return self._outcome


FileHandler = Callable[[FileTask], FileOutcome]


class WorkerPool:
    """
    Recommended usage:
      pool.start()
      slots = [pool.submit(task) for task in tasks]
      pool.close()
      ... consume slots in order ...
      pool.join()
    """

    def __init__(
        self,
        handler: FileHandler,
        *,
        workers: int = DEFAULT_LOAD_WORKERS,
        queue_size: int = DEFAULT_TASK_QUEUE_SIZE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._handler = handler
        self._worker_count = int(workers)
        self._queue: Queue[tuple[FileTask, CompletionSlot] | None] = Queue(
            maxsize=max(1, int(queue_size)))
        self._stop_event = threading.Event()
        self._threads: list[threading.Thread] = []
        self._closed = False
        self._logger = logger or logging.getLogger(__name__)

    @property
    def worker_count(self) -> int:
        return self._worker_count

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("Worker pool already started")
        for idx in range(self._worker_count):
            thread = threading.Thread(
                target=self._worker_loop,
                name=f"load-worker-{idx + 1}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

    def submit(self, task: FileTask) -> CompletionSlot:
        """Queue a task; blocks while the queue is full."""
        if self._closed:
            raise RuntimeError("Worker pool is closed")
        slot = CompletionSlot(task.slot_index)
        self._queue.put((task, slot))
        return slot

    def close(self) -> None:
        """No more tasks; each worker exits after its sentinel."""
        if self._closed:
            return
        self._closed = True
        for _ in self._threads:
            self._queue.put(None)

    def cancel_pending(self) -> None:
        """Resolve queued tasks as cancelled; in-flight files still finish."""
        if not self._stop_event.is_set():
            self._logger.warning(
                "Cancelling pending files; in-flight files will complete")
        self._stop_event.set()

    def join(self, timeout: float | None = None) -> None:
        for thread in self._threads:
            thread.join(timeout)

    def _worker_loop(self) -> None:
        while True:
            queued = self._queue.get()
            try:
                if queued is None:
                    return
                task, slot = queued
                slot.set(self._run_task(task))
            finally:
                self._queue.task_done()

    def _run_task(self, task: FileTask) -> FileOutcome:
        if self._stop_event.is_set():
            return FileOutcome(
                path=task.path,
                slot_index=task.slot_index,
                status=OUTCOME_CANCELLED,
            )
        try:
            return self._handler(task)
        except AppsLoadError as error:
            self._logger.error("Failed to load %s: %s", task.path, error)
            return FileOutcome(
                path=task.path,
                slot_index=task.slot_index,
                status=OUTCOME_FAILED,
                error=str(error),
            )
        except Exception as error:  # pylint: disable=broad-except
            self._logger.exception("Unexpected error loading %s", task.path)
            return FileOutcome(
                path=task.path,
                slot_index=task.slot_index,
                status=OUTCOME_FAILED,
                error=f"{type(error).__name__}: {error}",
            )


__all__ = [
    "CompletionSlot",
    "FileOutcome",
    "FileTask",
    "WorkerPool",
    "OUTCOME_ABORTED",
    "OUTCOME_CANCELLED",
    "OUTCOME_COMPLETED",
    "OUTCOME_FAILED",
]
