#!/usr/bin/env python3
"""
Batch Load for appsinstalled logs.
This module contains two layers:
1. run_load() - Core load loop, independent of UI/progress concerns. Submits
   files to the worker pool, drains completion slots in submission order,
   marks completed files and returns a LoadReport.
2. load_files_with_progress() - Thin wrapper around run_load() that handles
   file discovery and progress tracking. Also emits metrics and logs a
   summary after completion.
"""
import time
from dataclasses import dataclass, field
from pathlib import Path

from interfaces import FileOutcomeEvent, RunSummaryEvent
from .context import LoadContext
from .file_processor import FileProcessor
from .marker import CompletionCoordinator, Marker
from .utils import LoadProgressTracker, list_log_files
from .worker_pool import (
    OUTCOME_ABORTED,
    OUTCOME_CANCELLED,
    OUTCOME_COMPLETED,
    OUTCOME_FAILED,
    FileHandler,
    FileOutcome,
    FileTask,
    WorkerPool,
)
from .writer import CacheWriter


# ---------------------------------------------------------------------------
# LoadReport  +  run_load()  (core logic, no UI)
# ---------------------------------------------------------------------------

@dataclass
class LoadReport:
    """Value object returned by run_load()."""
    files_found: int
    files_completed: int
    files_aborted: int
    files_failed: int
    files_cancelled: int
    lines_processed: int
    lines_failed: int
    duration_seconds: float
    marked_files: list[str] = field(default_factory=list)
    aborted_files: list[str] = field(default_factory=list)
    failed_files: list[str] = field(default_factory=list)

    @property
    def lines_per_second(self) -> float:
        return self.lines_processed / self.duration_seconds if self.duration_seconds > 0 else 0.0

    @property
    def ok(self) -> bool:
        return self.files_failed == 0


def make_file_handler(ctx: LoadContext) -> FileHandler:
    """Build the per-task callable run on worker threads."""

    def _handle(task: FileTask) -> FileOutcome:
        writer = CacheWriter(
            task.clients,
            max_attempts=ctx.config.max_attempts,
            attempt_delay_s=ctx.config.attempt_delay_s,
            stats=ctx.stats,
            logger=ctx.logger,
        )
        processor = FileProcessor(
            writer,
            error_rate_threshold=ctx.config.error_rate_threshold,
            logger=ctx.logger,
            stats=ctx.stats,
        )
        result = processor.process(task.path)
        return FileOutcome(
            path=task.path,
            slot_index=task.slot_index,
            status=result.status,
            processed=result.processed,
            failed=result.failed,
        )

    return _handle


def _emit_file_event(ctx: LoadContext, outcome: FileOutcome, marked: bool) -> None:
    if not ctx.config.export_events:
        return
    ctx.event_sink.record_file_outcome(FileOutcomeEvent(
        run_id=ctx.stats.run_id,
        path=outcome.path,
        slot_index=outcome.slot_index,
        status=outcome.status,
        processed=outcome.processed,
        failed=outcome.failed,
        marked=marked,
        error=outcome.error,
    ))


def run_load(
    ctx: LoadContext,
    files: list[str],
    *,
    handler: FileHandler | None = None,
    marker: Marker | None = None,
    progress: LoadProgressTracker | None = None,
) -> LoadReport:
    """
    Core load loop.

    Every file gets its own completion slot; slots are consumed in the order
    the files were submitted, so marking order matches discovery order.
    Ctrl+C during submission or draining cancels files that have not
    started and keeps draining the slots already handed out, so completed
    files are still marked.
    """
    t_start = time.time()
    clients = ctx.clients

    def _on_outcome(outcome: FileOutcome) -> None:
        ctx.stats.record_file_outcome(
            outcome.status, outcome.path,
            failed=outcome.status == OUTCOME_FAILED)
        _emit_file_event(ctx, outcome,
                         marked=outcome.path in coordinator.marked)
        if progress:
            progress.update(
                Path(outcome.path).name,
                lines=outcome.processed,
                status=outcome.status,
            )

    worker_count = max(1, min(ctx.config.workers, len(files)))
    pool = WorkerPool(
        handler or make_file_handler(ctx),
        workers=worker_count,
        queue_size=ctx.config.queue_size,
        logger=ctx.logger,
    )
    pool.start()
    ctx.logger.info("Started %d load workers for %d files",
                    worker_count, len(files))

    slots = []
    try:
        for index, path in enumerate(files):
            slots.append(pool.submit(
                FileTask(clients=clients, path=path, slot_index=index)))
    except KeyboardInterrupt:
        ctx.logger.warning(
            "Interrupted; %d of %d files were never queued, draining the rest",
            len(files) - len(slots), len(files))
        pool.cancel_pending()
    finally:
        pool.close()

    coordinator = CompletionCoordinator(
        slots,
        marker=marker,
        on_outcome=_on_outcome,
        logger=ctx.logger,
    )
    try:
        coordinator.run()
    except KeyboardInterrupt:
        ctx.logger.warning(
            "Interrupted; draining %d remaining files", coordinator.pending)
        pool.cancel_pending()
        coordinator.run()
    pool.join()

    outcomes = coordinator.outcomes
    duration = time.time() - t_start
    return LoadReport(
        files_found=len(files),
        files_completed=_count(outcomes, OUTCOME_COMPLETED),
        files_aborted=_count(outcomes, OUTCOME_ABORTED),
        files_failed=_count(outcomes, OUTCOME_FAILED),
        files_cancelled=_count(outcomes, OUTCOME_CANCELLED),
        lines_processed=sum(o.processed for o in outcomes),
        lines_failed=sum(o.failed for o in outcomes),
        duration_seconds=duration,
        marked_files=list(coordinator.marked),
        aborted_files=[o.path for o in outcomes if o.status == OUTCOME_ABORTED],
        failed_files=[o.path for o in outcomes if o.status == OUTCOME_FAILED],
    )


def _count(outcomes: list[FileOutcome], status: str) -> int:
    return sum(1 for o in outcomes if o.status == status)


def _emit_load_metrics(ctx: LoadContext, report: LoadReport) -> None:
    """Export Prometheus and event-sink metrics after the run."""
    prom_path = (ctx.config.prometheus_metrics_file or "").strip()
    if prom_path:
        try:
            ctx.event_sink.export_metrics(
                snapshot=ctx.stats.snapshot(),
                output_path=prom_path,
                duration_seconds=report.duration_seconds,
                lines_per_second=report.lines_per_second,
                pattern=ctx.config.pattern,
                dry_run=ctx.config.dry_run,
                workers=ctx.config.workers,
                device_types=ctx.config.device_addresses,
            )
            ctx.logger.info("Exported Prometheus metrics to %s", prom_path)
        except OSError as error:
            ctx.logger.warning(
                "Could not export Prometheus metrics: %s", error)

    if ctx.config.export_events:
        ctx.event_sink.record_run_summary(RunSummaryEvent(
            run_id=ctx.stats.run_id,
            pattern=ctx.config.pattern,
            dry_run=ctx.config.dry_run,
            duration_seconds=report.duration_seconds,
            files_found=report.files_found,
            files_completed=report.files_completed,
            files_aborted=report.files_aborted,
            files_failed=report.files_failed,
            files_cancelled=report.files_cancelled,
            lines_processed=report.lines_processed,
            lines_failed=report.lines_failed,
            records_written=ctx.stats.snapshot().total_records_written,
        ))


def _log_load_summary(ctx: LoadContext, report: LoadReport) -> None:
    ctx.logger.info(
        """========================================
            LOAD SUMMARY
            ========================================
            Files found:          %d
            Files completed:      %d
            Files aborted:        %d
            Files failed:         %d
            Files cancelled:      %d
            Lines processed:      %d
            Lines failed:         %d
            Execution time:       %.2fs
            Avg speed:            %.1f lines/sec
            ========================================
            """,
        report.files_found,
        report.files_completed,
        report.files_aborted,
        report.files_failed,
        report.files_cancelled,
        report.lines_processed,
        report.lines_failed,
        report.duration_seconds,
        report.lines_per_second,
    )
    if report.aborted_files:
        ctx.logger.warning("Files left unmarked (high error rate):")
        for path in report.aborted_files:
            ctx.logger.warning("  - %s", path)
    if report.failed_files:
        ctx.logger.warning("Failed files:")
        for path in report.failed_files:
            ctx.logger.warning("  - %s", path)
    ctx.logger.info("Load complete")


def load_files_with_progress(
    ctx: LoadContext,
    use_progress_bar: bool = True,
) -> LoadReport:
    """
    Discover input files and load them with progress tracking.

    This is a thin UI/progress wrapper around run_load().
    """
    files = list_log_files(ctx.config.pattern, logger=ctx.logger)
    ctx.logger.info("Found %d files for pattern %s",
                    len(files), ctx.config.pattern)

    if not files:
        ctx.logger.warning("No files found to process")
        report = LoadReport(
            files_found=0,
            files_completed=0,
            files_aborted=0,
            files_failed=0,
            files_cancelled=0,
            lines_processed=0,
            lines_failed=0,
            duration_seconds=0.0,
        )
        _log_load_summary(ctx, report)
        return report

    with LoadProgressTracker(
        len(files),
        use_tqdm=use_progress_bar,
        progress_log_interval=ctx.config.progress_log_interval,
        logger=ctx.logger,
    ) as progress:
        report = run_load(ctx, files, progress=progress)

    _emit_load_metrics(ctx, report)
    _log_load_summary(ctx, report)
    return report
